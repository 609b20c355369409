"""Top-level package for the Exam Toolkit.

Provides subpackages:
- exam_toolkit.core – exam document models, schema validation, serialization
- exam_toolkit.scoring – deterministic scoring engine
- exam_toolkit.session – exam session state machine and persistence
- exam_toolkit.grading – AI grading prompt, parser, client and orchestrator
- exam_toolkit.migration – legacy protocol upgrades
- exam_toolkit.output – score exports
"""

def _get_version() -> str:
    """Get version from pyproject.toml (dev) or importlib.metadata (installed)."""
    from pathlib import Path

    pyproject = Path(__file__).resolve().parent.parent.parent / "pyproject.toml"
    if pyproject.exists():
        try:
            content = pyproject.read_text()
            for line in content.splitlines():
                if line.strip().startswith("version"):
                    # Parse: version = "0.3.0"
                    return line.split("=")[1].strip().strip('"').strip("'")
        except OSError:
            pass

    try:
        from importlib.metadata import version as pkg_version
        return pkg_version("exam_toolkit")
    except Exception:
        return "0.0.0"

__version__ = _get_version()
__all__: list[str] = ["__version__"]
