"""
Module: output

Purpose:
    Export of completed attempts (JSON document and Markdown report).

Key Functions:
    - export_examination_json(): Answered document as JSON
    - render_markdown_report(): Markdown answer sheet
    - section_summary(): Per-section score rows
    - write_report(): Atomic file write

Used By:
    - cli
"""

from .report import (
    SectionSummary,
    export_examination_json,
    json_filename,
    render_markdown_report,
    report_filename,
    section_summary,
    write_report,
)

__all__ = [
    "SectionSummary",
    "export_examination_json",
    "json_filename",
    "render_markdown_report",
    "report_filename",
    "section_summary",
    "write_report",
]
