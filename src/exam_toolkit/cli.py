"""
Command line entry point.

    exam-toolkit migrate SRC [-o DST]
    exam-toolkit score DOC
    exam-toolkit grade DOC [--report OUT.md] [--save-session]
    exam-toolkit report DOC [-o OUT.md]
    exam-toolkit export DOC [-o OUT.json]

DOC is an exam document that already carries the user's answers (for
example one exported with the answers included).
"""

from __future__ import annotations

import argparse
import asyncio
import logging
from pathlib import Path
from typing import Optional, Sequence

from exam_toolkit import __version__
from exam_toolkit.config import GradingConfig, default_state_path
from exam_toolkit.core.models import Examination, ScoreRecord
from exam_toolkit.core.utils.serialization import load_examination_file
from exam_toolkit.errors import InvalidFormat, UsageError
from exam_toolkit.grading import GradingOrchestrator, OpenAIGradingClient
from exam_toolkit.migration import migrate_file
from exam_toolkit.output import (
    export_examination_json,
    json_filename,
    render_markdown_report,
    report_filename,
    section_summary,
    write_report,
)
from exam_toolkit.session import ExamSession, SessionStore

logger = logging.getLogger("exam_toolkit")


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _completed_session(path: Path) -> ExamSession:
    """Load a document and run the deterministic scoring pass over its answers."""
    session = ExamSession()
    session.load_exam(load_examination_file(path))
    session.start_exam()
    session.end_exam()
    return session


def _print_scores(exam: Examination, record: ScoreRecord) -> None:
    print(f"{exam.metadata.title}: {record.obtained_score}/{record.total_score}")
    for row in section_summary(exam, record):
        print(f"  {row.title}: {row.obtained}/{row.maximum} ({row.percentage}%)")


def _cmd_migrate(args: argparse.Namespace) -> int:
    result = migrate_file(args.source, args.output)
    for line in result.log:
        print(line)
    return 0


def _cmd_score(args: argparse.Namespace) -> int:
    session = _completed_session(args.document)
    _print_scores(session.exam, session.score_record)
    return 0


def _cmd_grade(args: argparse.Namespace) -> int:
    session = _completed_session(args.document)
    if args.save_session:
        SessionStore(default_state_path()).attach(session)

    client = OpenAIGradingClient(GradingConfig.from_env())
    report = asyncio.run(GradingOrchestrator(session, client).grade_all())

    for failure in report.failures:
        logger.warning(f"{failure.question_id}: {failure.error}")
    _print_scores(session.exam, session.score_record)

    if args.report is not None:
        content = render_markdown_report(
            session.exam, session.score_record, session.ai_feedback, session.grading_status
        )
        write_report(args.report, content)
    return 1 if report.error_count else 0


def _cmd_report(args: argparse.Namespace) -> int:
    session = _completed_session(args.document)
    output = args.output or args.document.with_name(report_filename(session.exam))
    write_report(output, render_markdown_report(session.exam, session.score_record))
    print(output)
    return 0


def _cmd_export(args: argparse.Namespace) -> int:
    exam = load_examination_file(args.document)
    output = args.output or args.document.with_name(json_filename(exam))
    write_report(output, export_examination_json(exam))
    print(output)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="exam-toolkit",
        description="Score, AI-grade, export and upgrade exam documents.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("migrate", help="Upgrade a legacy document to the current protocol")
    p.add_argument("source", type=Path, help="Document to upgrade (left unchanged)")
    p.add_argument("-o", "--output", type=Path, help="Output path (default: upgraded_<name>)")
    p.set_defaults(func=_cmd_migrate)

    p = sub.add_parser("score", help="Score the answers in a document without AI grading")
    p.add_argument("document", type=Path)
    p.set_defaults(func=_cmd_score)

    p = sub.add_parser("grade", help="Score a document, then AI-grade its open-ended answers")
    p.add_argument("document", type=Path)
    p.add_argument("--report", type=Path, help="Write a Markdown report here")
    p.add_argument("--save-session", action="store_true", help="Persist the session to the state directory")
    p.set_defaults(func=_cmd_grade)

    p = sub.add_parser("report", help="Write a Markdown answer report")
    p.add_argument("document", type=Path)
    p.add_argument("-o", "--output", type=Path, help="Output path (default: <Title>_Answers.md)")
    p.set_defaults(func=_cmd_report)

    p = sub.add_parser("export", help="Write the answered document as indented JSON")
    p.add_argument("document", type=Path)
    p.add_argument("-o", "--output", type=Path, help="Output path (default: <Title>_with_answers.json)")
    p.set_defaults(func=_cmd_export)

    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    _configure_logging(args.verbose)

    try:
        return args.func(args)
    except (InvalidFormat, UsageError, FileNotFoundError) as e:
        logger.error(str(e))
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
