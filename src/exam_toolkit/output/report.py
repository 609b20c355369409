"""
Module: output.report

Purpose:
    Export a completed attempt: the answered document as JSON and a
    Markdown report with answers, scores and AI feedback.

Key Functions:
    - export_examination_json(): Full document with user answers
    - render_markdown_report(): Human-readable answer sheet
    - section_summary(): Per-section obtained/max/percentage rows
    - report_filename() / json_filename(): File names derived from the title
    - write_report(): Atomic text file write

Used By:
    - cli
"""

from __future__ import annotations

import json
import logging
import re
import tempfile
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import List, Mapping, Optional

from exam_toolkit.core.models import Examination, GradingStatus, ScoreRecord
from exam_toolkit.core.utils.serialization import dump_examination

logger = logging.getLogger(__name__)

NO_ANSWER = "No answer provided"
SEPARATOR = "---"
AI_GRADING_FAILED = "AI Grading: failed, score is provisional"


def _number(value: float) -> str:
    """Render 10.0 as "10" and 7.5 as "7.5"."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _date(timestamp: str) -> str:
    try:
        return datetime.fromisoformat(timestamp).strftime("%Y-%m-%d %H:%M:%S")
    except ValueError:
        return timestamp


def _safe_title(title: str) -> str:
    return re.sub(r"\s+", "_", title) or "exam"


def report_filename(exam: Examination) -> str:
    return f"{_safe_title(exam.metadata.title)}_Answers.md"


def json_filename(exam: Examination) -> str:
    return f"{_safe_title(exam.metadata.title)}_with_answers.json"


def export_examination_json(exam: Examination) -> str:
    """Serialize the document, answers included, as indented JSON."""
    return json.dumps(dump_examination(exam), indent=2, ensure_ascii=False)


@dataclass(frozen=True)
class SectionSummary:
    key: str
    title: str
    obtained: float
    maximum: float

    @property
    def percentage(self) -> int:
        if self.maximum <= 0:
            return 0
        return round(self.obtained / self.maximum * 100)


def section_summary(exam: Examination, record: ScoreRecord) -> List[SectionSummary]:
    """
    One row per section, in document order.

    The maximum is the section's declared score, or the sum of its
    question scores when the section declares none.
    """
    return [
        SectionSummary(
            key=section.key,
            title=section.title,
            obtained=record.section_scores.get(section.key, 0),
            maximum=section.max_score,
        )
        for section in exam.sections
    ]


def render_markdown_report(
    exam: Examination,
    record: ScoreRecord,
    feedback: Optional[Mapping[str, str]] = None,
    grading_status: Optional[Mapping[str, GradingStatus]] = None,
) -> str:
    """
    Render the answer sheet for a completed attempt.

    Args:
        exam: Answered document
        record: Score record for the attempt
        feedback: AI feedback keyed by question id
        grading_status: AI grading status keyed by question id; questions
            whose grading failed are flagged in the sheet

    Returns:
        Markdown text

    Example:
        >>> text = render_markdown_report(exam, record, session.ai_feedback)
        >>> text.splitlines()[0]
        '# Physics Midterm'
    """
    feedback = feedback or {}
    grading_status = grading_status or {}
    lines: List[str] = [
        f"# {exam.metadata.title}",
        "",
        f"Score: {_number(record.obtained_score)}/{_number(record.total_score)}",
        f"Date: {_date(record.timestamp)}",
        "",
    ]

    for section in exam.sections:
        lines.extend([f"## {section.title}", ""])
        if section.description:
            lines.extend([section.description, ""])

        for q_idx, question in enumerate(section.questions or ()):
            lines.extend([
                f"### Question {q_idx + 1} ({_number(question.score)} points)",
                "",
                question.stem,
                "",
            ])

            if question.options:
                lines.append("Options:")
                lines.extend(f"- {o.id}: {o.text}" for o in question.options)
                lines.append("")

            lines.append("Your Answer:")
            lines.append(", ".join(question.user_answer) if question.user_answer else NO_ANSWER)
            lines.append("")

            lines.append("Correct Answer:")
            lines.append(", ".join(question.answer))
            lines.append("")

            entry = record.get(section.key, question.question_id) if question.question_id else None
            if entry is not None:
                lines.append(f"Score: {_number(entry.obtained_score)}/{_number(entry.max_score)}")
                lines.append(f"Status: {'Correct' if entry.is_correct else 'Incorrect'}")
                lines.append("")

            if question.question_id:
                if grading_status.get(question.question_id) == GradingStatus.ERROR:
                    lines.extend([AI_GRADING_FAILED, ""])
                text = feedback.get(question.question_id)
                if text:
                    lines.extend(["AI Feedback:", text, ""])

            lines.extend([SEPARATOR, ""])

    return "\n".join(lines)


def write_report(path: Path, content: str) -> Path:
    """Write text atomically using a temp file in the target directory."""
    path.parent.mkdir(parents=True, exist_ok=True)

    with tempfile.NamedTemporaryFile(
        mode="w",
        suffix=path.suffix or ".tmp",
        dir=path.parent,
        delete=False,
        encoding="utf-8",
    ) as f:
        f.write(content)
        temp_path = Path(f.name)

    temp_path.replace(path)
    logger.info(f"Wrote {path}")
    return path
