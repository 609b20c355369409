"""
Exam Toolkit Core Package

Shared data models, schema validation and serialization. These models are
the single source of truth for the scoring, session, grading, migration
and output packages.

**DESIGN NOTES:**

1. **Immutable Data Models**
   - Frozen dataclasses; answering or grading creates new instances
   - Untouched sections/questions are shared between snapshots

2. **Calculated Totals**
   - Section and exam totals in a ScoreRecord are always derived from
     question entries, never patched independently

3. **Option Encoding Resolved Once**
   - Legacy {Item1, Item2} vs current {Id, Text} is decided at load time
     and carried as Option.encoding
"""

from .models import (
    CURRENT_PROTOCOL_VERSION,
    Examination,
    ExaminationSection,
    Question,
    QuestionScore,
    QuestionType,
    ScoreRecord,
)
from .utils.serialization import load_examination, dump_examination

__all__ = [
    "CURRENT_PROTOCOL_VERSION",
    "Examination",
    "ExaminationSection",
    "Question",
    "QuestionScore",
    "QuestionType",
    "ScoreRecord",
    "load_examination",
    "dump_examination",
]
