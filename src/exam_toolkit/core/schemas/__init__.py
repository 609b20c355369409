"""
Schemas Package

JSON schema definitions and validation utilities for exam documents.
"""

from .validator import (
    validate_examination,
    EXAMINATION_SCHEMA_VERSION,
)
from exam_toolkit.errors import InvalidFormat

__all__ = [
    "validate_examination",
    "InvalidFormat",
    "EXAMINATION_SCHEMA_VERSION",
]
