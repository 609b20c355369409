"""
Module: session.store

Purpose:
    Key-value persistence of an ExamSession (current document, score
    record, mode flags, grading status and feedback) so a session
    survives a restart of the application on the same machine.

Key Classes:
    - SessionStore: JSON file store guarded by portalocker

Key Functions:
    - locked_file: Context manager for locked file access

Dependencies:
    - portalocker: Cross-platform file locking

Used By:
    - cli

Any malformed stored data results in a logged warning and an empty
session, never an exception at startup.
"""

from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Generator, Optional

import portalocker

from exam_toolkit.errors import InvalidFormat
from exam_toolkit.core.models import GradingStatus
from exam_toolkit.core.utils.serialization import load_examination, load_score_record
from .controller import ExamSession, SessionState

logger = logging.getLogger(__name__)

STORE_VERSION = 1
SESSION_KEY = "exam-storage"


@contextmanager
def locked_file(
    path: Path,
    mode: str = 'r',
    lock_type: int = portalocker.LOCK_EX,
) -> Generator:
    """
    Context manager for cross-platform locked file access.

    Args:
        path: Path to file.
        mode: File open mode ('r', 'w', 'a', etc.).
        lock_type: Lock type (LOCK_EX for exclusive, LOCK_SH for shared).

    Yields:
        Open file handle with lock held.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    # Ensure file exists for read modes
    if 'r' in mode and not path.exists():
        path.touch()

    with open(path, mode, encoding='utf-8') as f:
        portalocker.lock(f, lock_type)
        try:
            yield f
        finally:
            portalocker.unlock(f)


class SessionStore:
    """
    JSON-backed key-value store for session state.

    The file holds {"version": 1, "exam-storage": {...session snapshot...}};
    other keys written by other tools are preserved.

    Example:
        >>> store = SessionStore(Path("~/.exam_toolkit/state.json").expanduser())
        >>> store.save(session)
        >>> restored = ExamSession()
        >>> store.restore(restored)
        True
    """

    def __init__(self, path: Path) -> None:
        self.path = path

    def _read(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with locked_file(self.path, 'r', portalocker.LOCK_SH) as f:
                content = f.read()
        except OSError as e:
            logger.warning(f"Failed to read session store {self.path}: {e}")
            return {}

        if not content.strip():
            return {}
        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            logger.warning(f"Session store {self.path} is corrupted: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, data: Dict[str, Any]) -> None:
        # r+ keeps the lock on the same inode while truncating
        with locked_file(self.path, 'r+', portalocker.LOCK_EX) as f:
            f.seek(0)
            f.truncate()
            json.dump(data, f, indent=2, ensure_ascii=False)

    def load(self) -> Optional[Dict[str, Any]]:
        """Return the raw stored session snapshot, if any."""
        snapshot = self._read().get(SESSION_KEY)
        return snapshot if isinstance(snapshot, dict) else None

    def save(self, session: ExamSession) -> None:
        data = self._read()
        data["version"] = STORE_VERSION
        data[SESSION_KEY] = session.to_dict()
        self._write(data)
        logger.debug(f"Saved session to {self.path}")

    def restore(self, session: ExamSession) -> bool:
        """
        Load the stored snapshot into session.

        Returns:
            True if a valid snapshot was restored
        """
        snapshot = self.load()
        if snapshot is None:
            return False

        try:
            raw_exam = snapshot.get("currentExam")
            exam = load_examination(raw_exam) if raw_exam else None
            raw_record = snapshot.get("scoreRecord")
            record = load_score_record(raw_record) if raw_record else None
            state = SessionState(snapshot.get("state", SessionState.EMPTY.value))
            status = {
                qid: GradingStatus(value)
                for qid, value in (snapshot.get("gradingStatus") or {}).items()
            }
        except (InvalidFormat, ValueError, TypeError, AttributeError) as e:
            logger.warning(f"Discarding unreadable stored session: {e}")
            return False

        session.restore(
            exam=exam,
            score_record=record,
            state=state,
            study_mode=bool(snapshot.get("studyMode", False)),
            grading_status=status,
            ai_feedback=snapshot.get("aiFeedback") or {},
        )
        logger.info(f"Restored session ({state.value}) from {self.path}")
        return True

    def clear(self) -> None:
        data = self._read()
        if SESSION_KEY in data:
            del data[SESSION_KEY]
            self._write(data)

    def attach(self, session: ExamSession):
        """Persist session after every published change. Returns the unsubscribe function."""
        return session.subscribe(self.save)
