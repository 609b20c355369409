"""
Unit Tests for Session Persistence

Tests for SessionStore save/restore using a temporary directory.
"""

import json
from pathlib import Path

import pytest

from exam_toolkit.core.models import GradingStatus
from exam_toolkit.session import ExamSession, SessionState, SessionStore
from exam_toolkit.session.store import SESSION_KEY, STORE_VERSION


@pytest.fixture
def store(tmp_path: Path) -> SessionStore:
    return SessionStore(tmp_path / "state" / "session.json")


class TestSessionStore:
    """Tests for SessionStore."""

    def test_restore_when_no_file_then_false(self, store):
        session = ExamSession()
        assert not store.restore(session)
        assert session.state is SessionState.EMPTY

    def test_save_then_restore_when_completed_then_equal(self, store, completed_session):
        completed_session.apply_ai_score("q6", 12, "Good coverage")
        completed_session.set_grading_status("q6", GradingStatus.COMPLETED)
        store.save(completed_session)

        restored = ExamSession()
        assert store.restore(restored)

        assert restored.state is SessionState.COMPLETED
        assert restored.exam == completed_session.exam
        assert restored.score_record == completed_session.score_record
        assert restored.grading_status == {"q6": GradingStatus.COMPLETED}
        assert restored.ai_feedback == {"q6": "Good coverage"}

    def test_save_when_written_then_versioned_layout(self, store, session):
        store.save(session)

        data = json.loads(store.path.read_text(encoding="utf-8"))
        assert data["version"] == STORE_VERSION
        assert data[SESSION_KEY]["state"] == "loaded"

    def test_save_when_other_keys_present_then_preserved(self, store, session):
        store.path.parent.mkdir(parents=True)
        store.path.write_text(json.dumps({"config-storage": {"model": "x"}}), encoding="utf-8")

        store.save(session)

        data = json.loads(store.path.read_text(encoding="utf-8"))
        assert data["config-storage"] == {"model": "x"}

    def test_restore_when_corrupted_then_false(self, store):
        store.path.parent.mkdir(parents=True)
        store.path.write_text("{not json", encoding="utf-8")

        assert not store.restore(ExamSession())

    def test_restore_when_bad_state_then_false(self, store, session):
        store.save(session)
        data = json.loads(store.path.read_text(encoding="utf-8"))
        data[SESSION_KEY]["state"] = "exploded"
        store.path.write_text(json.dumps(data), encoding="utf-8")

        restored = ExamSession()
        assert not store.restore(restored)
        assert restored.state is SessionState.EMPTY

    def test_clear_when_saved_then_nothing_to_restore(self, store, session):
        store.save(session)
        store.clear()

        assert store.load() is None
        assert not store.restore(ExamSession())

    def test_attach_when_session_changes_then_saved(self, store, session):
        store.attach(session)
        session.start_exam()
        session.update_user_answer(0, 0, ["B"])

        snapshot = store.load()
        assert snapshot["state"] == "in_progress"
        assert snapshot["currentExam"]["ExaminationSections"][0]["Questions"][0]["UserAnswer"] == ["B"]
