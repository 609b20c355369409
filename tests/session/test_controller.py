"""
Unit Tests for the Exam Session Controller

Tests for state transitions, answer updates and score merging.
"""

import pytest

from exam_toolkit.core.models import CURRENT_PROTOCOL_VERSION, GradingStatus
from exam_toolkit.core.utils.serialization import load_examination
from exam_toolkit.errors import UsageError
from exam_toolkit.session import ExamSession, SessionState, ensure_completed


class TestTransitions:
    """Tests for the session state machine."""

    def test_new_session_is_empty(self):
        session = ExamSession()
        assert session.state is SessionState.EMPTY
        assert session.exam is None
        assert session.score_record is None

    def test_load_exam_when_called_then_loaded_with_zeroed_record(self, session):
        assert session.state is SessionState.LOADED
        assert session.score_record.obtained_score == 0
        assert session.score_record.exam_title == "General Knowledge Midterm"
        assert not session.exam_in_progress

    def test_load_exam_when_no_version_then_stamped(self, sample_exam_data):
        del sample_exam_data["ExaminationVersion"]
        session = ExamSession()
        session.load_exam(load_examination(sample_exam_data))

        assert session.exam.version == CURRENT_PROTOCOL_VERSION

    def test_start_exam_when_loaded_then_in_progress(self, session):
        session.start_exam(study_mode=True)

        assert session.state is SessionState.IN_PROGRESS
        assert session.exam_in_progress
        assert session.study_mode

    def test_start_exam_when_empty_then_usage_error(self):
        with pytest.raises(UsageError):
            ExamSession().start_exam()

    def test_start_exam_when_in_progress_then_usage_error(self, session):
        session.start_exam()
        with pytest.raises(UsageError):
            session.start_exam()

    def test_end_exam_when_not_started_then_usage_error(self, session):
        with pytest.raises(UsageError):
            session.end_exam()

    def test_end_exam_when_completed_then_usage_error(self, completed_session):
        with pytest.raises(UsageError):
            completed_session.end_exam()

    def test_end_exam_when_all_correct_then_deterministic_total(self, completed_session):
        record = completed_session.score_record

        assert completed_session.state is SessionState.COMPLETED
        assert record.obtained_score == 55
        assert record.section_scores == {"s1": 40, "s2": 15}

    def test_start_exam_when_completed_then_new_attempt(self, completed_session):
        completed_session.start_exam()
        assert completed_session.state is SessionState.IN_PROGRESS

    def test_reset_exam_when_called_then_empty(self, completed_session):
        completed_session.reset_exam()

        assert completed_session.state is SessionState.EMPTY
        assert completed_session.exam is None
        assert completed_session.score_record is None
        assert completed_session.grading_status == {}


class TestUpdateUserAnswer:
    """Tests for answer updates."""

    def test_update_when_in_progress_then_new_snapshot(self, session):
        session.start_exam()
        before = session.exam

        assert session.update_user_answer(0, 0, ["B"])

        assert session.exam is not before
        assert session.exam.get_question(0, 0).user_answer == ("B",)
        assert before.get_question(0, 0).user_answer is None

    def test_update_when_out_of_range_then_no_op(self, session):
        session.start_exam()
        before = session.exam

        assert not session.update_user_answer(9, 0, ["B"])
        assert not session.update_user_answer(0, 9, ["B"])
        assert session.exam is before

    def test_update_when_not_in_progress_then_no_op(self, session):
        assert not session.update_user_answer(0, 0, ["B"])
        assert session.exam.get_question(0, 0).user_answer is None

    def test_update_when_no_exam_then_no_op(self):
        assert not ExamSession().update_user_answer(0, 0, ["B"])


class TestCheckAnswer:
    """Tests for study-mode feedback."""

    def test_check_when_correct_then_evaluation(self, session):
        session.start_exam(study_mode=True)
        session.update_user_answer(0, 1, ["c", "a"])

        result = session.check_answer(0, 1)
        assert result.is_correct
        assert result.score == 10

    def test_check_when_ai_question_then_none(self, session):
        session.start_exam(study_mode=True)
        session.update_user_answer(1, 1, ["text"])
        assert session.check_answer(1, 1) is None

    def test_check_when_missing_then_none(self, session):
        assert session.check_answer(7, 7) is None


class TestScores:
    """Tests for recompute and AI score merging."""

    def test_calculate_scores_when_no_exam_then_usage_error(self):
        with pytest.raises(UsageError):
            ExamSession().calculate_scores()

    def test_calculate_scores_when_in_progress_then_running_total(self, session):
        session.start_exam()
        session.update_user_answer(0, 0, ["B"])

        record = session.calculate_scores()

        assert record is session.score_record
        assert record.obtained_score == 10
        assert record.get("s1", "q1").is_correct
        assert session.state is SessionState.IN_PROGRESS

    def test_calculate_scores_when_completed_without_grading_then_same_totals(self, completed_session):
        record = completed_session.calculate_scores()

        assert record.obtained_score == 55
        assert completed_session.state is SessionState.COMPLETED

    def test_calculate_scores_when_ai_graded_then_usage_error_and_record_kept(self, completed_session):
        completed_session.set_grading_status("q6", GradingStatus.COMPLETED)
        completed_session.apply_ai_score("q6", 15, "Excellent")
        before = completed_session.score_record

        with pytest.raises(UsageError):
            completed_session.calculate_scores()

        assert completed_session.score_record is before
        assert completed_session.score_record.obtained_score == 70
        assert completed_session.ai_feedback == {"q6": "Excellent"}

    def test_apply_ai_score_when_full_marks_then_correct_and_totals_updated(self, completed_session):
        assert completed_session.apply_ai_score("q6", 15, "Excellent")

        record = completed_session.score_record
        assert record.get("s2", "q6").is_correct
        assert record.section_scores["s2"] == 30
        assert record.obtained_score == 70
        assert completed_session.ai_feedback == {"q6": "Excellent"}

    def test_apply_ai_score_when_partial_then_incorrect(self, completed_session):
        completed_session.apply_ai_score("q7", 12.5)

        entry = completed_session.score_record.get("s2", "q7")
        assert entry.obtained_score == 12.5
        assert not entry.is_correct
        assert completed_session.score_record.obtained_score == 67.5

    def test_apply_ai_score_when_unknown_question_then_false(self, completed_session):
        before = completed_session.score_record
        assert not completed_session.apply_ai_score("nope", 5)
        assert completed_session.score_record is before

    def test_apply_ai_score_when_no_record_then_false(self):
        assert not ExamSession().apply_ai_score("q6", 5)

    def test_apply_ai_score_keeps_other_entries(self, completed_session):
        before = completed_session.score_record
        completed_session.apply_ai_score("q6", 10)
        after = completed_session.score_record

        assert after.get("s1", "q1") is before.get("s1", "q1")
        assert after.get("s2", "q7") is before.get("s2", "q7")

    def test_set_grading_status(self, completed_session):
        completed_session.set_grading_status("q6", GradingStatus.PENDING)
        assert completed_session.grading_status == {"q6": GradingStatus.PENDING}

    def test_set_grading_status_when_feedback_then_recorded(self, completed_session):
        completed_session.set_grading_status("q7", GradingStatus.ERROR, "Error parsing AI response")

        assert completed_session.grading_status == {"q7": GradingStatus.ERROR}
        assert completed_session.ai_feedback == {"q7": "Error parsing AI response"}

    def test_end_exam_clears_previous_grading(self, completed_session):
        completed_session.apply_ai_score("q6", 15, "Great")
        completed_session.set_grading_status("q6", GradingStatus.COMPLETED)

        completed_session.start_exam()
        record = completed_session.end_exam()

        assert record.obtained_score == 55
        assert completed_session.grading_status == {}
        assert completed_session.ai_feedback == {}


class TestSubscribe:
    """Tests for change notification."""

    def test_subscribe_when_changed_then_notified(self, session):
        seen = []
        session.subscribe(lambda s: seen.append(s.state))

        session.start_exam()
        session.update_user_answer(0, 0, ["B"])

        assert seen == [SessionState.IN_PROGRESS, SessionState.IN_PROGRESS]

    def test_unsubscribe_when_called_then_silent(self, session):
        seen = []
        unsubscribe = session.subscribe(seen.append)
        unsubscribe()

        session.start_exam()
        assert seen == []


class TestEnsureCompleted:
    def test_when_completed_then_record(self, completed_session):
        assert ensure_completed(completed_session) is completed_session.score_record

    def test_when_in_progress_then_usage_error(self, session):
        session.start_exam()
        with pytest.raises(UsageError):
            ensure_completed(session)


def test_to_dict_snapshot_keys(completed_session):
    snapshot = completed_session.to_dict()

    assert snapshot["state"] == "completed"
    assert snapshot["examInProgress"] is False
    assert snapshot["currentExam"]["ExaminationMetadata"]["Title"] == "General Knowledge Midterm"
    assert snapshot["scoreRecord"]["ObtainedScore"] == 55
