"""
Unit Tests for Exam Document Models

Tests for Question, Option, Examination and ScoreRecord.
"""

from dataclasses import replace

import pytest

from exam_toolkit.core.models import (
    CURRENT_PROTOCOL_VERSION,
    Examination,
    ExaminationVersion,
    Option,
    OptionEncoding,
    Question,
    QuestionScore,
    QuestionType,
    ScoreRecord,
)
from exam_toolkit.core.models.fields import get_field, get_strings


class TestFields:
    """Tests for PascalCase/camelCase field lookup."""

    def test_get_field_when_camel_case_then_found(self):
        assert get_field({"questionId": "q1"}, "QuestionId") == "q1"

    def test_get_field_when_both_spellings_then_pascal_wins(self):
        assert get_field({"QuestionId": "a", "questionId": "b"}, "QuestionId") == "a"

    def test_get_field_when_null_then_default(self):
        assert get_field({"Score": None}, "Score", 0) == 0

    def test_get_strings_when_single_string_then_tuple(self):
        assert get_strings({"Answer": "B"}, "Answer") == ("B",)

    def test_get_strings_when_absent_then_none(self):
        assert get_strings({}, "Answer") is None


class TestQuestionType:
    """Tests for QuestionType parsing."""

    def test_parse_when_known_value_then_member(self):
        assert QuestionType.parse(6) is QuestionType.ESSAY

    def test_parse_when_out_of_range_then_unknown(self):
        assert QuestionType.parse(42) is QuestionType.UNKNOWN

    def test_parse_when_garbage_then_unknown(self):
        assert QuestionType.parse("essay") is QuestionType.UNKNOWN

    def test_label_for_fill_in_the_blank(self):
        assert QuestionType.FILL_IN_THE_BLANK.label == "Fill in the Blank Question"


class TestOption:
    """Tests for option encodings."""

    def test_from_dict_when_current_then_id_text(self):
        option = Option.from_dict({"Id": "A", "Text": "Four"})
        assert (option.id, option.text) == ("A", "Four")
        assert option.encoding is OptionEncoding.CURRENT

    def test_from_dict_when_legacy_then_tagged_legacy(self):
        option = Option.from_dict({"Item1": "B", "Item2": "Five"})
        assert (option.id, option.text) == ("B", "Five")
        assert option.encoding is OptionEncoding.LEGACY

    def test_to_dict_when_legacy_then_written_as_current(self):
        option = Option.from_dict({"Item1": "B", "Item2": "Five"})
        assert option.to_dict() == {"Id": "B", "Text": "Five"}


class TestQuestion:
    """Tests for Question model."""

    def test_with_user_answer_when_called_then_original_unchanged(self):
        q = Question("q1", QuestionType.SINGLE_CHOICE, "?", score=10, answer=("B",))
        answered = q.with_user_answer(["B"])

        assert answered.user_answer == ("B",)
        assert q.user_answer is None

    def test_iter_tree_when_nested_then_depth_first(self):
        leaf = Question("q1.1.1", QuestionType.SHORT_ANSWER, "c")
        child = Question("q1.1", QuestionType.SHORT_ANSWER, "b", sub_questions=(leaf,))
        root = Question("q1", QuestionType.COMPLEX, "a", sub_questions=(child,))

        assert [q.question_id for q in root.iter_tree()] == ["q1", "q1.1", "q1.1.1"]

    def test_from_dict_when_camel_case_then_parsed(self):
        q = Question.from_dict({
            "questionId": "q9",
            "type": 7,
            "stem": "Why?",
            "score": 5,
            "answer": ["Because"],
            "isAiJudge": True,
        })
        assert q.question_id == "q9"
        assert q.type is QuestionType.SHORT_ANSWER
        assert q.is_ai_judge

    def test_from_dict_when_no_id_then_none(self):
        q = Question.from_dict({"Type": 1, "Stem": "?"})
        assert q.question_id is None

    def test_to_dict_when_round_tripped_then_equal(self):
        data = {
            "QuestionId": "q1",
            "Type": 1,
            "Stem": "2 + 2 = ?",
            "Options": [{"Id": "A", "Text": "4"}],
            "Score": 10,
            "Answer": ["A"],
            "UserAnswer": ["A"],
            "IsAiJudge": False,
        }
        q = Question.from_dict(data)
        assert Question.from_dict(q.to_dict()) == q


class TestExamination:
    """Tests for Examination copy-on-write updates."""

    def test_with_user_answer_when_valid_then_untouched_parts_shared(self, sample_exam):
        updated = sample_exam.with_user_answer(0, 1, ["A", "C"])

        assert updated is not sample_exam
        assert updated.get_question(0, 1).user_answer == ("A", "C")
        assert sample_exam.get_question(0, 1).user_answer is None
        # Untouched section and sibling questions are the same objects
        assert updated.sections[1] is sample_exam.sections[1]
        assert updated.sections[0].questions[0] is sample_exam.sections[0].questions[0]

    def test_with_user_answer_when_out_of_range_then_none(self, sample_exam):
        assert sample_exam.with_user_answer(5, 0, ["A"]) is None
        assert sample_exam.with_user_answer(0, 99, ["A"]) is None

    def test_question_count(self, sample_exam):
        assert sample_exam.question_count == 8

    def test_section_key_when_no_id_then_title(self):
        exam = Examination.from_dict({
            "ExaminationMetadata": {"Title": "T"},
            "ExaminationSections": [{"Title": "Part A", "Questions": []}],
        })
        assert exam.sections[0].key == "Part A"

    def test_section_max_score_when_undeclared_then_sum_of_questions(self):
        exam = Examination.from_dict({
            "ExaminationMetadata": {"Title": "T"},
            "ExaminationSections": [{
                "Title": "Part A",
                "Questions": [{"QuestionId": "a", "Type": 1, "Score": 4},
                              {"QuestionId": "b", "Type": 1, "Score": 6}],
            }],
        })
        assert exam.sections[0].max_score == 10

    def test_to_dict_when_no_version_then_omitted(self):
        exam = Examination.from_dict({"ExaminationMetadata": {"Title": "T"}, "ExaminationSections": []})
        assert "ExaminationVersion" not in exam.to_dict()

    def test_version_str(self):
        assert str(CURRENT_PROTOCOL_VERSION) == "2.1.0"
        assert ExaminationVersion.from_dict({}) == ExaminationVersion(1, 0, 0)


class TestScoreRecord:
    """Tests for ScoreRecord derivations."""

    @pytest.fixture
    def record(self) -> ScoreRecord:
        return ScoreRecord(
            id="r1",
            exam_id="e1",
            exam_title="T",
            timestamp="2024-01-01T00:00:00+00:00",
            total_score=30,
            obtained_score=10,
            section_scores={"s1": 10, "s2": 0},
            question_scores={
                "s1": {
                    "a": QuestionScore("a", 10, 10, True),
                    "b": QuestionScore("b", 10, 0, False),
                },
                "s2": {"c": QuestionScore("c", 10, 0, False)},
            },
        )

    def test_empty_when_created_then_zeroed(self):
        record = ScoreRecord.empty(exam_title="Physics")
        assert record.obtained_score == 0
        assert record.exam_id == ""
        assert record.user_id == "local-user"

    def test_with_question_score_when_full_marks_then_correct(self, record):
        merged = record.with_question_score("c", 10)

        assert merged.get("s2", "c").is_correct
        assert merged.section_scores == {"s1": 10, "s2": 10}
        assert merged.obtained_score == 20
        # Other entries carried over untouched
        assert merged.get("s1", "a") is record.get("s1", "a")
        assert record.obtained_score == 10

    def test_with_question_score_when_within_tolerance_then_correct(self, record):
        merged = record.with_question_score("b", 9.9995)
        assert merged.get("s1", "b").is_correct

    def test_with_question_score_when_partial_then_incorrect(self, record):
        merged = record.with_question_score("b", 7.5)
        assert not merged.get("s1", "b").is_correct
        assert merged.section_scores["s1"] == 17.5
        assert merged.is_consistent

    def test_with_question_score_when_unknown_id_then_none(self, record):
        assert record.with_question_score("zzz", 5) is None

    def test_recalculated_when_drifted_then_repaired(self, record):
        drifted = replace(record, obtained_score=99)
        assert not drifted.is_consistent
        assert drifted.recalculated().obtained_score == 10

    def test_from_dict_when_round_tripped_then_equal(self, record):
        assert ScoreRecord.from_dict(record.to_dict()) == record
