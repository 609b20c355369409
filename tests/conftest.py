import copy
import sys
from pathlib import Path

import pytest

# Add src to sys.path so we can import exam_toolkit
SRC_PATH = Path(__file__).resolve().parent.parent / "src"
if SRC_PATH.as_posix() not in sys.path:
    sys.path.insert(0, SRC_PATH.as_posix())

from exam_toolkit.core.utils.serialization import load_examination
from exam_toolkit.session import ExamSession


SAMPLE_EXAM = {
    "ExaminationVersion": {"Major": 2, "Minor": 1, "Patch": 0},
    "ExaminationMetadata": {
        "ExamId": "exam-001",
        "Title": "General Knowledge Midterm",
        "Description": "Sample exam used by the test suite",
        "Subject": "General",
        "Language": "en",
        "TotalScore": 100,
    },
    "ExaminationSections": [
        {
            "SectionId": "s1",
            "Title": "Objective",
            "Description": "Choose or fill in the answer.",
            "Score": 40,
            "Questions": [
                {
                    "QuestionId": "q1",
                    "Type": 1,
                    "Stem": "2 + 2 = ?",
                    "Options": [
                        {"Id": "A", "Text": "3"},
                        {"Id": "B", "Text": "4"},
                        {"Id": "C", "Text": "5"},
                    ],
                    "Score": 10,
                    "Answer": ["B"],
                },
                {
                    "QuestionId": "q2",
                    "Type": 2,
                    "Stem": "Which are prime numbers?",
                    "Options": [
                        {"Id": "A", "Text": "2"},
                        {"Id": "B", "Text": "4"},
                        {"Id": "C", "Text": "5"},
                        {"Id": "D", "Text": "9"},
                    ],
                    "Score": 10,
                    "Answer": ["A", "C"],
                },
                {
                    "QuestionId": "q3",
                    "Type": 3,
                    "Stem": "Water boils at 100 degrees Celsius at sea level.",
                    "Score": 10,
                    "Answer": ["True"],
                },
                {
                    "QuestionId": "q4",
                    "Type": 4,
                    "Stem": "The capital of France is ____.",
                    "Score": 10,
                    "Answer": ["Paris"],
                },
            ],
        },
        {
            "SectionId": "s2",
            "Title": "Subjective",
            "Score": 60,
            "Questions": [
                {
                    "QuestionId": "q5",
                    "Type": 1,
                    "Stem": "Which planet is largest?",
                    "Options": [
                        {"Id": "A", "Text": "Mars"},
                        {"Id": "B", "Text": "Earth"},
                        {"Id": "C", "Text": "Jupiter"},
                    ],
                    "Score": 15,
                    "Answer": ["C"],
                },
                {
                    "QuestionId": "q6",
                    "Type": 6,
                    "Stem": "Describe the water cycle.",
                    "Score": 15,
                    "Answer": ["Evaporation, condensation, precipitation, collection"],
                    "ReferenceAnswer": ["Water evaporates, condenses into clouds and falls as rain."],
                    "IsAiJudge": True,
                    "Commits": ["Award marks for each named stage."],
                },
                {
                    "QuestionId": "q7",
                    "Type": 8,
                    "Stem": "Compute 6 * 7.",
                    "Score": 15,
                    "Answer": ["42"],
                    "IsAiJudge": True,
                },
                {
                    "QuestionId": "q8",
                    "Type": 5,
                    "Stem": "Solve x + 3 = 5.",
                    "Score": 15,
                    "Answer": ["x = 2"],
                    "IsAiJudge": False,
                },
            ],
        },
    ],
}

# (section index, question index) -> fully correct answer
CORRECT_ANSWERS = {
    (0, 0): ["B"],
    (0, 1): ["C", "A"],
    (0, 2): ["true"],
    (0, 3): [" paris "],
    (1, 0): ["C"],
    (1, 1): ["Water evaporates, forms clouds and returns as rain."],
    (1, 2): ["42"],
    (1, 3): ["x = 2"],
}


@pytest.fixture
def sample_exam_data() -> dict:
    """Return a fresh copy of the two-section sample document."""
    return copy.deepcopy(SAMPLE_EXAM)


@pytest.fixture
def sample_exam(sample_exam_data):
    return load_examination(sample_exam_data)


@pytest.fixture
def session(sample_exam) -> ExamSession:
    """A session with the sample exam loaded."""
    s = ExamSession()
    s.load_exam(sample_exam)
    return s


@pytest.fixture
def completed_session(session) -> ExamSession:
    """A session where every question was answered correctly and the exam ended."""
    session.start_exam()
    for (s_idx, q_idx), answer in CORRECT_ANSWERS.items():
        session.update_user_answer(s_idx, q_idx, answer)
    session.end_exam()
    return session


@pytest.fixture
def correct_answers() -> dict:
    return dict(CORRECT_ANSWERS)
