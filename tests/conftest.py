"""
Shared test fixtures for GradeFlow.
Zero network calls - the Gemini HTTP layer is always mocked.
"""
import json
import pytest

from gradeflow.config import set_config
from gradeflow.domain.models import GradingResult, QuestionResult, Source


@pytest.fixture(autouse=True)
def _isolated_config(monkeypatch):
    """Keep real credentials and cached config out of every test."""
    for name in ("GEMINI_API_KEY", "GEMINI_MODEL", "GEMINI_BASE_URL", "GEMINI_TIMEOUT",
                 "GRADEFLOW_MOCK_DELAY", "GRADEFLOW_DEFAULT_TONE", "GRADEFLOW_RESULTS_DIR",
                 "GRADEFLOW_LOG_LEVEL", "GRADEFLOW_MAX_IMAGE_SIZE"):
        monkeypatch.delenv(name, raising=False)
    set_config(None)
    yield
    set_config(None)


@pytest.fixture
def sample_grading_result():
    return GradingResult(
        total_score=80,
        questions=[
            QuestionResult(number=1, question="2+2", student_answer="4", correct_answer="4",
                           score=5, max_score=5, is_correct=True, feedback="Correct"),
            QuestionResult(number=2, question="3x4", student_answer="11", correct_answer="12",
                           score=3, max_score=5, partial_credit=True, feedback="Close"),
        ],
        strengths=["Neat work"],
        weaknesses=["Multiplication facts"],
        common_errors=["Off by one"],
        recommendations=["Practice times tables"],
        source=Source.GEMINI
    )


@pytest.fixture
def grading_payload():
    return {
        "totalScore": 85,
        "questions": [
            {
                "number": 1,
                "question": "What is 2+2?",
                "studentAnswer": "4",
                "correctAnswer": "4",
                "score": 5,
                "maxScore": 5,
                "isCorrect": True,
                "partialCredit": False,
                "feedback": "Well done"
            },
            {
                "number": 2,
                "question": "What is 7x8?",
                "studentAnswer": "54",
                "correctAnswer": "56",
                "score": 2,
                "maxScore": 5,
                "isCorrect": False,
                "partialCredit": True,
                "feedback": "Check your multiplication"
            }
        ],
        "strengths": ["Addition"],
        "weaknesses": ["Multiplication"],
        "commonErrors": ["Times tables"],
        "recommendations": ["Practice 7s and 8s"]
    }


@pytest.fixture
def feedback_payload():
    return {
        "summary": "Ada did well overall.",
        "praise": "Addition was flawless.",
        "improvements": "Review multiplication.",
        "nextSteps": "Practice the 7 times table.",
        "encouragement": "Keep it up!"
    }


def gemini_body(text):
    """Build a generateContent response body around ``text``."""
    return {
        "candidates": [
            {"content": {"parts": [{"text": text}]}, "finishReason": "STOP"}
        ],
        "usageMetadata": {"promptTokenCount": 10, "candidatesTokenCount": 20, "totalTokenCount": 30}
    }


@pytest.fixture
def make_gemini_body():
    return gemini_body


@pytest.fixture
def as_completion():
    """Wrap a payload in model-style prose."""
    def wrap(payload):
        return f"Here is the grading:\n```json\n{json.dumps(payload)}\n```\nLet me know if you need more."
    return wrap
