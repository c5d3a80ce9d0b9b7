"""
Response normalisation

Turns the JSON a model returned into GradingResult / Feedback objects,
coercing every field into the fixed schema regardless of what the model sent.
"""

import logging
import math
from typing import Any, Dict, List, Optional

from gradeflow.domain.models import Feedback, GradingResult, QuestionResult, Source
from gradeflow.pipelines.mock import fallback_feedback, generate_mock_grading_results
from gradeflow.utils.json_extraction import extract_json_object

logger = logging.getLogger(__name__)


DEFAULT_FEEDBACK = {
    "summary": "Good effort on this assignment!",
    "praise": "You showed good understanding of the concepts.",
    "improvements": "Keep practicing to improve your skills.",
    "next_steps": "Continue working on similar problems.",
    "encouragement": "Keep up the great work!",
}


class ResponseParseError(ValueError):
    """Raised when model output holds no usable JSON object."""
    pass


def _to_number(value: Any, default: float = 0.0) -> float:
    if isinstance(value, bool):
        return float(value)
    try:
        if isinstance(value, (int, float)):
            number = float(value)
        elif isinstance(value, str):
            number = float(value.strip().rstrip("%"))
        else:
            return default
    except (ValueError, OverflowError):
        return default
    return number if math.isfinite(number) else default


def _clamp(value: float, low: float, high: Optional[float] = None) -> int:
    value = max(low, value)
    if high is not None:
        value = min(high, value)
    return int(round(value))


def _to_text(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def _to_text_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [_to_text(item) for item in value if item is not None]


def _normalize_question(data: Dict[str, Any], index: int) -> QuestionResult:
    number = _to_number(data.get("number"))

    return QuestionResult(
        number=int(number) if number else index + 1,
        question=_to_text(data.get("question")),
        student_answer=_to_text(data.get("studentAnswer")),
        correct_answer=_to_text(data.get("correctAnswer")),
        score=_clamp(_to_number(data.get("score")), 0),
        max_score=_clamp(_to_number(data.get("maxScore"), 1.0), 1),
        is_correct=bool(data.get("isCorrect")),
        partial_credit=bool(data.get("partialCredit")),
        feedback=_to_text(data.get("feedback"))
    )


def normalize_grading_payload(data: Any) -> GradingResult:
    """
    Coerce a parsed grading payload into a GradingResult.

    Raises:
        ResponseParseError: If the payload is not a JSON object
    """
    if not isinstance(data, dict):
        raise ResponseParseError(f"Expected a JSON object, got {type(data).__name__}")

    raw_questions = data.get("questions")
    if not isinstance(raw_questions, list):
        raw_questions = []

    questions = [
        _normalize_question(question, index)
        for index, question in enumerate(raw_questions)
        if isinstance(question, dict)
    ]

    return GradingResult(
        total_score=_clamp(_to_number(data.get("totalScore")), 0, 100),
        questions=questions,
        strengths=_to_text_list(data.get("strengths")),
        weaknesses=_to_text_list(data.get("weaknesses")),
        common_errors=_to_text_list(data.get("commonErrors")),
        recommendations=_to_text_list(data.get("recommendations")),
        source=Source.GEMINI
    )


def normalize_feedback_payload(data: Any) -> Feedback:
    """
    Coerce a parsed feedback payload into a Feedback, filling blanks with defaults.

    Raises:
        ResponseParseError: If the payload is not a JSON object
    """
    if not isinstance(data, dict):
        raise ResponseParseError(f"Expected a JSON object, got {type(data).__name__}")

    def field_or_default(key: str, default_key: str) -> str:
        value = _to_text(data.get(key)).strip()
        return value or DEFAULT_FEEDBACK[default_key]

    return Feedback(
        summary=field_or_default("summary", "summary"),
        praise=field_or_default("praise", "praise"),
        improvements=field_or_default("improvements", "improvements"),
        next_steps=field_or_default("nextSteps", "next_steps"),
        encouragement=field_or_default("encouragement", "encouragement"),
        source=Source.GEMINI
    )


def _normalize(data: Any, normalizer, label: str):
    if data is None:
        raise ResponseParseError(f"No JSON object found in {label} response")
    try:
        return normalizer(data)
    except ResponseParseError:
        raise
    except (ValueError, TypeError, OverflowError, RecursionError) as e:
        raise ResponseParseError(f"Unusable {label} payload: {e}") from e


def extract_grading_result(raw_text: str) -> GradingResult:
    """
    Extract and normalise a grading result from raw model text.

    Raises:
        ResponseParseError: If no JSON object can be recovered or it cannot be normalised
    """
    return _normalize(extract_json_object(raw_text), normalize_grading_payload, "grading")


def extract_feedback(raw_text: str) -> Feedback:
    """
    Extract and normalise feedback from raw model text.

    Raises:
        ResponseParseError: If no JSON object can be recovered or it cannot be normalised
    """
    return _normalize(extract_json_object(raw_text), normalize_feedback_payload, "feedback")


def parse_grading_response(raw_text: str, subject: Optional[str] = None) -> GradingResult:
    """Parse grading output, falling back to mock results when it is unusable."""
    try:
        return extract_grading_result(raw_text)
    except ResponseParseError as e:
        logger.warning(f"Could not parse grading response, using mock results: {e}")
        return generate_mock_grading_results(subject)


def parse_feedback_response(raw_text: str) -> Feedback:
    """Parse feedback output, falling back to canned feedback when it is unusable."""
    try:
        return extract_feedback(raw_text)
    except ResponseParseError as e:
        logger.warning(f"Could not parse feedback response, using fallback feedback: {e}")
        return fallback_feedback()
