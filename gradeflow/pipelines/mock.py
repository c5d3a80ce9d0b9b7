"""
Mock grading and feedback

Schema-valid stand-ins used when the Gemini API is unavailable or its answer
cannot be used. Values are random, the shape never changes.
"""

import random
from typing import Optional, Union

from gradeflow.domain.models import (
    Feedback,
    FeedbackTone,
    GradingResult,
    QuestionResult,
    Source
)


MOCK_STRENGTHS = [
    "Shows good understanding of basic concepts",
    "Work is organized and neat",
    "Follows instructions well",
]

MOCK_WEAKNESSES = [
    "Some computational errors",
    "Could show more work",
]

MOCK_COMMON_ERRORS = [
    "Calculation mistakes",
    "Misreading questions",
]

MOCK_RECOMMENDATIONS = [
    "Practice more problems of this type",
    "Double-check calculations",
    "Show all work steps",
]

FEEDBACK_TEMPLATES = {
    FeedbackTone.ENCOURAGING: {
        "summary": "Great job, {name}! You scored {score}% on this {subject} assignment and showed good understanding of the concepts.",
        "praise": "You did especially well on the problems where you showed your work clearly. Your effort really shows!",
        "improvements": "With a little more practice on calculations, you can improve even more. Don't worry about the mistakes - they help you learn!",
        "next_steps": "Try doing 2-3 similar problems each day to build your confidence. Ask for help when you need it!",
        "encouragement": "You're making wonderful progress, {name}. Keep up the excellent work!",
    },
    FeedbackTone.STRICT: {
        "summary": "{name}, you earned {score}% on this assignment. There is room for improvement in your work.",
        "praise": "Your correct answers show you understand the basic concepts when you apply yourself.",
        "improvements": "You need to be more careful with your calculations and show all your work. Several errors were preventable.",
        "next_steps": "Review the problems you missed and practice similar examples. Complete additional practice problems.",
        "encouragement": "With more focused effort and attention to detail, you can achieve better results.",
    },
    FeedbackTone.FUNNY: {
        "summary": "Hey {name}! You scored {score}% - not bad at all! Your brain was definitely working on this {subject} adventure.",
        "praise": "I loved seeing your thinking process! Some of your solutions were spot-on, like a detective solving a mystery.",
        "improvements": "A few calculation gremlins snuck into your work, but don't worry - we can catch them with more practice!",
        "next_steps": "Let's do some \"gremlin hunting\" with more practice problems. Make it a game to catch every mistake!",
        "encouragement": "You're becoming a real {subject} superhero, {name}! Keep flying high with your learning!",
    },
}


def _question_feedback(score: int, max_score: int) -> str:
    if score == max_score:
        return "Excellent work!"
    if score > 0:
        return "Good approach, but check your final answer."
    return "This needs more work. Review the concept and try again."


def generate_mock_grading_results(
    subject: Optional[str] = None,
    text: str = "",
    rng: Optional[random.Random] = None
) -> GradingResult:
    """
    Generate a random but internally consistent grading result.

    Args:
        subject: Worksheet subject (kept for signature parity with real grading)
        text: Worksheet text (unused by the generator)
        rng: Optional random generator for reproducible output

    Returns:
        GradingResult with 3-7 questions and source set to mock
    """
    rng = rng or random.Random()
    questions = []

    for number in range(1, rng.randint(3, 7) + 1):
        max_score = rng.randint(3, 7)
        score = rng.randint(0, max_score)

        questions.append(QuestionResult(
            number=number,
            question=f"Question {number}",
            student_answer=f"Student answer {number}",
            correct_answer=f"Correct answer {number}",
            score=score,
            max_score=max_score,
            is_correct=score == max_score,
            partial_credit=0 < score < max_score,
            feedback=_question_feedback(score, max_score)
        ))

    total_possible = sum(q.max_score for q in questions)
    total_earned = sum(q.score for q in questions)

    return GradingResult(
        total_score=round(total_earned / total_possible * 100),
        questions=questions,
        strengths=list(MOCK_STRENGTHS),
        weaknesses=list(MOCK_WEAKNESSES),
        common_errors=list(MOCK_COMMON_ERRORS),
        recommendations=list(MOCK_RECOMMENDATIONS),
        source=Source.MOCK
    )


def generate_mock_feedback(
    grading_results: Optional[GradingResult] = None,
    student_name: Optional[str] = None,
    subject: Optional[str] = None,
    tone: Union[str, FeedbackTone, None] = FeedbackTone.ENCOURAGING
) -> Feedback:
    name = student_name or "Student"
    # zero counts as missing
    score = (grading_results.total_score if grading_results else 0) or 75
    template = FEEDBACK_TEMPLATES[FeedbackTone.resolve(tone)]

    values = {"name": name, "score": score, "subject": subject or "this subject"}

    return Feedback(
        summary=template["summary"].format(**values),
        praise=template["praise"].format(**values),
        improvements=template["improvements"].format(**values),
        next_steps=template["next_steps"].format(**values),
        encouragement=template["encouragement"].format(**values),
        source=Source.MOCK
    )


def fallback_feedback() -> Feedback:
    """Canned feedback used when a real feedback response could not be parsed."""
    return Feedback(
        summary="Good effort on this assignment!",
        praise="You demonstrated understanding of key concepts.",
        improvements="There are a few areas where you can improve with practice.",
        next_steps="Continue practicing similar problems to strengthen your skills.",
        encouragement="Keep working hard - you're making great progress!",
        source=Source.FALLBACK
    )
