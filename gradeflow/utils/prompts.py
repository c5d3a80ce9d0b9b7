from typing import List, Optional, Union

from gradeflow.domain.models import FeedbackTone, GradingResult


GRADING_PROMPT = """You are an experienced {subject} teacher grading a {grade_level} student's worksheet.
Please evaluate the student's work and provide detailed grading information.

Student Name: {student_name}
Subject: {subject}
Grade Level: {grade_level}

Worksheet Content:
{content}

{rubric_line}

Please provide your response in the following JSON format:
{{
    "totalScore": <percentage score 0-100>,
    "questions": [
        {{
            "number": <question number>,
            "question": "<question text>",
            "studentAnswer": "<student's answer>",
            "correctAnswer": "<correct answer>",
            "score": <points earned>,
            "maxScore": <maximum points>,
            "isCorrect": <true/false>,
            "partialCredit": <true/false>,
            "feedback": "<specific feedback for this question>"
        }}
    ],
    "strengths": ["<strength 1>", "<strength 2>"],
    "weaknesses": ["<weakness 1>", "<weakness 2>"],
    "commonErrors": ["<error 1>", "<error 2>"],
    "recommendations": ["<recommendation 1>", "<recommendation 2>"]
}}"""

IMAGE_CONTENT_NOTE = (
    "[The worksheet is attached as an image. Read every question and the "
    "student's handwritten answers directly from the image.]"
)

MATH_INSTRUCTIONS = """

Special Math Grading Instructions:
- Evaluate work shown, not just final answers
- Award partial credit for correct methodology even if final answer is wrong
- Check for computational errors vs conceptual errors
- Look for proper use of mathematical notation
- Consider alternative solution methods as valid"""

LANGUAGE_INSTRUCTIONS = """

Special Language Arts Grading Instructions:
- Evaluate grammar, spelling, and sentence structure
- Consider age-appropriate expectations for writing quality
- Look for evidence of reading comprehension
- Assess vocabulary usage and variety
- Check for proper punctuation and capitalization"""

SCIENCE_INSTRUCTIONS = """

Special Science Grading Instructions:
- Evaluate scientific reasoning and methodology
- Check for proper use of scientific vocabulary
- Look for evidence of understanding scientific concepts
- Consider accuracy of observations and conclusions
- Assess ability to apply scientific principles"""

# Checked in order; the first matching keyword wins.
SUBJECT_INSTRUCTIONS = [
    (("math",), MATH_INSTRUCTIONS),
    (("english", "language"), LANGUAGE_INSTRUCTIONS),
    (("science",), SCIENCE_INSTRUCTIONS),
]

TONE_INSTRUCTIONS = {
    FeedbackTone.ENCOURAGING: (
        "Be very positive and encouraging. Focus on what the student did well and "
        "frame areas for improvement as opportunities to grow."
    ),
    FeedbackTone.STRICT: (
        "Be direct and specific about errors. Maintain high standards while being "
        "constructive."
    ),
    FeedbackTone.FUNNY: (
        "Use gentle humor and engaging language appropriate for the student's age. "
        "Make learning fun while being helpful."
    ),
}

FEEDBACK_PROMPT = """Generate personalized feedback for {student_name} based on their {subject} worksheet performance.

Grading Results:
Total Score: {total_score}%
Strengths: {strengths}
Areas for Improvement: {weaknesses}
Common Errors: {common_errors}

Tone: {tone} - {tone_instructions}

Provide feedback in the following JSON format:
{{
    "summary": "<2-3 sentence overall summary>",
    "praise": "<specific positive feedback>",
    "improvements": "<constructive suggestions for improvement>",
    "nextSteps": "<specific recommendations for continued learning>",
    "encouragement": "<motivational closing message>"
}}

Keep the language appropriate for a {grade_level} student."""


def get_subject_instructions(subject: Optional[str]) -> str:
    if not subject:
        return ""

    lowered = subject.lower()
    for keywords, instructions in SUBJECT_INSTRUCTIONS:
        if any(keyword in lowered for keyword in keywords):
            return instructions

    return ""


def build_grading_prompt(
    text: Optional[str] = None,
    subject: Optional[str] = None,
    grade_level: Optional[str] = None,
    rubric: Optional[str] = None,
    student_name: Optional[str] = None,
    has_image: bool = False
) -> str:
    content = text or ""
    if not content.strip() and has_image:
        content = IMAGE_CONTENT_NOTE

    prompt = GRADING_PROMPT.format(
        subject=subject or "Unknown",
        grade_level=grade_level or "Unknown",
        student_name=student_name or "Unknown",
        content=content,
        rubric_line=f"Grading Rubric: {rubric}" if rubric else ""
    )

    return prompt + get_subject_instructions(subject)


def _join_or_none(items: List[str]) -> str:
    return ", ".join(str(item) for item in items) if items else "None identified"


def build_feedback_prompt(
    grading_results: GradingResult,
    student_name: Optional[str] = None,
    subject: Optional[str] = None,
    tone: Union[str, FeedbackTone, None] = FeedbackTone.ENCOURAGING,
    grade_level: Optional[str] = None
) -> str:
    resolved = FeedbackTone.resolve(tone)
    tone_label = tone.value if isinstance(tone, FeedbackTone) else (tone or resolved.value)

    return FEEDBACK_PROMPT.format(
        student_name=student_name or "this student",
        subject=subject or "Unknown",
        total_score=grading_results.total_score,
        strengths=_join_or_none(grading_results.strengths),
        weaknesses=_join_or_none(grading_results.weaknesses),
        common_errors=_join_or_none(grading_results.common_errors),
        tone=tone_label,
        tone_instructions=TONE_INSTRUCTIONS[resolved],
        grade_level=grade_level or "elementary"
    )
