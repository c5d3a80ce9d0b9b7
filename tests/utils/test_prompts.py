"""
Tests for grading and feedback prompt construction.
"""

import pytest

from gradeflow.domain.models import FeedbackTone, GradingResult
from gradeflow.utils.prompts import (
    IMAGE_CONTENT_NOTE,
    LANGUAGE_INSTRUCTIONS,
    MATH_INSTRUCTIONS,
    SCIENCE_INSTRUCTIONS,
    TONE_INSTRUCTIONS,
    build_feedback_prompt,
    build_grading_prompt
)


class TestBuildGradingPrompt:
    """Tests for build_grading_prompt."""

    def test_contains_worksheet_text_and_context(self):
        prompt = build_grading_prompt(
            text="Q1: 2+2 = 4",
            subject="Math",
            grade_level="3rd grade",
            student_name="Ada"
        )

        assert "Q1: 2+2 = 4" in prompt
        assert "Student Name: Ada" in prompt
        assert "Grade Level: 3rd grade" in prompt
        assert '"totalScore"' in prompt
        assert '"partialCredit"' in prompt

    @pytest.mark.parametrize("subject,block", [
        ("Math", MATH_INSTRUCTIONS),
        ("Pre-Algebra MATH", MATH_INSTRUCTIONS),
        ("English", LANGUAGE_INSTRUCTIONS),
        ("Language Arts", LANGUAGE_INSTRUCTIONS),
        ("Earth Science", SCIENCE_INSTRUCTIONS),
    ])
    def test_subject_block_appended(self, subject, block):
        prompt = build_grading_prompt(text="answers", subject=subject)
        assert prompt.endswith(block)

    def test_unknown_subject_returns_base_template(self):
        prompt = build_grading_prompt(text="answers", subject="History")

        assert "Special" not in prompt
        assert prompt.rstrip().endswith("}")

    def test_math_checked_before_science(self):
        prompt = build_grading_prompt(text="x", subject="math and science")

        assert MATH_INSTRUCTIONS in prompt
        assert SCIENCE_INSTRUCTIONS not in prompt

    def test_missing_inputs_use_placeholders(self):
        prompt = build_grading_prompt()

        assert "Student Name: Unknown" in prompt
        assert "Subject: Unknown" in prompt
        assert "Grading Rubric" not in prompt

    def test_rubric_included(self):
        prompt = build_grading_prompt(text="x", rubric="5 points per question")
        assert "Grading Rubric: 5 points per question" in prompt

    def test_image_note_used_when_no_text(self):
        assert IMAGE_CONTENT_NOTE in build_grading_prompt(has_image=True)
        assert IMAGE_CONTENT_NOTE not in build_grading_prompt(text="typed answers", has_image=True)


class TestBuildFeedbackPrompt:
    """Tests for build_feedback_prompt."""

    def test_embeds_grading_summary(self, sample_grading_result):
        prompt = build_feedback_prompt(sample_grading_result, "Ada", "math", "strict", "3rd grade")

        assert "personalized feedback for Ada" in prompt
        assert "Total Score: 80%" in prompt
        assert "Strengths: Neat work" in prompt
        assert "Common Errors: Off by one" in prompt
        assert TONE_INSTRUCTIONS[FeedbackTone.STRICT] in prompt
        assert "appropriate for a 3rd grade student" in prompt
        assert '"nextSteps"' in prompt

    def test_empty_lists_and_defaults(self):
        prompt = build_feedback_prompt(GradingResult(total_score=50))

        assert "Strengths: None identified" in prompt
        assert "this student" in prompt
        assert "elementary student" in prompt

    def test_unknown_tone_uses_encouraging_instructions(self, sample_grading_result):
        prompt = build_feedback_prompt(sample_grading_result, tone="sarcastic")

        assert "Tone: sarcastic" in prompt
        assert TONE_INSTRUCTIONS[FeedbackTone.ENCOURAGING] in prompt
