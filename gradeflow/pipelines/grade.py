"""
Grading Pipeline

Grades worksheet content with Gemini and generates personalised feedback.
Every failure (missing key, failed request, unusable answer) is turned into a
structurally valid mock result, so callers always receive a complete payload.
"""

import time
import logging
from pathlib import Path
from typing import Optional, Union

from gradeflow.config import GradeFlowConfig, GradingConfig, get_config
from gradeflow.domain.models import (
    Feedback,
    FeedbackOutcome,
    FeedbackTone,
    FallbackReason,
    GradingOutcome,
    GradingResult
)
from gradeflow.services.llm.base import (
    BaseLLMClient,
    SafetySetting,
    SamplingParams
)
from gradeflow.services.llm.gemini import GeminiClient
from gradeflow.pipelines.mock import (
    fallback_feedback,
    generate_mock_feedback,
    generate_mock_grading_results
)
from gradeflow.pipelines.normalize import (
    ResponseParseError,
    extract_feedback,
    extract_grading_result
)
from gradeflow.utils.images import encode_worksheet_image
from gradeflow.utils.prompts import build_feedback_prompt, build_grading_prompt

logger = logging.getLogger(__name__)


# Low temperature keeps scores consistent between runs.
GRADING_SAMPLING = SamplingParams(temperature=0.2, top_k=32, top_p=0.9, max_output_tokens=4096)
FEEDBACK_SAMPLING = SamplingParams(temperature=0.4, top_k=32, top_p=0.9, max_output_tokens=2048)

GRADING_SAFETY_SETTINGS = [
    SafetySetting(category="HARM_CATEGORY_HARASSMENT"),
    SafetySetting(category="HARM_CATEGORY_HATE_SPEECH"),
]


class GradingPipeline:
    """
    Grade-then-feedback pipeline around a single LLM client.

    A pipeline without a client behaves as if no API key was configured and
    always answers with mock data.
    """

    def __init__(
        self,
        llm_client: Optional[BaseLLMClient] = None,
        config: Optional[GradingConfig] = None
    ):
        self.llm_client = llm_client
        self.config = config or GradingConfig()

    def _mock_grading(
        self,
        subject: Optional[str],
        text: str,
        reason: FallbackReason,
        error: Optional[str] = None
    ) -> GradingOutcome:
        if self.config.mock_delay > 0:
            time.sleep(self.config.mock_delay)

        return GradingOutcome(
            result=generate_mock_grading_results(subject, text),
            fallback_reason=reason,
            error=error
        )

    def grade(
        self,
        text: Optional[str] = None,
        subject: Optional[str] = None,
        grade_level: Optional[str] = None,
        rubric: Optional[str] = None,
        student_name: Optional[str] = None,
        image_path: Optional[Union[str, Path]] = None
    ) -> GradingOutcome:
        """
        Grade one worksheet.

        Args:
            text: Extracted worksheet text
            subject: Subject name, also selects subject-specific instructions
            grade_level: Student grade level
            rubric: Optional free-text rubric
            student_name: Student name for the prompt
            image_path: Optional worksheet scan sent alongside the text

        Returns:
            GradingOutcome; fallback_reason is set when mock data was used
        """
        text = text or ""

        if self.llm_client is None:
            logger.warning("Gemini API key not found, using mock grading")
            return self._mock_grading(subject, text, FallbackReason.NO_API_KEY)

        try:
            images = []
            if image_path:
                images.append(encode_worksheet_image(image_path, max_size=self.config.max_image_size))

            prompt = build_grading_prompt(
                text=text,
                subject=subject,
                grade_level=grade_level,
                rubric=rubric,
                student_name=student_name,
                has_image=bool(images)
            )

            raw_text = self.llm_client.complete_text(
                prompt,
                sampling=GRADING_SAMPLING,
                safety_settings=GRADING_SAFETY_SETTINGS,
                images=images or None
            )
        except Exception as e:
            logger.error(f"Gemini grading error: {e}")
            logger.warning("Falling back to mock grading")
            return self._mock_grading(subject, text, FallbackReason.REQUEST_FAILED, str(e))

        try:
            result = extract_grading_result(raw_text)
        except ResponseParseError as e:
            logger.warning(f"Error parsing Gemini grading response, using mock grading: {e}")
            return GradingOutcome(
                result=generate_mock_grading_results(subject, text),
                fallback_reason=FallbackReason.UNPARSEABLE_RESPONSE,
                error=str(e)
            )

        logger.info(f"Graded worksheet: {result.total_score}% across {len(result.questions)} questions")
        return GradingOutcome(result=result)

    def generate_feedback(
        self,
        grading_results: GradingResult,
        student_name: Optional[str] = None,
        subject: Optional[str] = None,
        tone: Union[str, FeedbackTone, None] = None,
        grade_level: Optional[str] = None
    ) -> FeedbackOutcome:
        """
        Generate feedback for an already graded worksheet.

        Returns:
            FeedbackOutcome; mock feedback when the API is unavailable, fallback
            feedback when its answer cannot be parsed
        """
        tone = tone or self.config.default_tone

        def mock(reason: FallbackReason, error: Optional[str] = None) -> FeedbackOutcome:
            return FeedbackOutcome(
                result=generate_mock_feedback(grading_results, student_name, subject, tone),
                fallback_reason=reason,
                error=error
            )

        if self.llm_client is None:
            logger.warning("Gemini API key not found, using mock feedback")
            return mock(FallbackReason.NO_API_KEY)

        prompt = build_feedback_prompt(
            grading_results,
            student_name=student_name,
            subject=subject,
            tone=tone,
            grade_level=grade_level
        )

        try:
            raw_text = self.llm_client.complete_text(prompt, sampling=FEEDBACK_SAMPLING)
        except Exception as e:
            logger.error(f"Gemini feedback error: {e}")
            return mock(FallbackReason.REQUEST_FAILED, str(e))

        try:
            feedback = extract_feedback(raw_text)
        except ResponseParseError as e:
            logger.warning(f"Error parsing feedback response: {e}")
            return FeedbackOutcome(
                result=fallback_feedback(),
                fallback_reason=FallbackReason.UNPARSEABLE_RESPONSE,
                error=str(e)
            )

        return FeedbackOutcome(result=feedback)


# Factory functions for easy pipeline creation

def create_grading_pipeline(config: Optional[GradeFlowConfig] = None) -> GradingPipeline:
    """
    Create a grading pipeline from configuration.

    A Gemini client is only attached when an API key is configured.
    """
    config = config or get_config()

    llm_client = GeminiClient(config.gemini) if config.gemini.has_api_key else None
    return GradingPipeline(llm_client=llm_client, config=config.grading)


def grade_with_gemini(
    text: Optional[str] = None,
    subject: Optional[str] = None,
    grade_level: Optional[str] = None,
    rubric: Optional[str] = None,
    student_name: Optional[str] = None,
    image_path: Optional[Union[str, Path]] = None,
    config: Optional[GradeFlowConfig] = None
) -> GradingResult:
    """Convenience function returning only the grading payload."""
    pipeline = create_grading_pipeline(config)
    outcome = pipeline.grade(
        text=text,
        subject=subject,
        grade_level=grade_level,
        rubric=rubric,
        student_name=student_name,
        image_path=image_path
    )
    return outcome.result


def generate_feedback(
    grading_results: GradingResult,
    student_name: Optional[str] = None,
    subject: Optional[str] = None,
    tone: Union[str, FeedbackTone, None] = FeedbackTone.ENCOURAGING,
    grade_level: Optional[str] = None,
    config: Optional[GradeFlowConfig] = None
) -> Feedback:
    """Convenience function returning only the feedback payload."""
    pipeline = create_grading_pipeline(config)
    outcome = pipeline.generate_feedback(
        grading_results,
        student_name=student_name,
        subject=subject,
        tone=tone,
        grade_level=grade_level
    )
    return outcome.result
