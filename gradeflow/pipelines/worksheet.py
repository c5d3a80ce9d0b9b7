"""
Worksheet processing

Drives one worksheet through grading and feedback, recording status and
progress on the worksheet as it goes, and persists worksheets as JSON files.
"""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional, Union

from gradeflow.domain.models import FeedbackTone, Worksheet, WorksheetStatus
from gradeflow.pipelines.grade import GradingPipeline
from gradeflow.utils.text import detect_subject, extract_student_name

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[Worksheet], None]


def process_worksheet(
    worksheet: Worksheet,
    pipeline: GradingPipeline,
    tone: Union[str, FeedbackTone, None] = None,
    on_progress: Optional[ProgressCallback] = None
) -> Worksheet:
    """
    Grade a worksheet and attach feedback.

    Status moves processing -> grading -> graded. Any exception marks the
    worksheet as error instead of propagating.

    Args:
        worksheet: Worksheet to process, updated in place
        pipeline: Grading pipeline to use
        tone: Feedback tone, defaults to the pipeline's configured tone
        on_progress: Called with the worksheet after every status change

    Returns:
        The same worksheet instance
    """
    def report(**changes) -> None:
        worksheet.update(**changes)
        if on_progress:
            on_progress(worksheet)

    try:
        if not worksheet.student_name:
            worksheet.student_name = extract_student_name(worksheet.text)
        if not worksheet.subject:
            worksheet.subject = detect_subject(worksheet.text)

        report(status=WorksheetStatus.GRADING, processing_stage="grading", progress=60)

        grading = pipeline.grade(
            text=worksheet.text,
            subject=worksheet.subject,
            grade_level=worksheet.grade_level,
            rubric=worksheet.rubric,
            student_name=worksheet.student_name,
            image_path=worksheet.image_path
        )

        report(grading_results=grading.result, processing_stage="feedback", progress=80)

        feedback = pipeline.generate_feedback(
            grading.result,
            student_name=worksheet.student_name,
            subject=worksheet.subject,
            tone=tone,
            grade_level=worksheet.grade_level
        )

        report(
            status=WorksheetStatus.GRADED,
            processing_stage="completed",
            progress=100,
            feedback=feedback.result,
            completed_at=datetime.now()
        )
        logger.info(f"Worksheet {worksheet.worksheet_id} processed successfully")

    except Exception as e:
        logger.error(f"Worksheet processing error: {worksheet.worksheet_id}: {e}")
        report(status=WorksheetStatus.ERROR, error=str(e))

    return worksheet


class WorksheetStore:
    """Stores worksheets as ``<worksheet_id>.json`` files in one directory."""

    def __init__(self, directory: Path):
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)

    def path_for(self, worksheet_id: str) -> Path:
        return self.directory / f"{worksheet_id}.json"

    def save(self, worksheet: Worksheet) -> Path:
        path = self.path_for(worksheet.worksheet_id)
        worksheet.save_to_file(path)
        logger.debug(f"Saved worksheet to {path}")
        return path

    def load(self, worksheet_id: str) -> Worksheet:
        return Worksheet.load_from_file(self.path_for(worksheet_id))

    def list_worksheets(self) -> List[Worksheet]:
        worksheets = []

        for path in sorted(self.directory.glob("*.json")):
            try:
                worksheets.append(Worksheet.load_from_file(path))
            except (json.JSONDecodeError, KeyError, ValueError) as e:
                logger.warning(f"Skipping unreadable worksheet file {path}: {e}")

        worksheets.sort(key=lambda w: w.created_at)
        return worksheets
