from typing import List, Dict, Any, Optional, Union
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
import json
import uuid


class Source(Enum):
    GEMINI = "gemini"
    MOCK = "mock"
    FALLBACK = "fallback"


class FeedbackTone(Enum):
    ENCOURAGING = "encouraging"
    STRICT = "strict"
    FUNNY = "funny"

    @classmethod
    def resolve(cls, tone: Union[str, "FeedbackTone", None]) -> "FeedbackTone":
        """Map a caller-supplied tone onto a known tone, defaulting to encouraging."""
        if isinstance(tone, cls):
            return tone
        try:
            return cls(str(tone).strip().lower())
        except ValueError:
            return cls.ENCOURAGING


class FallbackReason(Enum):
    NO_API_KEY = "no_api_key"
    REQUEST_FAILED = "request_failed"
    UNPARSEABLE_RESPONSE = "unparseable_response"


class WorksheetStatus(Enum):
    PROCESSING = "processing"
    GRADING = "grading"
    GRADED = "graded"
    ERROR = "error"


def calculate_grade_letter(percentage: float) -> str:
    if percentage >= 97: return "A+"
    elif percentage >= 93: return "A"
    elif percentage >= 90: return "A-"
    elif percentage >= 87: return "B+"
    elif percentage >= 83: return "B"
    elif percentage >= 80: return "B-"
    elif percentage >= 77: return "C+"
    elif percentage >= 73: return "C"
    elif percentage >= 70: return "C-"
    elif percentage >= 67: return "D+"
    elif percentage >= 63: return "D"
    elif percentage >= 60: return "D-"
    else: return "F"


def _parse_timestamp(value: Optional[str]) -> datetime:
    return datetime.fromisoformat(value) if value else datetime.now()


@dataclass
class QuestionResult:
    number: int
    question: str = ""
    student_answer: str = ""
    correct_answer: str = ""
    score: int = 0
    max_score: int = 1
    is_correct: bool = False
    partial_credit: bool = False
    feedback: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "number": self.number,
            "question": self.question,
            "studentAnswer": self.student_answer,
            "correctAnswer": self.correct_answer,
            "score": self.score,
            "maxScore": self.max_score,
            "isCorrect": self.is_correct,
            "partialCredit": self.partial_credit,
            "feedback": self.feedback
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "QuestionResult":
        return cls(
            number=data["number"],
            question=data.get("question", ""),
            student_answer=data.get("studentAnswer", ""),
            correct_answer=data.get("correctAnswer", ""),
            score=data.get("score", 0),
            max_score=data.get("maxScore", 1),
            is_correct=data.get("isCorrect", False),
            partial_credit=data.get("partialCredit", False),
            feedback=data.get("feedback", "")
        )


@dataclass
class GradingResult:
    total_score: int
    questions: List[QuestionResult] = field(default_factory=list)
    strengths: List[str] = field(default_factory=list)
    weaknesses: List[str] = field(default_factory=list)
    common_errors: List[str] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)
    source: Source = Source.GEMINI
    graded_at: datetime = field(default_factory=datetime.now)

    @property
    def points_earned(self) -> int:
        return sum(q.score for q in self.questions)

    @property
    def points_possible(self) -> int:
        return sum(q.max_score for q in self.questions)

    @property
    def grade_letter(self) -> str:
        return calculate_grade_letter(self.total_score)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalScore": self.total_score,
            "questions": [q.to_dict() for q in self.questions],
            "strengths": list(self.strengths),
            "weaknesses": list(self.weaknesses),
            "commonErrors": list(self.common_errors),
            "recommendations": list(self.recommendations),
            "gradedAt": self.graded_at.isoformat(),
            "source": self.source.value
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GradingResult":
        return cls(
            total_score=data["totalScore"],
            questions=[QuestionResult.from_dict(q) for q in data.get("questions", [])],
            strengths=data.get("strengths", []),
            weaknesses=data.get("weaknesses", []),
            common_errors=data.get("commonErrors", []),
            recommendations=data.get("recommendations", []),
            source=Source(data.get("source", "gemini")),
            graded_at=_parse_timestamp(data.get("gradedAt"))
        )


@dataclass
class Feedback:
    summary: str
    praise: str
    improvements: str
    next_steps: str
    encouragement: str
    source: Source = Source.GEMINI
    generated_at: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "summary": self.summary,
            "praise": self.praise,
            "improvements": self.improvements,
            "nextSteps": self.next_steps,
            "encouragement": self.encouragement,
            "generatedAt": self.generated_at.isoformat(),
            "source": self.source.value
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Feedback":
        return cls(
            summary=data["summary"],
            praise=data["praise"],
            improvements=data["improvements"],
            next_steps=data["nextSteps"],
            encouragement=data["encouragement"],
            source=Source(data.get("source", "gemini")),
            generated_at=_parse_timestamp(data.get("generatedAt"))
        )


@dataclass
class GradingOutcome:
    """A grading result together with how it was produced."""
    result: GradingResult
    fallback_reason: Optional[FallbackReason] = None
    error: Optional[str] = None

    @property
    def is_fallback(self) -> bool:
        return self.fallback_reason is not None


@dataclass
class FeedbackOutcome:
    """Generated feedback together with how it was produced."""
    result: Feedback
    fallback_reason: Optional[FallbackReason] = None
    error: Optional[str] = None

    @property
    def is_fallback(self) -> bool:
        return self.fallback_reason is not None


@dataclass
class Worksheet:
    student_name: Optional[str] = None
    subject: Optional[str] = None
    grade_level: Optional[str] = None
    rubric: Optional[str] = None
    text: str = ""
    image_path: Optional[str] = None
    worksheet_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    status: WorksheetStatus = WorksheetStatus.PROCESSING
    processing_stage: str = "queued"
    progress: int = 0
    grading_results: Optional[GradingResult] = None
    feedback: Optional[Feedback] = None
    error: Optional[str] = None
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)
    completed_at: Optional[datetime] = None

    def update(self, **changes: Any) -> None:
        for name, value in changes.items():
            setattr(self, name, value)
        self.updated_at = datetime.now()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "worksheetId": self.worksheet_id,
            "studentName": self.student_name,
            "subject": self.subject,
            "gradeLevel": self.grade_level,
            "rubric": self.rubric,
            "text": self.text,
            "imagePath": self.image_path,
            "status": self.status.value,
            "processingStage": self.processing_stage,
            "progress": self.progress,
            "gradingResults": self.grading_results.to_dict() if self.grading_results else None,
            "feedback": self.feedback.to_dict() if self.feedback else None,
            "error": self.error,
            "createdAt": self.created_at.isoformat(),
            "updatedAt": self.updated_at.isoformat(),
            "completedAt": self.completed_at.isoformat() if self.completed_at else None
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Worksheet":
        grading = data.get("gradingResults")
        feedback = data.get("feedback")
        completed_at = data.get("completedAt")

        return cls(
            worksheet_id=data["worksheetId"],
            student_name=data.get("studentName"),
            subject=data.get("subject"),
            grade_level=data.get("gradeLevel"),
            rubric=data.get("rubric"),
            text=data.get("text", ""),
            image_path=data.get("imagePath"),
            status=WorksheetStatus(data.get("status", "processing")),
            processing_stage=data.get("processingStage", "queued"),
            progress=data.get("progress", 0),
            grading_results=GradingResult.from_dict(grading) if grading else None,
            feedback=Feedback.from_dict(feedback) if feedback else None,
            error=data.get("error"),
            created_at=_parse_timestamp(data.get("createdAt")),
            updated_at=_parse_timestamp(data.get("updatedAt")),
            completed_at=datetime.fromisoformat(completed_at) if completed_at else None
        )

    def save_to_file(self, file_path: Union[str, Path]) -> None:
        with open(file_path, 'w', encoding='utf-8') as f:
            json.dump(self.to_dict(), f, indent=2, ensure_ascii=False)

    @classmethod
    def load_from_file(cls, file_path: Union[str, Path]) -> "Worksheet":
        with open(file_path, 'r', encoding='utf-8') as f:
            data = json.load(f)
        return cls.from_dict(data)
