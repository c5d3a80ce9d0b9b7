import os
from pathlib import Path
from typing import Optional
from dataclasses import dataclass, field
from dotenv import load_dotenv

load_dotenv()


DEFAULT_GEMINI_MODEL = "gemini-1.5-flash"
DEFAULT_GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"


@dataclass
class GeminiConfig:
    api_key: Optional[str] = None
    model: str = DEFAULT_GEMINI_MODEL
    base_url: str = DEFAULT_GEMINI_BASE_URL
    request_timeout: Optional[float] = None  # seconds; None leaves it to the transport

    @property
    def has_api_key(self) -> bool:
        return bool(self.api_key)

    @classmethod
    def from_env(cls) -> "GeminiConfig":
        timeout = os.getenv("GEMINI_TIMEOUT")

        return cls(
            api_key=os.getenv("GEMINI_API_KEY") or None,
            model=os.getenv("GEMINI_MODEL", cls.model),
            base_url=os.getenv("GEMINI_BASE_URL", cls.base_url),
            request_timeout=float(timeout) if timeout else None
        )


@dataclass
class GradingConfig:
    default_tone: str = "encouraging"
    mock_delay: float = 0.0
    max_image_size: int = 2048

    @classmethod
    def from_env(cls) -> "GradingConfig":
        return cls(
            default_tone=os.getenv("GRADEFLOW_DEFAULT_TONE", cls.default_tone),
            mock_delay=float(os.getenv("GRADEFLOW_MOCK_DELAY", cls.mock_delay)),
            max_image_size=int(os.getenv("GRADEFLOW_MAX_IMAGE_SIZE", cls.max_image_size))
        )


@dataclass
class GradeFlowConfig:
    gemini: GeminiConfig = field(default_factory=GeminiConfig)
    grading: GradingConfig = field(default_factory=GradingConfig)
    results_dir: Path = Path("./data/results")
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "GradeFlowConfig":
        return cls(
            gemini=GeminiConfig.from_env(),
            grading=GradingConfig.from_env(),
            results_dir=Path(os.getenv("GRADEFLOW_RESULTS_DIR", "./data/results")),
            log_level=os.getenv("GRADEFLOW_LOG_LEVEL", "INFO")
        )

    def ensure_data_directories(self) -> None:
        self.results_dir.mkdir(parents=True, exist_ok=True)


# Global configuration instance
_config: Optional[GradeFlowConfig] = None


def get_config() -> GradeFlowConfig:
    global _config
    if _config is None:
        _config = GradeFlowConfig.from_env()
    return _config


def set_config(config: Optional[GradeFlowConfig]) -> None:
    global _config
    _config = config
