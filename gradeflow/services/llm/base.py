from abc import ABC, abstractmethod
from typing import List, Dict, Any, Optional
from dataclasses import dataclass, field
import logging

logger = logging.getLogger(__name__)


class ConfigurationError(ValueError):
    """Raised when a client is built without the credentials it needs."""
    pass


class CompletionError(Exception):
    """Raised when a completion request fails or returns no usable text."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        reason: Optional[str] = None
    ):
        super().__init__(message)
        self.status_code = status_code
        self.reason = reason


@dataclass
class SamplingParams:
    temperature: float = 0.2
    top_k: int = 32
    top_p: float = 0.9
    max_output_tokens: int = 4096

    def to_generation_config(self) -> Dict[str, Any]:
        return {
            "temperature": self.temperature,
            "topK": self.top_k,
            "topP": self.top_p,
            "maxOutputTokens": self.max_output_tokens
        }


@dataclass
class SafetySetting:
    category: str
    threshold: str = "BLOCK_MEDIUM_AND_ABOVE"

    def to_dict(self) -> Dict[str, str]:
        return {"category": self.category, "threshold": self.threshold}


@dataclass
class InlineImage:
    mime_type: str
    data: str  # base64 encoded bytes


@dataclass
class LLMResponse:
    content: str
    usage: Optional[Dict[str, int]] = None
    model: Optional[str] = None
    finish_reason: Optional[str] = None


class BaseLLMClient(ABC):
    def __init__(self, model: str, **kwargs):
        self.model = model

    @abstractmethod
    def _make_request(
        self,
        prompt: str,
        sampling: SamplingParams,
        safety_settings: Optional[List[SafetySetting]] = None,
        images: Optional[List[InlineImage]] = None
    ) -> LLMResponse:
        pass

    def complete(
        self,
        prompt: str,
        sampling: Optional[SamplingParams] = None,
        safety_settings: Optional[List[SafetySetting]] = None,
        images: Optional[List[InlineImage]] = None
    ) -> LLMResponse:
        """
        Send a single completion request.

        Failures propagate to the caller as CompletionError; there is no
        retry at this layer.
        """
        sampling = sampling or SamplingParams()

        logger.debug(
            f"LLM request: model={self.model}, temperature={sampling.temperature}, "
            f"images={len(images or [])}"
        )
        response = self._make_request(
            prompt=prompt,
            sampling=sampling,
            safety_settings=safety_settings,
            images=images
        )
        logger.debug(f"LLM request finished: finish_reason={response.finish_reason}")

        return response

    def complete_text(
        self,
        prompt: str,
        sampling: Optional[SamplingParams] = None,
        safety_settings: Optional[List[SafetySetting]] = None,
        images: Optional[List[InlineImage]] = None
    ) -> str:
        response = self.complete(
            prompt,
            sampling=sampling,
            safety_settings=safety_settings,
            images=images
        )
        return response.content
