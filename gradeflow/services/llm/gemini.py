import requests
from typing import List, Dict, Any, Optional
import logging

from gradeflow.config import GeminiConfig, get_config
from .base import (
    BaseLLMClient,
    CompletionError,
    ConfigurationError,
    InlineImage,
    LLMResponse,
    SafetySetting,
    SamplingParams
)

logger = logging.getLogger(__name__)

HEALTH_CHECK_PROMPT = "Respond with just the word 'test' if you can read this."


class GeminiClient(BaseLLMClient):
    def __init__(self, config: GeminiConfig, **kwargs):
        super().__init__(model=config.model, **kwargs)

        if not config.has_api_key:
            raise ConfigurationError(
                "Gemini API key is required. Set GEMINI_API_KEY environment variable "
                "or pass it in GeminiConfig."
            )

        self.config = config
        self.base_url = config.base_url.rstrip("/")
        self.headers = {"Content-Type": "application/json"}

    def _build_parts(
        self,
        prompt: str,
        images: Optional[List[InlineImage]] = None
    ) -> List[Dict[str, Any]]:
        parts: List[Dict[str, Any]] = [{"text": prompt}]

        for image in images or []:
            parts.append({
                "inline_data": {
                    "mime_type": image.mime_type,
                    "data": image.data
                }
            })

        return parts

    def build_payload(
        self,
        prompt: str,
        sampling: SamplingParams,
        safety_settings: Optional[List[SafetySetting]] = None,
        images: Optional[List[InlineImage]] = None
    ) -> Dict[str, Any]:
        payload = {
            "contents": [{"parts": self._build_parts(prompt, images)}],
            "generationConfig": sampling.to_generation_config()
        }

        if safety_settings:
            payload["safetySettings"] = [s.to_dict() for s in safety_settings]

        return payload

    def _make_request(
        self,
        prompt: str,
        sampling: SamplingParams,
        safety_settings: Optional[List[SafetySetting]] = None,
        images: Optional[List[InlineImage]] = None
    ) -> LLMResponse:
        url = f"{self.base_url}/models/{self.model}:generateContent"
        payload = self.build_payload(prompt, sampling, safety_settings, images)

        logger.debug(f"Making request to Gemini: {url}")

        try:
            response = requests.post(
                url,
                params={"key": self.config.api_key},
                headers=self.headers,
                json=payload,
                timeout=self.config.request_timeout
            )
        except requests.RequestException as e:
            raise CompletionError(f"Gemini request failed: {e}") from e

        if not response.ok:
            logger.error(f"Gemini API error: {response.status_code} - {response.text}")
            raise CompletionError(
                f"Gemini API error: {response.status_code} {response.reason}",
                status_code=response.status_code,
                reason=response.reason
            )

        try:
            data = response.json()
        except ValueError as e:
            raise CompletionError(f"Gemini returned a non-JSON body: {e}") from e

        return self._parse_response(data)

    def _parse_response(self, data: Dict[str, Any]) -> LLMResponse:
        try:
            candidate = data["candidates"][0]
            text = candidate["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError) as e:
            logger.error(f"Unexpected response format from Gemini: {data}")
            raise CompletionError("No valid response from Gemini API") from e

        usage = data.get("usageMetadata") or {}

        return LLMResponse(
            content=text,
            usage={
                "prompt_tokens": usage.get("promptTokenCount", 0),
                "completion_tokens": usage.get("candidatesTokenCount", 0),
                "total_tokens": usage.get("totalTokenCount", 0)
            },
            model=data.get("modelVersion", self.model),
            finish_reason=candidate.get("finishReason")
        )

    def list_models(self) -> List[Dict[str, Any]]:
        url = f"{self.base_url}/models"

        try:
            response = requests.get(
                url,
                params={"key": self.config.api_key},
                headers=self.headers,
                timeout=self.config.request_timeout
            )
        except requests.RequestException as e:
            raise CompletionError(f"Gemini model listing failed: {e}") from e

        if not response.ok:
            raise CompletionError(
                f"Failed to list Gemini models: {response.status_code} {response.reason}",
                status_code=response.status_code,
                reason=response.reason
            )

        return response.json().get("models", [])

    def check_connection(self) -> Dict[str, Any]:
        """Send a tiny prompt and report whether the API answered sensibly."""
        try:
            text = self.complete_text(
                HEALTH_CHECK_PROMPT,
                sampling=SamplingParams(temperature=0.0, max_output_tokens=16)
            )
        except CompletionError as e:
            return {
                "status": "error",
                "has_key": True,
                "response_status": e.status_code,
                "error": str(e)
            }

        return {
            "status": "success",
            "has_key": True,
            "test_result": (
                "API responded correctly" if "test" in text.lower() else "Unexpected response"
            ),
            "response": text
        }


def create_gemini_client(config: Optional[GeminiConfig] = None) -> GeminiClient:
    return GeminiClient(config or get_config().gemini)
