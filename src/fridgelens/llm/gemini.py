"""Gemini backend reached through the Generative Language REST API."""
# mypy: ignore-errors

from __future__ import annotations

import base64
import logging
from typing import Any, Optional

import httpx

from fridgelens.errors import (
    BackendConfigurationError,
    BackendQuotaError,
    BackendRejectedError,
    BackendUnavailableError,
    FridgelensError,
)

from .interface import HttpModelBackend
from .prompts import DETECTION_PROMPT, build_recipe_prompt, clean_ingredients, ensure_recipe_heading

logger = logging.getLogger(__name__)

QUOTA_MESSAGE = "API quota exceeded. Please try again in a few minutes."
INVALID_KEY_MESSAGE = "Invalid API key. Please check your Gemini API configuration."
NOT_CONFIGURED_MESSAGE = "AI service is not configured."


def _error_details(response: httpx.Response) -> tuple[str, str]:
    """Return (status, message) from a Google API error body."""

    try:
        error = (response.json() or {}).get("error") or {}
    except ValueError:
        return "", response.text[:200]
    return str(error.get("status") or ""), str(error.get("message") or "")


class GeminiBackend(HttpModelBackend):
    """Call `models/{model}:generateContent` with an API key header."""

    name = "gemini"
    unavailable_message = "AI service is temporarily unavailable. Please try again."

    def __init__(
        self,
        *,
        api_key: Optional[str],
        model: str,
        timeout: float,
        base_url: str = "https://generativelanguage.googleapis.com/v1beta",
        temperature: float = 0.7,
        top_p: float = 0.9,
        max_tokens: int = 800,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        super().__init__(timeout=timeout, transport=transport)
        self._api_key = (api_key or "").strip()
        self._model = model
        self._base_url = base_url.rstrip("/")
        self._temperature = max(0.0, float(temperature))
        self._top_p = float(top_p)
        self._max_tokens = max(1, int(max_tokens))

    @property
    def endpoint(self) -> str:
        return f"{self._base_url}/models/{self._model}:generateContent"

    def detect(self, image: bytes, mime_type: str) -> str:
        logger.info("Analyzing image with Gemini (%s)", self._model)
        parts = [
            {"text": DETECTION_PROMPT},
            {
                "inline_data": {
                    "mime_type": mime_type,
                    "data": base64.b64encode(image).decode("ascii"),
                }
            },
        ]
        raw = self._generate_content(parts, operation="detect")
        ingredients = clean_ingredients(raw)
        logger.info("Detected ingredients: %s", ingredients)
        return ingredients

    def generate(self, ingredients: str) -> str:
        logger.info("Generating recipe with Gemini for: %s", ingredients)
        recipe = self.complete(build_recipe_prompt(ingredients))
        return ensure_recipe_heading(recipe, ingredients)

    def complete(self, prompt: str) -> str:
        return self._generate_content([{"text": prompt}], operation="generate")

    def _generate_content(self, parts: list[dict[str, Any]], *, operation: str) -> str:
        if not self._api_key:
            logger.error("Gemini backend selected but GEMINI_API_KEY is not set")
            raise BackendConfigurationError(
                NOT_CONFIGURED_MESSAGE, details="GEMINI_API_KEY is not set"
            )
        payload = {
            "contents": [{"role": "user", "parts": parts}],
            "generationConfig": {
                "temperature": self._temperature,
                "topP": self._top_p,
                "maxOutputTokens": self._max_tokens,
            },
        }
        body = self._post_json(
            self.endpoint,
            payload,
            operation=operation,
            headers={"x-goog-api-key": self._api_key},
        )
        return _extract_text(body)

    def _error_for_response(self, response: httpx.Response) -> FridgelensError:
        status_name, message = _error_details(response)
        code = response.status_code
        if code == 429 or status_name == "RESOURCE_EXHAUSTED":
            return BackendQuotaError(QUOTA_MESSAGE)
        if code in (401, 403) or "API key" in message or status_name == "PERMISSION_DENIED":
            return BackendRejectedError(INVALID_KEY_MESSAGE)
        if code >= 500:
            return BackendUnavailableError(
                self.unavailable_message, details=f"gemini responded with HTTP {code}"
            )
        return BackendRejectedError(
            "The AI service rejected the request.", details=message or f"HTTP {code}"
        )


def _extract_text(body: dict[str, Any]) -> str:
    candidates = body.get("candidates") or []
    if not candidates:
        feedback = body.get("promptFeedback") or {}
        reason = feedback.get("blockReason") or "no candidates returned"
        raise BackendRejectedError("The AI service declined to answer.", details=str(reason))
    content = candidates[0].get("content") or {}
    texts = [part.get("text") or "" for part in content.get("parts") or []]
    text = "".join(texts).strip()
    if not text:
        reason = candidates[0].get("finishReason") or "empty response"
        raise BackendRejectedError("The AI service returned an empty response.", details=str(reason))
    return text


__all__ = ["GeminiBackend"]
