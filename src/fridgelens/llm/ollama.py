"""Local Ollama backend for ingredient detection and recipe generation."""

from __future__ import annotations

import base64
import logging
from typing import Any, Optional

import httpx

from fridgelens.errors import FridgelensError

from .interface import HttpModelBackend
from .prompts import DETECTION_PROMPT, build_recipe_prompt, clean_ingredients, ensure_recipe_heading

logger = logging.getLogger(__name__)


class OllamaBackend(HttpModelBackend):
    """Call a local Ollama server through its `/api/generate` endpoint."""

    name = "ollama"
    unavailable_message = "Local AI model is not running. Make sure Ollama is installed and running."

    def __init__(
        self,
        *,
        base_url: str,
        model: str,
        timeout: float,
        temperature: float = 0.7,
        top_p: float = 0.9,
        max_tokens: int = 800,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        super().__init__(timeout=timeout, transport=transport)
        self._base_url = base_url.rstrip("/")
        self._model = model
        self._temperature = max(0.0, float(temperature))
        self._top_p = float(top_p)
        self._max_tokens = max(1, int(max_tokens))

    @property
    def endpoint(self) -> str:
        if self._base_url.endswith("/api/generate"):
            return self._base_url
        return f"{self._base_url}/api/generate"

    def detect(self, image: bytes, mime_type: str) -> str:
        logger.info("Analyzing image with local Ollama (%s)", self._model)
        payload = {
            "model": self._model,
            "prompt": DETECTION_PROMPT,
            "images": [base64.b64encode(image).decode("ascii")],
            "stream": False,
        }
        raw = self._generate(payload, operation="detect")
        ingredients = clean_ingredients(raw)
        logger.info("Detected ingredients: %s", ingredients)
        return ingredients

    def generate(self, ingredients: str) -> str:
        logger.info("Generating recipe with local Ollama for: %s", ingredients)
        recipe = self.complete(build_recipe_prompt(ingredients))
        return ensure_recipe_heading(recipe, ingredients)

    def complete(self, prompt: str) -> str:
        payload = {
            "model": self._model,
            "prompt": prompt,
            "stream": False,
            "options": {
                "temperature": self._temperature,
                "top_p": self._top_p,
                "num_predict": self._max_tokens,
            },
        }
        return self._generate(payload, operation="generate")

    def _generate(self, payload: dict[str, Any], *, operation: str) -> str:
        body = self._post_json(self.endpoint, payload, operation=operation)
        if body.get("error"):
            raise FridgelensError(f"Ollama request failed: {body['error']}")
        return (body.get("response") or "").strip()


__all__ = ["OllamaBackend"]
