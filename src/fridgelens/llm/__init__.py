"""Model backends for ingredient detection and recipe generation."""

from __future__ import annotations

from typing import Optional

import httpx

from fridgelens.config import Provider, Settings

from .gemini import GeminiBackend
from .interface import HttpModelBackend, IngredientDetector, RecipeGenerator
from .ollama import OllamaBackend


def _build_backend(
    provider: Provider,
    settings: Settings,
    *,
    timeout: float,
    transport: Optional[httpx.BaseTransport] = None,
) -> HttpModelBackend:
    sampling = {
        "temperature": settings.generation_temperature,
        "top_p": settings.generation_top_p,
        "max_tokens": settings.generation_max_tokens,
    }
    if provider == "gemini":
        return GeminiBackend(
            api_key=settings.gemini_api_key,
            model=settings.gemini_model,
            base_url=settings.gemini_base_url,
            timeout=timeout,
            transport=transport,
            **sampling,
        )
    return OllamaBackend(
        base_url=settings.ollama_base_url,
        model=settings.ollama_model,
        timeout=settings.ollama_timeout_seconds,
        transport=transport,
        **sampling,
    )


def build_detector(
    settings: Settings, transport: Optional[httpx.BaseTransport] = None
) -> IngredientDetector:
    """Create the configured ingredient detector."""

    return _build_backend(  # type: ignore[return-value]
        settings.detector_provider,
        settings,
        timeout=settings.detection_timeout_seconds,
        transport=transport,
    )


def build_generator(
    settings: Settings, transport: Optional[httpx.BaseTransport] = None
) -> RecipeGenerator:
    """Create the configured recipe generator.

    Cloud generation is bounded by `generation_timeout_seconds` to stay inside the hosting
    platform's request-duration limit; the local server uses `ollama_timeout_seconds`.
    """

    return _build_backend(  # type: ignore[return-value]
        settings.generator_provider,
        settings,
        timeout=settings.generation_timeout_seconds,
        transport=transport,
    )


__all__ = [
    "GeminiBackend",
    "OllamaBackend",
    "IngredientDetector",
    "RecipeGenerator",
    "build_detector",
    "build_generator",
]
