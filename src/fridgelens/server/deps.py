"""Dependency definitions for the Fridgelens API server.

Backends and the store are constructed once by `create_app` and kept on `app.state`; these
providers hand them to request handlers so tests can swap them through
`app.dependency_overrides`.
"""

from __future__ import annotations

from fastapi import Request

from fridgelens.config import Settings
from fridgelens.db import EvaluationStore
from fridgelens.llm import IngredientDetector, RecipeGenerator


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_store(request: Request) -> EvaluationStore:
    return request.app.state.store


def get_detector(request: Request) -> IngredientDetector:
    return request.app.state.detector


def get_generator(request: Request) -> RecipeGenerator:
    return request.app.state.generator


__all__ = ["get_app_settings", "get_store", "get_detector", "get_generator"]
