"""Shared pytest fixtures for the Fridgelens test suite."""

from __future__ import annotations

import io
from typing import Generator, List, Optional, Tuple

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from PIL import Image

from fridgelens.config import get_settings
from fridgelens.server.app import create_app


class StubDetector:
    """Ingredient detector that records calls instead of reaching a model."""

    name = "stub"

    def __init__(self, ingredients: str = "chicken, rice, broccoli") -> None:
        self.ingredients = ingredients
        self.calls: List[Tuple[bytes, str]] = []
        self.error: Optional[Exception] = None

    def detect(self, image: bytes, mime_type: str) -> str:
        self.calls.append((image, mime_type))
        if self.error is not None:
            raise self.error
        return self.ingredients


class StubGenerator:
    """Recipe generator returning canned text."""

    name = "stub"

    def __init__(self, recipe: str = "**Chicken Fried Rice**\n\n1. Cook rice.") -> None:
        self.recipe = recipe
        self.calls: List[str] = []
        self.error: Optional[Exception] = None

    def generate(self, ingredients: str) -> str:
        self.calls.append(ingredients)
        if self.error is not None:
            raise self.error
        return self.recipe

    def complete(self, prompt: str) -> str:
        return "Hello there, friend"


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Ensure each test uses an isolated SQLite database location."""

    db_path = tmp_path / "test_fridgelens.db"
    monkeypatch.setenv("FRIDGELENS_DATABASE_PATH", str(db_path))
    monkeypatch.setenv("FRIDGELENS_STORE_BACKEND", "sql")
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    monkeypatch.delenv("MONGODB_URI", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture()
def detector() -> StubDetector:
    return StubDetector()


@pytest.fixture()
def generator() -> StubGenerator:
    return StubGenerator()


@pytest.fixture()
def app(detector, generator) -> Generator[FastAPI, None, None]:
    """Create a new FastAPI app instance wired to stub backends and a temp database."""

    application = create_app(detector=detector, generator=generator)
    yield application
    application.dependency_overrides.clear()
    application.state.store.close()


@pytest.fixture()
def client(app) -> TestClient:
    """Return a test client bound to the FastAPI app."""

    return TestClient(app)


@pytest.fixture()
def png_bytes() -> bytes:
    image = Image.new("RGB", (32, 32), color=(200, 220, 255))
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture()
def evaluation_payload() -> dict[str, object]:
    return {
        "ingredients": "chicken, rice",
        "recipe": "**Chicken Rice**\n\n1. Cook the rice...",
        "rating": 4,
        "feedback": "tasty",
        "imageName": "fridge1.jpg",
    }
