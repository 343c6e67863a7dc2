"""Tests for the local Ollama backend."""

from __future__ import annotations

import base64
import json
import time

import httpx
import pytest

from fridgelens.errors import BackendUnavailableError, FridgelensError
from fridgelens.llm import OllamaBackend


def _backend(handler) -> OllamaBackend:
    return OllamaBackend(
        base_url="http://ollama.test:11434/",
        model="minicpm-v",
        timeout=5,
        transport=httpx.MockTransport(handler),
    )


def test_detect_sends_base64_image_and_cleans_reply():
    captured = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["url"] = str(request.url)
        captured["payload"] = json.loads(request.content)
        return httpx.Response(200, json={"response": "Here are the ingredients: eggs, milk, butter."})

    ingredients = _backend(handler).detect(b"\xff\xd8fake-jpeg", "image/jpeg")

    assert ingredients == "eggs, milk, butter"
    assert captured["url"] == "http://ollama.test:11434/api/generate"
    payload = captured["payload"]
    assert payload["model"] == "minicpm-v"
    assert payload["stream"] is False
    assert payload["images"] == [base64.b64encode(b"\xff\xd8fake-jpeg").decode("ascii")]
    assert "comma-separated" in payload["prompt"]


def test_generate_sends_sampling_options():
    captured = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["payload"] = json.loads(request.content)
        return httpx.Response(200, json={"response": "**Egg Fried Rice**\n\n1. Fry."})

    recipe = _backend(handler).generate("eggs, rice")

    assert recipe == "**Egg Fried Rice**\n\n1. Fry."
    payload = captured["payload"]
    assert payload["options"] == {"temperature": 0.7, "top_p": 0.9, "num_predict": 800}
    assert "eggs, rice" in payload["prompt"]


def test_generate_adds_heading_when_model_ignores_format():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"response": "Boil the eggs. Serve."})

    recipe = _backend(handler).generate("eggs")

    assert recipe.startswith("**Recipe with eggs**")
    assert recipe.endswith("Boil the eggs. Serve.")


def test_unreachable_server_maps_to_unavailable():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(BackendUnavailableError) as excinfo:
        _backend(handler).generate("eggs")

    assert excinfo.value.status_code == 503
    assert "Ollama" in excinfo.value.message


def test_timeout_maps_to_unavailable():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("too slow", request=request)

    with pytest.raises(BackendUnavailableError) as excinfo:
        _backend(handler).detect(b"img", "image/png")

    assert excinfo.value.details == "Timed out after 5s"


def test_non_success_status_maps_to_unavailable():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, json={"error": "model 'minicpm-v' not found"})

    with pytest.raises(BackendUnavailableError) as excinfo:
        _backend(handler).generate("eggs")

    assert excinfo.value.details == "ollama responded with HTTP 404"


def test_error_field_in_body_is_raised():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"error": "out of memory"})

    with pytest.raises(FridgelensError) as excinfo:
        _backend(handler).complete("hello")

    assert "out of memory" in excinfo.value.message


def _slow_backend(handler) -> OllamaBackend:
    return OllamaBackend(
        base_url="http://ollama.test:11434",
        model="minicpm-v",
        timeout=0.1,
        transport=httpx.MockTransport(handler),
    )


def test_slow_body_exceeds_total_deadline():
    def trickle():
        yield b'{"response": '
        time.sleep(0.25)
        yield b'"late"}'

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=trickle())

    with pytest.raises(BackendUnavailableError) as excinfo:
        _slow_backend(handler).complete("hello")

    assert excinfo.value.details == "Timed out after 0.1s"


def test_slow_response_start_exceeds_total_deadline():
    def handler(request: httpx.Request) -> httpx.Response:
        time.sleep(0.25)
        return httpx.Response(200, json={"response": "too late"})

    with pytest.raises(BackendUnavailableError):
        _slow_backend(handler).complete("hello")
