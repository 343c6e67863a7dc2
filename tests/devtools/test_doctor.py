"""Tests for the diagnostics report."""

from __future__ import annotations

import httpx

from fridgelens.config import Settings
from fridgelens.devtools.doctor import probe_generator, run_doctor
from fridgelens.errors import BackendConfigurationError


def _ollama_transport(models):
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/tags"
        return httpx.Response(200, json={"models": [{"name": name} for name in models]})

    return httpx.MockTransport(handler)


def test_doctor_generates_report(tmp_path):
    settings = Settings(database_path=tmp_path / "evaluations.db")

    exit_code, report = run_doctor(
        settings,
        project_root=tmp_path,
        transport=_ollama_transport(["minicpm-v:latest"]),
    )

    assert exit_code == 0
    assert "Python" in report
    assert "minicpm-v available" in report
    assert "Summary" in report


def test_doctor_fails_when_ollama_is_down(tmp_path):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    settings = Settings(database_path=tmp_path / "evaluations.db")

    exit_code, report = run_doctor(
        settings, project_root=tmp_path, transport=httpx.MockTransport(handler)
    )

    assert exit_code == 1
    assert "unreachable (ConnectError)" in report


def test_doctor_flags_missing_cloud_credentials(tmp_path):
    settings = Settings(
        detector_provider="gemini",
        generator_provider="gemini",
        store_backend="mongo",
        database_path=tmp_path / "evaluations.db",
    )

    exit_code, report = run_doctor(settings, project_root=tmp_path)

    assert exit_code == 1
    assert "GEMINI_API_KEY is not set" in report
    assert "MONGODB_URI is not set" in report
    assert "Ollama server" not in report


def test_doctor_probe_uses_generator(tmp_path):
    class EchoGenerator:
        name = "echo"

        def complete(self, prompt):
            return f"Hello from {prompt.split()[0].lower()}\nsecond line"

    settings = Settings(database_path=tmp_path / "evaluations.db")

    exit_code, report = run_doctor(
        settings,
        project_root=tmp_path,
        probe=True,
        transport=_ollama_transport(["minicpm-v"]),
        generator_factory=lambda settings, transport: EchoGenerator(),
    )

    assert exit_code == 0
    probe_line = next(line for line in report.splitlines() if "Model probe (echo)" in line)
    assert probe_line.endswith("Hello from say")
    assert "second line" not in report


def test_probe_reports_backend_failure():
    class Unconfigured:
        name = "gemini"

        def complete(self, prompt):
            raise BackendConfigurationError(
                "AI service is not configured.", details="GEMINI_API_KEY is not set"
            )

    result = probe_generator(Unconfigured())

    assert result.status == "fail"
    assert result.message == "AI service is not configured. (GEMINI_API_KEY is not set)"
