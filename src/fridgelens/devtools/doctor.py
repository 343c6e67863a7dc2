"""Environment and backend diagnostics."""

from __future__ import annotations

import importlib.util
import platform
import sys
from collections import Counter
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, Literal, Optional

import httpx

from fridgelens.config import Settings, get_settings
from fridgelens.errors import FridgelensError
from fridgelens.llm import RecipeGenerator, build_generator

Status = Literal["ok", "warn", "fail"]

PROBE_PROMPT = "Say hello in 3 words"


@dataclass(frozen=True)
class CheckResult:
    """Outcome of a diagnostic check."""

    name: str
    status: Status
    message: str


def _check_python() -> CheckResult:
    version = platform.python_version()
    if sys.version_info < (3, 10):
        return CheckResult(
            name="Python",
            status="fail",
            message=f"Detected {version}. Install Python 3.10 or newer.",
        )
    return CheckResult(name="Python", status="ok", message=f"Detected {version}")


def _check_env_file(project_root: Path) -> CheckResult:
    for candidate in (".env", ".env.local"):
        env_path = project_root / candidate
        if env_path.exists():
            return CheckResult(name=".env file", status="ok", message=str(env_path))
    return CheckResult(
        name=".env file",
        status="warn",
        message="No .env or .env.local found; settings come from the process environment only.",
    )


def _check_python_package(package: str, friendly_name: str | None = None) -> CheckResult:
    label = friendly_name or package
    if importlib.util.find_spec(package) is not None:
        return CheckResult(name=f"Python package: {label}", status="ok", message="available")
    return CheckResult(
        name=f"Python package: {label}",
        status="warn",
        message=f"Install with `pip install {label}`.",
    )


def _check_gemini_key(settings: Settings) -> Optional[CheckResult]:
    if "gemini" not in (settings.detector_provider, settings.generator_provider):
        return None
    if settings.gemini_api_key:
        return CheckResult(name="Gemini API key", status="ok", message="configured")
    return CheckResult(
        name="Gemini API key",
        status="fail",
        message="GEMINI_API_KEY is not set; Gemini requests will fail with HTTP 500.",
    )


def _check_store(settings: Settings) -> CheckResult:
    if settings.store_backend == "mongo":
        if settings.mongodb_uri:
            return CheckResult(
                name="Evaluation store",
                status="ok",
                message=f"MongoDB {settings.mongodb_database}.{settings.mongodb_collection}",
            )
        return CheckResult(
            name="Evaluation store",
            status="fail",
            message="MONGODB_URI is not set; evaluation requests will fail with HTTP 500.",
        )
    path = settings.database_path
    if path.exists() or path.parent.exists():
        return CheckResult(name="Evaluation store", status="ok", message=f"SQLite {path}")
    return CheckResult(
        name="Evaluation store",
        status="warn",
        message=f"Path {path.parent} does not exist (will be created on first use).",
    )


def _check_ollama(settings: Settings, transport: Optional[httpx.BaseTransport]) -> Optional[CheckResult]:
    if "ollama" not in (settings.detector_provider, settings.generator_provider):
        return None
    url = f"{settings.ollama_base_url.rstrip('/')}/api/tags"
    try:
        with httpx.Client(timeout=3.0, transport=transport) as client:
            response = client.get(url)
        response.raise_for_status()
    except httpx.HTTPError as exc:
        return CheckResult(
            name="Ollama server",
            status="fail",
            message=f"{settings.ollama_base_url} unreachable ({exc.__class__.__name__}).",
        )
    models = [entry.get("name", "") for entry in response.json().get("models") or []]
    if not any(name.split(":")[0] == settings.ollama_model for name in models):
        return CheckResult(
            name="Ollama server",
            status="warn",
            message=f"Reachable, but model {settings.ollama_model} is not pulled.",
        )
    return CheckResult(name="Ollama server", status="ok", message=f"{settings.ollama_model} available")


def probe_generator(generator: RecipeGenerator) -> CheckResult:
    """Send a tiny prompt to the generator and report whether it answered."""

    label = f"Model probe ({generator.name})"
    try:
        reply = generator.complete(PROBE_PROMPT)
    except FridgelensError as exc:
        detail = f" ({exc.details})" if exc.details else ""
        return CheckResult(name=label, status="fail", message=f"{exc.message}{detail}")
    first_line = next(iter(reply.strip().splitlines()), "(empty reply)")
    return CheckResult(name=label, status="ok", message=first_line[:80])


_ICONS = {"ok": "✓", "warn": "⚠", "fail": "✖"}


def format_report(results: Iterable[CheckResult]) -> str:
    """Render one line per check followed by a totals line."""

    results = list(results)
    tally = Counter(result.status for result in results)
    width = max((len(result.name) for result in results), default=0)
    body = [f"{_ICONS[result.status]} {result.name:<{width}}  {result.message}" for result in results]
    totals = (
        f"Summary: {tally['ok']} ok, {tally['warn']} warning(s), {tally['fail']} failure(s)"
    )
    return "\n".join([*body, "", totals])


def run_doctor(
    settings: Optional[Settings] = None,
    *,
    project_root: Optional[Path] = None,
    probe: bool = False,
    transport: Optional[httpx.BaseTransport] = None,
    generator_factory: Callable[..., RecipeGenerator] = build_generator,
) -> tuple[int, str]:
    """Execute diagnostics and return (exit_code, report)."""

    settings = settings or get_settings()
    project_root = project_root or Path.cwd()

    checks: list[Optional[CheckResult]] = [
        _check_python(),
        _check_env_file(project_root),
        _check_python_package("multipart", "python-multipart"),
        _check_gemini_key(settings),
        _check_store(settings),
        _check_ollama(settings, transport),
    ]
    if probe:
        checks.append(probe_generator(generator_factory(settings, transport)))

    results = [check for check in checks if check is not None]
    report = format_report(results)
    exit_code = 1 if any(result.status == "fail" for result in results) else 0
    return exit_code, report


__all__ = ["CheckResult", "format_report", "probe_generator", "run_doctor"]
