"""Logging setup that keeps API keys and database credentials out of the output."""

from __future__ import annotations

import json
import logging
import re
from datetime import datetime, timezone
from typing import Iterable, Pattern

REDACTED = "[redacted]"

# Each pattern captures (prefix, secret[, suffix]); only the secret group is replaced.
_CREDENTIAL_PATTERNS: tuple[Pattern[str], ...] = (
    re.compile(r"(Bearer\s+)([A-Za-z0-9\-._~+/=]+)()", re.IGNORECASE),
    re.compile(r"([?&]key=)([^&\s]+)()", re.IGNORECASE),
    re.compile(r"(x-goog-api-key[=:]\s*)([^&\s]+)()", re.IGNORECASE),
    re.compile(r"(mongodb(?:\+srv)?://[^:/\s]+:)([^@\s]+)(@)", re.IGNORECASE),
)

_PASSTHROUGH_ATTRIBUTES = frozenset({"msg", "name", "levelname", "pathname", "filename", "module"})

_ROUTED_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access", "httpx")


class SecretRedactor:
    """Replace known credential shapes and explicitly configured secret values."""

    def __init__(self, secrets: Iterable[str] = ()) -> None:
        cleaned = {secret.strip() for secret in secrets if secret and secret.strip()}
        # Longest first so a URI is masked before the password it contains.
        self.secrets = sorted(cleaned, key=len, reverse=True)

    def __call__(self, text: str) -> str:
        for pattern in _CREDENTIAL_PATTERNS:
            text = pattern.sub(lambda match: f"{match.group(1)}{REDACTED}{match.group(3)}", text)
        for secret in self.secrets:
            text = text.replace(secret, REDACTED)
        return text


class SensitiveDataFilter(logging.Filter):
    """Run every record, including string extras, through a `SecretRedactor`."""

    def __init__(self, secrets: Iterable[str]):
        super().__init__()
        self.redact = SecretRedactor(secrets)

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: D401 - standard interface
        rendered = record.getMessage()
        redacted = self.redact(rendered)
        if redacted != rendered:
            record.msg, record.args = redacted, ()

        for attribute, value in list(vars(record).items()):
            if attribute in _PASSTHROUGH_ATTRIBUTES or not isinstance(value, str):
                continue
            setattr(record, attribute, self.redact(value))
        return True


class JsonFormatter(logging.Formatter):
    """One JSON object per line; `request_id` is included when the record carries it."""

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401 - override
        entry: dict[str, str] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        request_id = getattr(record, "request_id", None)
        if request_id:
            entry["request_id"] = str(request_id)
        if record.exc_info:
            entry["exc_info"] = self.formatException(record.exc_info)
        if record.stack_info:
            entry["stack"] = self.formatStack(record.stack_info)
        return json.dumps(entry, ensure_ascii=True)


def _build_formatter(fmt: str) -> logging.Formatter:
    if (fmt or "").strip().lower() == "json":
        return JsonFormatter()
    return logging.Formatter(
        "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S%z",
    )


def configure_logging(level_name: str, fmt: str, secrets: Iterable[str]) -> None:
    """Install a single redacting stream handler on the root logger.

    Server and HTTP client loggers are reset to propagate to it so their lines get the same
    format and redaction.
    """

    level = logging.getLevelName((level_name or "INFO").upper())
    if not isinstance(level, int):
        level = logging.INFO

    redaction = SensitiveDataFilter(secrets)
    handler = logging.StreamHandler()
    handler.setFormatter(_build_formatter(fmt))
    handler.addFilter(redaction)

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(level)
    logging.captureWarnings(True)

    for name in _ROUTED_LOGGERS:
        routed = logging.getLogger(name)
        routed.handlers = []
        routed.setLevel(level)
        routed.propagate = True
        routed.addFilter(redaction)


__all__ = ["REDACTED", "SecretRedactor", "SensitiveDataFilter", "JsonFormatter", "configure_logging"]
