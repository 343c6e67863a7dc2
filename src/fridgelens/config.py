"""Application configuration helpers."""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

ENV_FILE_CANDIDATES = (Path(".env"), Path(".env.local"))

Provider = Literal["ollama", "gemini"]
StoreBackend = Literal["sql", "mongo"]
RatingPolicy = Literal["reject", "clamp"]


class Settings(BaseModel):
    """Global application settings loaded from environment variables or .env files."""

    detector_provider: Provider = Field(
        default="ollama",
        description="Backend used for ingredient detection (ollama or gemini).",
    )
    generator_provider: Provider = Field(
        default="ollama",
        description="Backend used for recipe generation (ollama or gemini).",
    )
    ollama_base_url: str = Field(
        default="http://localhost:11434",
        description="Base URL of the local Ollama server.",
    )
    ollama_model: str = Field(
        default="minicpm-v",
        description="Multimodal Ollama model used for detection and generation.",
    )
    gemini_base_url: str = Field(
        default="https://generativelanguage.googleapis.com/v1beta",
        description="Gemini REST API base URL.",
    )
    gemini_model: str = Field(
        default="gemini-1.5-flash",
        description="Gemini model identifier.",
    )
    gemini_api_key: Optional[str] = Field(
        default=None,
        description="Gemini API key; required at request time when a Gemini backend is selected.",
    )
    ollama_timeout_seconds: float = Field(
        default=120.0,
        description="Timeout for calls to the local Ollama server.",
    )
    detection_timeout_seconds: float = Field(
        default=30.0,
        description="Timeout for cloud ingredient detection calls.",
    )
    generation_timeout_seconds: float = Field(
        default=10.0,
        description="Upper bound on a cloud recipe generation call (hosting request limit).",
    )
    generation_temperature: float = Field(default=0.7, description="Sampling temperature.")
    generation_top_p: float = Field(default=0.9, description="Nucleus sampling threshold.")
    generation_max_tokens: int = Field(default=800, description="Maximum tokens to generate.")
    store_backend: StoreBackend = Field(
        default="sql",
        description="Evaluation store backend (sql or mongo).",
    )
    database_path: Path = Field(
        default=Path("./data/fridgelens.db"),
        description="SQLite database location for the sql store.",
    )
    mongodb_uri: Optional[str] = Field(
        default=None,
        description="MongoDB connection string for the mongo store.",
    )
    mongodb_database: str = Field(default="airecipe", description="MongoDB database name.")
    mongodb_collection: str = Field(
        default="evaluations",
        description="MongoDB collection holding evaluations.",
    )
    evaluations_list_limit: int = Field(
        default=100,
        description="Maximum number of evaluations returned by the list endpoint.",
    )
    max_image_bytes: int = Field(
        default=10 * 1024 * 1024,
        description="Largest accepted upload for ingredient detection.",
    )
    rating_policy: RatingPolicy = Field(
        default="reject",
        description="How out-of-range ratings are handled (reject or clamp).",
    )
    log_level: str = Field(default="INFO", description="Logging level (DEBUG/INFO/WARNING/ERROR)")
    log_format: str = Field(
        default="plain",
        description="Logging format (plain/json).",
    )
    log_requests: bool = Field(
        default=True,
        description="Emit request access logs when true.",
    )

    model_config = ConfigDict(frozen=True)

    def secrets(self) -> list[str]:
        """Return configured secret values that must never reach the logs."""

        values = [self.gemini_api_key or ""]
        if self.mongodb_uri:
            values.append(self.mongodb_uri)
            password = _uri_password(self.mongodb_uri)
            if password:
                values.append(password)
        return values


def _uri_password(uri: str) -> Optional[str]:
    _, _, rest = uri.partition("://")
    credentials, sep, _ = rest.rpartition("@")
    if not sep or ":" not in credentials:
        return None
    return credentials.split(":", 1)[1] or None


def _coerce_bool(value: str) -> bool:
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _parse_env_file(path: Path) -> dict[str, str]:
    payload: dict[str, str] = {}
    try:
        with path.open("r", encoding="utf-8") as handle:
            for raw_line in handle:
                line = raw_line.strip()
                if not line or line.startswith("#") or "=" not in line:
                    continue
                key, raw_value = line.split("=", 1)
                payload[key.strip()] = raw_value.strip().strip('"').strip("'")
    except FileNotFoundError:
        return {}
    return payload


def _load_env_file_values() -> dict[str, str]:
    values: dict[str, str] = {}
    for candidate in ENV_FILE_CANDIDATES:
        values.update(_parse_env_file(candidate))
    return values


_STRING_FIELDS = {
    "FRIDGELENS_DETECTOR_PROVIDER": "detector_provider",
    "FRIDGELENS_GENERATOR_PROVIDER": "generator_provider",
    "FRIDGELENS_OLLAMA_BASE_URL": "ollama_base_url",
    "FRIDGELENS_OLLAMA_MODEL": "ollama_model",
    "FRIDGELENS_GEMINI_BASE_URL": "gemini_base_url",
    "FRIDGELENS_GEMINI_MODEL": "gemini_model",
    "FRIDGELENS_STORE_BACKEND": "store_backend",
    "FRIDGELENS_MONGODB_DATABASE": "mongodb_database",
    "FRIDGELENS_MONGODB_COLLECTION": "mongodb_collection",
    "FRIDGELENS_RATING_POLICY": "rating_policy",
    "FRIDGELENS_LOG_LEVEL": "log_level",
    "FRIDGELENS_LOG_FORMAT": "log_format",
}

_CHOICE_FIELDS = {"detector_provider", "generator_provider", "store_backend", "rating_policy"}

_FLOAT_FIELDS = {
    "FRIDGELENS_OLLAMA_TIMEOUT": "ollama_timeout_seconds",
    "FRIDGELENS_DETECTION_TIMEOUT": "detection_timeout_seconds",
    "FRIDGELENS_GENERATION_TIMEOUT": "generation_timeout_seconds",
    "FRIDGELENS_GENERATION_TEMPERATURE": "generation_temperature",
    "FRIDGELENS_GENERATION_TOP_P": "generation_top_p",
}

_INT_FIELDS = {
    "FRIDGELENS_GENERATION_MAX_TOKENS": "generation_max_tokens",
    "FRIDGELENS_EVALUATIONS_LIMIT": "evaluations_list_limit",
    "FRIDGELENS_MAX_IMAGE_BYTES": "max_image_bytes",
}


def _load_from_env() -> dict[str, object]:
    """Load optional overrides from env vars (with .env fallbacks)."""

    file_values = _load_env_file_values()

    def _env(key: str) -> Optional[str]:
        return os.environ.get(key) or file_values.get(key)

    payload: dict[str, object] = {}
    for key, field in _STRING_FIELDS.items():
        if (value := _env(key)):
            payload[field] = value.strip().lower() if field in _CHOICE_FIELDS else value
    for key, field in _FLOAT_FIELDS.items():
        if (value := _env(key)):
            try:
                payload[field] = float(value)
            except ValueError:
                pass
    for key, field in _INT_FIELDS.items():
        if (value := _env(key)):
            try:
                payload[field] = int(value)
            except ValueError:
                pass
    if (provider := _env("FRIDGELENS_PROVIDER")):
        payload.setdefault("detector_provider", provider.strip().lower())
        payload.setdefault("generator_provider", provider.strip().lower())
    if (api_key := _env("FRIDGELENS_GEMINI_API_KEY") or _env("GEMINI_API_KEY")):
        payload["gemini_api_key"] = api_key
    if (mongodb_uri := _env("FRIDGELENS_MONGODB_URI") or _env("MONGODB_URI")):
        payload["mongodb_uri"] = mongodb_uri
    if (db_path := _env("FRIDGELENS_DATABASE_PATH")):
        payload["database_path"] = Path(db_path)
    if (log_requests := _env("FRIDGELENS_LOG_REQUESTS")):
        payload["log_requests"] = _coerce_bool(log_requests)
    return payload


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings."""

    return Settings(**_load_from_env())
