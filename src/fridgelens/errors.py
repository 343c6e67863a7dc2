"""Exception hierarchy shared by the adapters, the store and the HTTP layer."""

from __future__ import annotations

from typing import Optional


class FridgelensError(RuntimeError):
    """Base error carrying the HTTP status and user-facing message for a failure."""

    status_code = 500

    def __init__(self, message: str, *, details: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def to_payload(self) -> dict[str, str]:
        payload = {"error": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class InvalidInputError(FridgelensError):
    """Raised when the caller supplied missing, oversized or malformed input."""

    status_code = 400


class BackendUnavailableError(FridgelensError):
    """Raised when a model backend cannot be reached or answers with a non-2xx status."""

    status_code = 503


class BackendQuotaError(FridgelensError):
    """Raised when a model backend signals rate limiting or an exhausted quota."""

    status_code = 429


class BackendRejectedError(FridgelensError):
    """Raised when a model backend refuses the request (bad credential, blocked prompt)."""

    status_code = 500


class BackendConfigurationError(FridgelensError):
    """Raised when a backend is selected but its credential or address is missing."""

    status_code = 500


class StoreError(FridgelensError):
    """Raised when the evaluation store cannot connect, read or write."""

    status_code = 500


__all__ = [
    "FridgelensError",
    "InvalidInputError",
    "BackendUnavailableError",
    "BackendQuotaError",
    "BackendRejectedError",
    "BackendConfigurationError",
    "StoreError",
]
