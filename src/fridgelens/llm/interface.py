"""Capability interfaces and shared HTTP plumbing for model backends."""

from __future__ import annotations

import logging
from time import perf_counter
from typing import Any, Mapping, Optional, Protocol

import httpx

from fridgelens import metrics
from fridgelens.errors import BackendUnavailableError, FridgelensError

logger = logging.getLogger(__name__)


class IngredientDetector(Protocol):
    """Turns a photo into a comma-separated ingredient list."""

    name: str

    def detect(self, image: bytes, mime_type: str) -> str:
        """Return the cleaned ingredient list seen in the image."""


class RecipeGenerator(Protocol):
    """Turns an ingredient list into formatted recipe text."""

    name: str

    def generate(self, ingredients: str) -> str:
        """Return recipe text that contains at least one emphasis marker."""

    def complete(self, prompt: str) -> str:
        """Return raw model output for an arbitrary prompt."""


class HttpModelBackend:
    """Base class for backends reached over HTTP with a single attempt per call."""

    name = "http"
    unavailable_message = "AI service is temporarily unavailable. Please try again."

    def __init__(
        self,
        *,
        timeout: float,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._timeout = max(0.1, float(timeout))
        self._transport = transport

    def _exchange(
        self,
        url: str,
        payload: Mapping[str, Any],
        headers: Optional[Mapping[str, str]],
        deadline: float,
    ) -> httpx.Response:
        """POST and read the whole body, failing once `deadline` has passed.

        httpx applies `timeout` to each phase separately; the deadline caps the exchange as a
        whole, checked as body chunks arrive.
        """

        with httpx.Client(timeout=self._timeout, transport=self._transport) as client:
            with client.stream("POST", url, json=payload, headers=headers) as streamed:
                chunks: list[bytes] = []
                for chunk in streamed.iter_raw():
                    chunks.append(chunk)
                    if perf_counter() > deadline:
                        break
                if perf_counter() > deadline:
                    raise httpx.ReadTimeout("Request deadline exceeded", request=streamed.request)
                return httpx.Response(
                    streamed.status_code,
                    headers=streamed.headers,
                    content=b"".join(chunks),
                    request=streamed.request,
                )

    def _post_json(
        self,
        url: str,
        payload: Mapping[str, Any],
        *,
        operation: str,
        headers: Optional[Mapping[str, str]] = None,
    ) -> dict[str, Any]:
        start = perf_counter()
        outcome = "error"
        try:
            try:
                response = self._exchange(url, payload, headers, start + self._timeout)
            except httpx.TimeoutException as exc:
                outcome = "timeout"
                logger.warning("%s %s timed out after %.1fs", self.name, operation, self._timeout)
                raise BackendUnavailableError(
                    self.unavailable_message, details=f"Timed out after {self._timeout:g}s"
                ) from exc
            except httpx.TransportError as exc:
                outcome = "unreachable"
                logger.warning("%s %s unreachable: %s", self.name, operation, exc)
                raise BackendUnavailableError(self.unavailable_message, details=str(exc)) from exc

            if response.is_error:
                outcome = f"http_{response.status_code}"
                logger.warning(
                    "%s %s returned status=%s", self.name, operation, response.status_code
                )
                raise self._error_for_response(response)

            try:
                body = response.json()
            except ValueError as exc:
                raise FridgelensError(
                    f"{self.name} returned an unreadable response", details=str(exc)
                ) from exc
            outcome = "ok"
            return body
        finally:
            metrics.BACKEND_CALLS.labels(
                backend=self.name, operation=operation, outcome=outcome
            ).inc()
            metrics.BACKEND_LATENCY.labels(backend=self.name, operation=operation).observe(
                perf_counter() - start
            )

    def _error_for_response(self, response: httpx.Response) -> FridgelensError:
        return BackendUnavailableError(
            self.unavailable_message,
            details=f"{self.name} responded with HTTP {response.status_code}",
        )


__all__ = ["IngredientDetector", "RecipeGenerator", "HttpModelBackend"]
