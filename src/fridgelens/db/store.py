"""Evaluation store contract and backend selection."""

from __future__ import annotations

import functools
import logging
from typing import Callable, List, Protocol, TypeVar

from fridgelens import metrics
from fridgelens.config import Settings
from fridgelens.models.evaluation import Evaluation, EvaluationDraft

logger = logging.getLogger(__name__)

DEFAULT_LIST_LIMIT = 100

T = TypeVar("T")


class EvaluationStore(Protocol):
    """Persistence facade over evaluation records.

    Records move from absent to persisted through `insert` and back to absent only through
    `delete_all`, which removes every record at once.
    """

    backend: str

    def insert(self, draft: EvaluationDraft) -> Evaluation:
        """Persist one evaluation, assigning its identity and timestamp."""

    def list(self, limit: int = DEFAULT_LIST_LIMIT) -> List[Evaluation]:
        """Return stored evaluations, newest first."""

    def delete_all(self) -> int:
        """Remove every evaluation and return how many were removed."""

    def close(self) -> None:
        """Release the underlying connection, if one was opened."""


def instrumented(operation: str) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """Count store operations by outcome."""

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @functools.wraps(func)
        def wrapper(*args, **kwargs) -> T:
            try:
                result = func(*args, **kwargs)
            except Exception:
                metrics.STORE_OPERATIONS.labels(operation=operation, outcome="error").inc()
                raise
            metrics.STORE_OPERATIONS.labels(operation=operation, outcome="ok").inc()
            return result

        return wrapper

    return decorator


def build_store(settings: Settings) -> EvaluationStore:
    """Construct the configured store. No connection is opened until first use."""

    if settings.store_backend == "mongo":
        from fridgelens.db.mongo import MongoEvaluationStore

        logger.debug(
            "Using MongoDB evaluation store database=%s collection=%s",
            settings.mongodb_database,
            settings.mongodb_collection,
        )
        return MongoEvaluationStore(
            settings.mongodb_uri,
            database=settings.mongodb_database,
            collection=settings.mongodb_collection,
        )

    from fridgelens.db.sql import SqlEvaluationStore

    logger.debug("Using SQLite evaluation store path=%s", settings.database_path)
    return SqlEvaluationStore(settings.database_path)


__all__ = ["EvaluationStore", "DEFAULT_LIST_LIMIT", "build_store", "instrumented"]
