"""Evaluation persistence backends."""

from .store import DEFAULT_LIST_LIMIT, EvaluationStore, build_store

__all__ = ["DEFAULT_LIST_LIMIT", "EvaluationStore", "build_store"]
