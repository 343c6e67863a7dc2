"""Pydantic models defining shared data contracts."""

from fridgelens.models.evaluation import (
    Evaluation,
    EvaluationCreateRequest,
    EvaluationDraft,
)

__all__ = [
    "Evaluation",
    "EvaluationCreateRequest",
    "EvaluationDraft",
]
