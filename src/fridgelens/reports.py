"""Aggregate statistics and CSV export for stored evaluations."""

from __future__ import annotations

import csv
import io
from typing import Iterable, Sequence

from pydantic import BaseModel, Field

from fridgelens.models.evaluation import MAX_RATING, MIN_RATING, Evaluation, ensure_utc

CSV_HEADER = ("Timestamp", "Ingredients", "Rating", "Feedback", "Source")
NO_FEEDBACK = "No feedback"


class EvaluationSummary(BaseModel):
    """Dashboard statistics over a set of evaluations."""

    total: int = 0
    average_rating: float = 0.0
    histogram: dict[int, int] = Field(
        default_factory=lambda: {star: 0 for star in range(MIN_RATING, MAX_RATING + 1)}
    )


def summarize(evaluations: Sequence[Evaluation]) -> EvaluationSummary:
    """Count evaluations, average their ratings (one decimal) and bucket them per star."""

    summary = EvaluationSummary()
    if not evaluations:
        return summary

    for evaluation in evaluations:
        if evaluation.rating in summary.histogram:
            summary.histogram[evaluation.rating] += 1
    summary.total = len(evaluations)
    summary.average_rating = round(
        sum(evaluation.rating for evaluation in evaluations) / summary.total, 1
    )
    return summary


def to_csv(evaluations: Iterable[Evaluation]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for evaluation in evaluations:
        writer.writerow(
            (
                ensure_utc(evaluation.timestamp).strftime("%Y-%m-%d %H:%M:%S"),
                evaluation.ingredients,
                str(evaluation.rating),
                evaluation.feedback or NO_FEEDBACK,
                evaluation.image_name,
            )
        )
    return buffer.getvalue()


__all__ = ["CSV_HEADER", "EvaluationSummary", "summarize", "to_csv"]
