"""Pydantic models for recipe evaluations."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictInt, field_serializer

from fridgelens.config import RatingPolicy
from fridgelens.errors import InvalidInputError

MIN_RATING = 1
MAX_RATING = 5
DEFAULT_IMAGE_NAME = "Unknown"

MISSING_FIELDS_MESSAGE = "Missing required fields: ingredients, recipe, and rating are required"
RATING_RANGE_MESSAGE = f"Rating must be between {MIN_RATING} and {MAX_RATING}"


class EvaluationDraft(BaseModel):
    """A validated evaluation that has not been persisted yet."""

    ingredients: str = Field(min_length=1)
    recipe: str = Field(min_length=1)
    rating: int = Field(ge=MIN_RATING, le=MAX_RATING)
    feedback: str = ""
    image_name: str = Field(default=DEFAULT_IMAGE_NAME, alias="imageName")

    model_config = ConfigDict(populate_by_name=True, frozen=True)


class Evaluation(BaseModel):
    """A persisted evaluation. Immutable once stored."""

    id: str
    ingredients: str
    recipe: str
    rating: int
    feedback: str = ""
    image_name: str = Field(default=DEFAULT_IMAGE_NAME, alias="imageName")
    timestamp: datetime

    model_config = ConfigDict(populate_by_name=True, from_attributes=True, frozen=True)

    @field_serializer("timestamp")
    def _serialize_timestamp(self, value: datetime) -> str:
        return format_timestamp(value)

    def to_public(self) -> dict[str, Any]:
        """Return the JSON shape used by the HTTP API (camelCase plus a `_id` alias)."""

        payload = self.model_dump(mode="json", by_alias=True)
        payload["_id"] = self.id
        return payload


class EvaluationCreateRequest(BaseModel):
    """Raw insert payload; presence and range checks happen in `to_draft`."""

    ingredients: Optional[str] = None
    recipe: Optional[str] = None
    rating: Optional[StrictInt] = None
    feedback: Optional[str] = None
    image_name: Optional[str] = Field(default=None, alias="imageName")

    model_config = ConfigDict(populate_by_name=True)

    def to_draft(self, policy: RatingPolicy = "reject") -> EvaluationDraft:
        ingredients = (self.ingredients or "").strip()
        recipe = (self.recipe or "").strip()
        if not ingredients or not recipe or not self.rating:
            raise InvalidInputError(MISSING_FIELDS_MESSAGE)

        rating = self.rating
        if not MIN_RATING <= rating <= MAX_RATING:
            if policy == "clamp":
                rating = min(max(rating, MIN_RATING), MAX_RATING)
            else:
                raise InvalidInputError(RATING_RANGE_MESSAGE)

        return EvaluationDraft(
            ingredients=ingredients,
            recipe=recipe,
            rating=rating,
            feedback=self.feedback or "",
            image_name=(self.image_name or "").strip() or DEFAULT_IMAGE_NAME,
        )


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes read back from storage."""

    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def format_timestamp(value: datetime) -> str:
    return ensure_utc(value).isoformat().replace("+00:00", "Z")


__all__ = [
    "Evaluation",
    "EvaluationCreateRequest",
    "EvaluationDraft",
    "MIN_RATING",
    "MAX_RATING",
    "DEFAULT_IMAGE_NAME",
    "MISSING_FIELDS_MESSAGE",
    "RATING_RANGE_MESSAGE",
    "ensure_utc",
    "format_timestamp",
    "utcnow",
]
