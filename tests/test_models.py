"""Tests for evaluation payload normalisation."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from fridgelens.errors import InvalidInputError
from fridgelens.models.evaluation import (
    Evaluation,
    EvaluationCreateRequest,
    format_timestamp,
)


def _request(**overrides) -> EvaluationCreateRequest:
    payload = {"ingredients": "eggs", "recipe": "**Omelette**", "rating": 3}
    payload.update(overrides)
    return EvaluationCreateRequest.model_validate(payload)


def test_to_draft_applies_defaults():
    draft = _request().to_draft()

    assert draft.feedback == ""
    assert draft.image_name == "Unknown"


def test_to_draft_strips_text_fields():
    draft = _request(ingredients="  eggs  ", imageName="  ").to_draft()

    assert draft.ingredients == "eggs"
    assert draft.image_name == "Unknown"


@pytest.mark.parametrize(
    "overrides",
    [{"ingredients": ""}, {"recipe": "   "}, {"rating": None}, {"rating": 0}],
)
def test_to_draft_requires_fields(overrides):
    with pytest.raises(InvalidInputError) as excinfo:
        _request(**overrides).to_draft()

    assert excinfo.value.message.startswith("Missing required fields")


@pytest.mark.parametrize("rating", [-1, 6, 100])
def test_reject_policy_refuses_out_of_range(rating):
    with pytest.raises(InvalidInputError) as excinfo:
        _request(rating=rating).to_draft("reject")

    assert excinfo.value.message == "Rating must be between 1 and 5"


@pytest.mark.parametrize(("rating", "expected"), [(-1, 1), (6, 5), (3, 3)])
def test_clamp_policy_pulls_rating_into_range(rating, expected):
    assert _request(rating=rating).to_draft("clamp").rating == expected


def test_public_payload_uses_wire_names():
    evaluation = Evaluation(
        id="42",
        ingredients="eggs",
        recipe="**Omelette**",
        rating=5,
        image_name="fridge.jpg",
        timestamp=datetime(2024, 5, 1, 12, 30, tzinfo=timezone.utc),
    )

    payload = evaluation.to_public()

    assert payload["_id"] == payload["id"] == "42"
    assert payload["imageName"] == "fridge.jpg"
    assert payload["timestamp"] == "2024-05-01T12:30:00Z"
    assert "image_name" not in payload


def test_format_timestamp_normalises_offsets():
    plus_two = timezone(timedelta(hours=2))

    assert format_timestamp(datetime(2024, 5, 1, 14, 0, tzinfo=plus_two)) == "2024-05-01T12:00:00Z"
    assert format_timestamp(datetime(2024, 5, 1, 12, 0)) == "2024-05-01T12:00:00Z"


@pytest.mark.parametrize("rating", [True, "4", 4.0])
def test_rating_must_be_a_real_integer(rating):
    with pytest.raises(ValidationError):
        EvaluationCreateRequest.model_validate(
            {"ingredients": "eggs", "recipe": "**Omelette**", "rating": rating}
        )
