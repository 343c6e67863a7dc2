"""Integration tests for the evaluation endpoints."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from fastapi import status
from fastapi.testclient import TestClient

from fridgelens.config import get_settings
from fridgelens.server.app import create_app


def _parse_timestamp(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def test_list_is_empty_on_fresh_store(client):
    response = client.get("/evaluations")

    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"evaluations": [], "success": True}


def test_insert_then_list_returns_saved_evaluation(client, evaluation_payload):
    before = datetime.now(timezone.utc) - timedelta(seconds=1)

    response = client.post("/evaluations", json=evaluation_payload)
    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    assert body["success"] is True
    assert body["id"]

    listing = client.get("/evaluations").json()["evaluations"]
    assert len(listing) == 1
    saved = listing[0]
    assert saved["_id"] == body["id"]
    assert saved["ingredients"] == "chicken, rice"
    assert saved["rating"] == 4
    assert saved["feedback"] == "tasty"
    assert saved["imageName"] == "fridge1.jpg"
    assert saved["timestamp"].endswith("Z")
    assert _parse_timestamp(saved["timestamp"]) >= before


def test_optional_fields_receive_defaults(client):
    response = client.post(
        "/evaluations",
        json={"ingredients": "eggs", "recipe": "**Omelette**", "rating": 5},
    )
    assert response.status_code == status.HTTP_200_OK

    saved = response.json()["evaluation"]
    assert saved["feedback"] == ""
    assert saved["imageName"] == "Unknown"


def test_list_orders_newest_first(client):
    for ingredients in ("first", "second", "third"):
        client.post(
            "/evaluations",
            json={"ingredients": ingredients, "recipe": "**Dish**", "rating": 3},
        )

    listing = client.get("/evaluations").json()["evaluations"]
    assert [entry["ingredients"] for entry in listing] == ["third", "second", "first"]
    timestamps = [_parse_timestamp(entry["timestamp"]) for entry in listing]
    assert timestamps == sorted(timestamps, reverse=True)


def test_missing_required_fields_are_rejected(client, evaluation_payload):
    for field in ("ingredients", "recipe", "rating"):
        payload = dict(evaluation_payload)
        payload.pop(field)
        response = client.post("/evaluations", json=payload)
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["error"] == (
            "Missing required fields: ingredients, recipe, and rating are required"
        )

    assert client.get("/evaluations").json()["evaluations"] == []


def test_zero_rating_counts_as_missing(client, evaluation_payload):
    response = client.post("/evaluations", json={**evaluation_payload, "rating": 0})

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert "Missing required fields" in response.json()["error"]


def test_out_of_range_rating_is_rejected_by_default(client, evaluation_payload):
    response = client.post("/evaluations", json={**evaluation_payload, "rating": 7})

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["error"] == "Rating must be between 1 and 5"
    assert client.get("/evaluations").json()["evaluations"] == []


def test_out_of_range_rating_is_clamped_when_configured(
    monkeypatch, detector, generator, evaluation_payload
):
    monkeypatch.setenv("FRIDGELENS_RATING_POLICY", "clamp")
    get_settings.cache_clear()
    application = create_app(detector=detector, generator=generator)
    try:
        client = TestClient(application)
        high = client.post("/evaluations", json={**evaluation_payload, "rating": 9})
        low = client.post("/evaluations", json={**evaluation_payload, "rating": -2})
    finally:
        application.state.store.close()

    assert high.status_code == status.HTTP_200_OK
    assert high.json()["evaluation"]["rating"] == 5
    assert low.json()["evaluation"]["rating"] == 1


@pytest.mark.parametrize("rating", ["great", "4", True, 4.5])
def test_non_integer_rating_is_rejected(client, evaluation_payload, rating):
    response = client.post("/evaluations", json={**evaluation_payload, "rating": rating})

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    body = response.json()
    assert body["error"] == "Invalid evaluation payload"
    assert "rating" in body["details"]
    assert client.get("/evaluations").json()["evaluations"] == []


def test_non_object_body_is_rejected(client):
    response = client.post("/evaluations", json=["chicken", "rice"])

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["error"] == "Request body must be a JSON object"


def test_delete_all_clears_every_evaluation(client, evaluation_payload):
    client.post("/evaluations", json=evaluation_payload)
    client.post("/evaluations", json={**evaluation_payload, "rating": 2})

    response = client.delete("/evaluations")
    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {
        "success": True,
        "message": "All evaluations cleared",
        "deletedCount": 2,
    }
    assert client.get("/evaluations").json()["evaluations"] == []


def test_delete_all_on_empty_store_reports_zero(client):
    response = client.delete("/evaluations")

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["deletedCount"] == 0


def test_api_prefix_serves_the_same_routes(client, evaluation_payload):
    response = client.post("/api/evaluations", json=evaluation_payload)
    assert response.status_code == status.HTTP_200_OK

    listing = client.get("/evaluations").json()["evaluations"]
    assert [entry["_id"] for entry in listing] == [response.json()["id"]]
    assert client.get("/api/evaluations").json() == client.get("/evaluations").json()


def test_list_respects_configured_limit(monkeypatch, detector, generator):
    monkeypatch.setenv("FRIDGELENS_EVALUATIONS_LIMIT", "2")
    get_settings.cache_clear()
    application = create_app(detector=detector, generator=generator)
    try:
        client = TestClient(application)
        for rating in (1, 2, 3):
            client.post(
                "/evaluations",
                json={"ingredients": "eggs", "recipe": "**Eggs**", "rating": rating},
            )
        listing = client.get("/evaluations").json()["evaluations"]
    finally:
        application.state.store.close()

    assert [entry["rating"] for entry in listing] == [3, 2]


def test_store_failure_surfaces_as_server_error(monkeypatch, detector, generator, tmp_path):
    blocker = tmp_path / "not-a-directory"
    blocker.write_text("occupied")
    monkeypatch.setenv("FRIDGELENS_DATABASE_PATH", str(blocker / "evaluations.db"))
    get_settings.cache_clear()
    application = create_app(detector=detector, generator=generator)
    try:
        response = TestClient(application).get("/evaluations")
    finally:
        application.state.store.close()

    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert response.json()["error"] == "Failed to connect to the evaluation database"
