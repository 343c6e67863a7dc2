"""MongoDB-backed evaluation store."""

from __future__ import annotations

import logging
import threading
from datetime import datetime
from typing import Any, Callable, List, Optional

from pymongo import DESCENDING, MongoClient
from pymongo.collection import Collection
from pymongo.errors import PyMongoError

from fridgelens.errors import StoreError
from fridgelens.models.evaluation import Evaluation, EvaluationDraft, format_timestamp, utcnow

from .store import DEFAULT_LIST_LIMIT, instrumented

logger = logging.getLogger(__name__)

SERVER_SELECTION_TIMEOUT_MS = 5000


def _parse_timestamp(document: dict[str, Any]) -> datetime:
    raw = document.get("timestamp")
    if isinstance(raw, datetime):
        return raw
    if isinstance(raw, str) and raw:
        return datetime.fromisoformat(raw.replace("Z", "+00:00"))
    created_at = document.get("createdAt")
    if isinstance(created_at, datetime):
        return created_at
    raise ValueError(f"Evaluation {document.get('_id')} has no usable timestamp")


def _to_model(document: dict[str, Any]) -> Evaluation:
    return Evaluation.model_validate(
        {
            "id": str(document["_id"]),
            "ingredients": document.get("ingredients") or "",
            "recipe": document.get("recipe") or "",
            "rating": int(document.get("rating") or 0),
            "feedback": document.get("feedback") or "",
            "image_name": document.get("imageName") or "Unknown",
            "timestamp": _parse_timestamp(document),
        }
    )


class MongoEvaluationStore:
    """Evaluation store owning one `MongoClient`, connected lazily on first use.

    Documents keep the layout written by earlier versions of the app: camelCase `imageName`,
    an ISO-8601 `timestamp` string used for ordering, and a native `createdAt` datetime.
    A missing connection string surfaces as a `StoreError` on the first request rather than
    at startup.
    """

    backend = "mongo"

    def __init__(
        self,
        uri: Optional[str],
        *,
        database: str = "airecipe",
        collection: str = "evaluations",
        client_factory: Callable[..., Any] = MongoClient,
    ) -> None:
        self._uri = uri
        self._database = database
        self._collection_name = collection
        self._client_factory = client_factory
        self._client: Any = None
        self._collection: Optional[Collection] = None
        self._lock = threading.Lock()

    def _get_collection(self) -> Collection:
        with self._lock:
            if self._collection is not None:
                return self._collection
            if not self._uri:
                raise StoreError(
                    "Database is not configured",
                    details="MONGODB_URI is not defined",
                )
            try:
                client = self._client_factory(
                    self._uri, serverSelectionTimeoutMS=SERVER_SELECTION_TIMEOUT_MS
                )
            except PyMongoError as exc:
                raise StoreError("Failed to connect to the evaluation database", details=str(exc)) from exc
            self._client = client
            self._collection = client[self._database][self._collection_name]
            logger.debug(
                "Connected to MongoDB database=%s collection=%s",
                self._database,
                self._collection_name,
            )
            return self._collection

    @instrumented("insert")
    def insert(self, draft: EvaluationDraft) -> Evaluation:
        collection = self._get_collection()
        created_at = utcnow()
        document: dict[str, Any] = {
            "ingredients": draft.ingredients,
            "recipe": draft.recipe,
            "rating": draft.rating,
            "feedback": draft.feedback,
            "imageName": draft.image_name,
            "timestamp": format_timestamp(created_at),
            "createdAt": created_at,
        }
        try:
            result = collection.insert_one(document)
        except PyMongoError as exc:
            raise StoreError("Failed to save evaluation", details=str(exc)) from exc
        document["_id"] = result.inserted_id
        logger.debug("Inserted evaluation id=%s", result.inserted_id)
        return _to_model(document)

    @instrumented("list")
    def list(self, limit: int = DEFAULT_LIST_LIMIT) -> List[Evaluation]:
        collection = self._get_collection()
        try:
            cursor = collection.find({}).sort("timestamp", DESCENDING).limit(limit)
            documents = list(cursor)
        except PyMongoError as exc:
            raise StoreError("Failed to fetch evaluations", details=str(exc)) from exc
        try:
            return [_to_model(document) for document in documents]
        except (ValueError, TypeError, KeyError) as exc:
            # pydantic's ValidationError is a ValueError.
            logger.error("Unreadable evaluation document in %s: %s", self._collection_name, exc)
            raise StoreError("Failed to fetch evaluations", details=str(exc)) from exc

    @instrumented("delete_all")
    def delete_all(self) -> int:
        collection = self._get_collection()
        try:
            result = collection.delete_many({})
        except PyMongoError as exc:
            raise StoreError("Failed to clear evaluations", details=str(exc)) from exc
        return int(result.deleted_count)

    def close(self) -> None:
        with self._lock:
            if self._client is not None:
                self._client.close()
                logger.debug("Closed MongoDB client")
            self._client = None
            self._collection = None


__all__ = ["MongoEvaluationStore"]
