"""SQLite-backed evaluation store built on SQLAlchemy."""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Generator, List

from sqlalchemy import create_engine, delete, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from fridgelens.errors import StoreError
from fridgelens.models.evaluation import Evaluation, EvaluationDraft, ensure_utc, utcnow

from .models import Base, EvaluationORM
from .store import DEFAULT_LIST_LIMIT, instrumented

logger = logging.getLogger(__name__)


def _to_model(row: EvaluationORM) -> Evaluation:
    return Evaluation.model_validate(
        {
            "id": str(row.id),
            "ingredients": row.ingredients,
            "recipe": row.recipe,
            "rating": row.rating,
            "feedback": row.feedback,
            "image_name": row.image_name,
            "timestamp": ensure_utc(row.timestamp),
        }
    )


class SqlEvaluationStore:
    """Evaluation store owning one SQLAlchemy engine, created lazily on first use."""

    backend = "sql"

    def __init__(self, database_path: Path) -> None:
        self._database_path = database_path
        self._engine: Engine | None = None
        self._session_factory: sessionmaker[Session] | None = None
        self._lock = threading.Lock()

    def _get_engine(self) -> Engine:
        with self._lock:
            if self._engine is not None:
                return self._engine

            self._database_path.parent.mkdir(parents=True, exist_ok=True)
            engine = create_engine(
                f"sqlite:///{self._database_path}",
                future=True,
                echo=False,
            )
            try:
                Base.metadata.create_all(engine)
            except OperationalError as exc:
                if "already exists" in str(exc).lower():
                    logger.debug("Database schema already initialized: %s", exc)
                else:
                    engine.dispose()
                    raise
            self._session_factory = sessionmaker(
                bind=engine, autoflush=False, autocommit=False, future=True
            )
            self._engine = engine
            logger.debug("Opened evaluation database at %s", self._database_path)
            return engine

    @contextmanager
    def session_scope(self) -> Generator[Session, None, None]:
        """Yield a session with automatic commit/rollback."""

        try:
            self._get_engine()
        except (SQLAlchemyError, OSError) as exc:
            raise StoreError("Failed to connect to the evaluation database", details=str(exc)) from exc
        assert self._session_factory is not None  # for mypy
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    @instrumented("insert")
    def insert(self, draft: EvaluationDraft) -> Evaluation:
        try:
            with self.session_scope() as session:
                row = EvaluationORM(
                    ingredients=draft.ingredients,
                    recipe=draft.recipe,
                    rating=draft.rating,
                    feedback=draft.feedback,
                    image_name=draft.image_name,
                    timestamp=utcnow(),
                )
                session.add(row)
                session.flush()
                return _to_model(row)
        except SQLAlchemyError as exc:
            raise StoreError("Failed to save evaluation", details=str(exc)) from exc

    @instrumented("list")
    def list(self, limit: int = DEFAULT_LIST_LIMIT) -> List[Evaluation]:
        try:
            with self.session_scope() as session:
                rows = (
                    session.execute(
                        select(EvaluationORM)
                        .order_by(EvaluationORM.timestamp.desc(), EvaluationORM.id.desc())
                        .limit(limit)
                    )
                    .scalars()
                    .all()
                )
                return [_to_model(row) for row in rows]
        except SQLAlchemyError as exc:
            raise StoreError("Failed to fetch evaluations", details=str(exc)) from exc

    @instrumented("delete_all")
    def delete_all(self) -> int:
        try:
            with self.session_scope() as session:
                result = session.execute(delete(EvaluationORM))
                return int(result.rowcount or 0)
        except SQLAlchemyError as exc:
            raise StoreError("Failed to clear evaluations", details=str(exc)) from exc

    def close(self) -> None:
        with self._lock:
            if self._engine is not None:
                self._engine.dispose()
                logger.debug("Closed evaluation database at %s", self._database_path)
            self._engine = None
            self._session_factory = None


__all__ = ["SqlEvaluationStore"]
