"""
Repository pattern implementation for the Library Lending MCP Server.

Repositories keep SQLAlchemy queries out of the services and the MCP
handlers. Each one exposes two kinds of reads:

1. **Entity reads** (``get``, ``get_for_update``...) return mapped rows, which
   the lending services mutate inside their unit of work
2. **Projection reads** (``get_by_id`` and the per-repository listings)
   return Pydantic models that serialize cleanly to JSON for MCP resources

Commits are never issued here; the caller owns the session and its
transaction.
"""

from abc import ABC, abstractmethod
from typing import Generic, TypeVar

from pydantic import BaseModel
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from .schema import Base
from .session import (
    ConcurrencyConflictError,
    DuplicateError,
    RepositoryException,
    safe_query,
)

ModelType = TypeVar("ModelType", bound=Base)
ResponseSchemaType = TypeVar("ResponseSchemaType", bound=BaseModel)

__all__ = [
    "BaseRepository",
    "ConcurrencyConflictError",
    "DuplicateError",
    "RepositoryException",
]


class BaseRepository(ABC, Generic[ModelType, ResponseSchemaType]):
    """
    Abstract base repository providing the common reads.

    All queries go through ``safe_query`` so storage failures surface as
    ``RepositoryException``.
    """

    def __init__(self, session: Session):
        self.session = session

    @property
    @abstractmethod
    def model_class(self) -> type[ModelType]:
        """Return the SQLAlchemy model class."""

    @property
    @abstractmethod
    def response_schema(self) -> type[ResponseSchemaType]:
        """Return the Pydantic response schema."""

    def _to_response_model(self, db_obj: ModelType) -> ResponseSchemaType:
        return self.response_schema.model_validate(db_obj, from_attributes=True)

    def get(self, id: int) -> ModelType | None:
        """Get the mapped row by primary key, or None."""
        return safe_query(
            self.session,
            lambda s: s.get(self.model_class, id),
            f"Failed to get {self.model_class.__name__} by ID",
        )

    def get_for_update(self, id: int) -> ModelType | None:
        """
        Get the mapped row and lock it for the rest of the transaction.

        The lock is honoured by row-locking backends; on SQLite the version
        column still catches a concurrent change at commit.
        """
        query = select(self.model_class).where(self.model_class.id == id).with_for_update()
        return safe_query(
            self.session,
            lambda s: s.execute(query).scalar_one_or_none(),
            f"Failed to lock {self.model_class.__name__}",
        )

    def get_by_id(self, id: int) -> ResponseSchemaType | None:
        """Get the projection of an entity by ID."""
        db_obj = self.get(id)
        if db_obj is None:
            return None
        return self._to_response_model(db_obj)

    def count(self) -> int:
        query = select(func.count()).select_from(self.model_class)
        return (
            safe_query(self.session, lambda s: s.execute(query).scalar(), "Failed to count rows")
            or 0
        )

    def exists(self, id: int) -> bool:
        query = select(func.count()).select_from(self.model_class).where(self.model_class.id == id)
        count = safe_query(
            self.session, lambda s: s.execute(query).scalar(), "Failed to check existence"
        )
        return bool(count)

    def add(self, db_obj: ModelType) -> ModelType:
        """Stage a new row in the session; the caller commits."""
        self.session.add(db_obj)
        return db_obj
