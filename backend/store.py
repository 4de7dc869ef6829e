"""Keyed record store over the ORM collections.

Services never talk to the session directly: each collection (cards, study
sessions, speaking challenges, completions, users) goes through a
``RecordStore`` so that the scheduling core only ever sees
find/get/insert/replace/remove.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any, Generic, TypeVar

from sqlalchemy import ColumnElement, and_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from backend.errors import ConcurrentUpdateError, NotFoundError
from backend.models.base import Base

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=Base)


class RecordStore(ABC, Generic[ModelT]):
    """Abstract keyed record store for a single collection."""

    @abstractmethod
    async def find(
        self,
        *criteria: ColumnElement[bool],
        order_by: Any = None,
        limit: int | None = None,
    ) -> list[ModelT]:
        """Return every record matching all ``criteria``."""
        ...

    @abstractmethod
    async def get_by_id(self, record_id: int) -> ModelT:
        """Return the record with ``record_id``.

        Raises:
            NotFoundError: If no such record exists.
        """
        ...

    @abstractmethod
    async def insert(self, record: ModelT) -> ModelT:
        """Persist a new record and return it with its id assigned."""
        ...

    @abstractmethod
    async def replace(
        self,
        record_id: int,
        changes: Mapping[str, Any],
        expected_version: int | None = None,
    ) -> ModelT:
        """Write ``changes`` to an existing record.

        When ``expected_version`` is given the write only happens if the
        stored version still matches, and the version is bumped.

        Raises:
            NotFoundError: If no such record exists.
            ConcurrentUpdateError: If the stored version moved on.
        """
        ...

    @abstractmethod
    async def remove(self, record_id: int) -> None:
        """Delete a record.

        Raises:
            NotFoundError: If no such record exists.
        """
        ...


class SqlRecordStore(RecordStore[ModelT]):
    """RecordStore backed by an SQLAlchemy async session."""

    def __init__(self, db: AsyncSession, model: type[ModelT]) -> None:
        self.db = db
        self.model = model

    @property
    def kind(self) -> str:
        return self.model.__name__

    async def find(
        self,
        *criteria: ColumnElement[bool],
        order_by: Any = None,
        limit: int | None = None,
    ) -> list[ModelT]:
        stmt = select(self.model)
        if criteria:
            stmt = stmt.where(and_(*criteria))
        if order_by is not None:
            stmt = stmt.order_by(*order_by) if isinstance(order_by, (list, tuple)) else stmt.order_by(order_by)
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def get_by_id(self, record_id: int) -> ModelT:
        record = await self.db.get(self.model, record_id)
        if record is None:
            raise NotFoundError(self.kind, record_id)
        return record

    async def insert(self, record: ModelT) -> ModelT:
        self.db.add(record)
        await self.db.commit()
        await self.db.refresh(record)
        return record

    async def replace(
        self,
        record_id: int,
        changes: Mapping[str, Any],
        expected_version: int | None = None,
    ) -> ModelT:
        id_col = self.model.id  # type: ignore[attr-defined]
        values = dict(changes)
        stmt = update(self.model).where(id_col == record_id)
        if expected_version is not None:
            version_col = self.model.version  # type: ignore[attr-defined]
            stmt = stmt.where(version_col == expected_version)
            values["version"] = expected_version + 1

        result = await self.db.execute(
            stmt.values(**values).execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            exists = await self.db.scalar(select(id_col).where(id_col == record_id))
            # Nothing was written; end the transaction without expiring loaded records
            await self.db.commit()
            if exists is None:
                raise NotFoundError(self.kind, record_id)
            logger.warning(
                "Rejected stale write to %s %d (expected version %d)",
                self.kind,
                record_id,
                expected_version,
            )
            raise ConcurrentUpdateError(self.kind, record_id, expected_version or 0)

        await self.db.commit()
        record = await self.db.get(self.model, record_id, populate_existing=True)
        if record is None:
            raise NotFoundError(self.kind, record_id)
        return record

    async def remove(self, record_id: int) -> None:
        record = await self.get_by_id(record_id)
        await self.db.delete(record)
        await self.db.commit()
