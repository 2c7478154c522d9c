"""Document store adapters for analysis records."""

import copy
import logging
from typing import Any, Protocol

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from codescan.models.document import Document

logger = logging.getLogger(__name__)


class DocumentStore(Protocol):
    """Key-value store of JSON records grouped into collections."""

    async def put(self, collection: str, id: str, record: dict[str, Any]) -> None: ...

    async def get(self, collection: str, id: str) -> dict[str, Any] | None: ...

    async def query(self, collection: str, **filters: Any) -> list[dict[str, Any]]: ...


def _matches(record: dict[str, Any], filters: dict[str, Any]) -> bool:
    return all(record.get(key) == value for key, value in filters.items())


class SqlDocumentStore:
    """Stores records in the ``documents`` table, one session per call."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def put(self, collection: str, id: str, record: dict[str, Any]) -> None:
        async with self.session_factory() as session:
            document = await session.get(Document, (collection, id))
            if document is None:
                session.add(Document(collection=collection, id=id, data=record))
            else:
                document.data = record
            await session.commit()
        logger.debug(f"Stored {collection}/{id}")

    async def get(self, collection: str, id: str) -> dict[str, Any] | None:
        async with self.session_factory() as session:
            document = await session.get(Document, (collection, id))
            return dict(document.data) if document else None

    async def query(self, collection: str, **filters: Any) -> list[dict[str, Any]]:
        # Filters are applied in Python so the same query works on SQLite and PostgreSQL
        async with self.session_factory() as session:
            result = await session.execute(
                select(Document)
                .where(Document.collection == collection)
                .order_by(Document.created_at, Document.id)
            )
            return [dict(doc.data) for doc in result.scalars() if _matches(doc.data, filters)]


class InMemoryDocumentStore:
    """Process-local store used by tests and single-process runs."""

    def __init__(self):
        self._collections: dict[str, dict[str, dict[str, Any]]] = {}

    async def put(self, collection: str, id: str, record: dict[str, Any]) -> None:
        self._collections.setdefault(collection, {})[id] = copy.deepcopy(record)

    async def get(self, collection: str, id: str) -> dict[str, Any] | None:
        record = self._collections.get(collection, {}).get(id)
        return copy.deepcopy(record) if record is not None else None

    async def query(self, collection: str, **filters: Any) -> list[dict[str, Any]]:
        return [
            copy.deepcopy(record)
            for record in self._collections.get(collection, {}).values()
            if _matches(record, filters)
        ]
