"""
Item Repository

Record operations against the durable store. Each method runs in its own
transaction; any driver error is wrapped in TransientStoreError and is not
retried.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from sqlalchemy import delete, insert, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncConnection

from item_service.core.exceptions import TransientStoreError
from item_service.core.logging.logger import get_logger
from item_service.infrastructure.database.connector import DurableStoreConnector
from item_service.infrastructure.database.models import Item, ItemFields, items_table

logger = get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ItemRepository:
    """CRUD access to the ``items`` table."""

    def __init__(self, store: DurableStoreConnector):
        self._store = store

    @asynccontextmanager
    async def _transaction(self, operation: str) -> AsyncIterator[AsyncConnection]:
        try:
            async with self._store.connection() as conn:
                yield conn
        except SQLAlchemyError as e:
            logger.error("Primary store operation failed", operation=operation, error=str(e))
            raise TransientStoreError.from_exception(
                e, message=f"Failed to {operation}", operation=operation
            ) from e

    async def list_all(self) -> list[Item]:
        """All items, newest first."""
        statement = select(items_table).order_by(
            items_table.c.created_at.desc(), items_table.c.id.desc()
        )
        async with self._transaction("fetch items") as conn:
            result = await conn.execute(statement)
            return [Item.model_validate(dict(row)) for row in result.mappings()]

    async def get_by_id(self, item_id: int) -> Item | None:
        async with self._transaction("fetch item") as conn:
            return await self._fetch_one(conn, item_id)

    async def create(self, fields: ItemFields) -> Item:
        now = _utcnow()
        statement = insert(items_table).values(
            name=fields.name,
            description=fields.description,
            created_at=now,
            updated_at=now,
        )
        async with self._transaction("create item") as conn:
            result = await conn.execute(statement)
            item_id = result.inserted_primary_key[0]
            item = await self._fetch_one(conn, item_id)

        logger.info("Item created", item_id=item_id)
        return item

    async def update(self, item_id: int, fields: ItemFields) -> Item | None:
        """Replace name and description. Returns None if the item does not exist."""
        statement = (
            update(items_table)
            .where(items_table.c.id == item_id)
            .values(name=fields.name, description=fields.description, updated_at=_utcnow())
        )
        async with self._transaction("update item") as conn:
            result = await conn.execute(statement)
            if result.rowcount == 0:
                return None
            item = await self._fetch_one(conn, item_id)

        logger.info("Item updated", item_id=item_id)
        return item

    async def delete(self, item_id: int) -> bool:
        """Returns False if the item did not exist."""
        statement = delete(items_table).where(items_table.c.id == item_id)
        async with self._transaction("delete item") as conn:
            result = await conn.execute(statement)

        deleted = result.rowcount > 0
        if deleted:
            logger.info("Item deleted", item_id=item_id)
        return deleted

    @staticmethod
    async def _fetch_one(conn: AsyncConnection, item_id: int) -> Item | None:
        result = await conn.execute(select(items_table).where(items_table.c.id == item_id))
        row = result.mappings().first()
        return Item.model_validate(dict(row)) if row is not None else None
