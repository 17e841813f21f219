"""
Durable Store Module

Pooled SQLAlchemy asyncio access to the primary relational store.
"""

from item_service.infrastructure.database.connector import DurableStoreConnector
from item_service.infrastructure.database.models import Item, ItemFields, items_table, metadata
from item_service.infrastructure.database.repository import ItemRepository

__all__ = [
    "DurableStoreConnector",
    "Item",
    "ItemFields",
    "ItemRepository",
    "items_table",
    "metadata",
]
