"""
Item Table and Record Types

SQLAlchemy Core table definition for the ``items`` table plus the record
shapes exchanged with the repository.
"""

from dataclasses import dataclass
from datetime import datetime

from pydantic import BaseModel, ConfigDict
from sqlalchemy import Column, DateTime, Index, Integer, MetaData, String, Table, Text

from item_service.core.config.constants import ITEM_NAME_MAX_LENGTH

metadata = MetaData()

items_table = Table(
    "items",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(ITEM_NAME_MAX_LENGTH), nullable=False),
    Column("description", Text, nullable=True),
    Column("created_at", DateTime(timezone=True), nullable=False),
    Column("updated_at", DateTime(timezone=True), nullable=False),
    Index("idx_name", "name"),
)


class Item(BaseModel):
    """A stored item record."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: str | None = None
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class ItemFields:
    """Writable fields of an item (already validated and trimmed)."""

    name: str
    description: str | None = None
