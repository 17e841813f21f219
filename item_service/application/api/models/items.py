"""
Item API Models

Request body validation for item writes. A blank description is stored as
null; the name is trimmed and must be between 1 and 255 characters.
"""

from pydantic import BaseModel, Field, field_validator

from item_service.core.config.constants import ITEM_NAME_MAX_LENGTH
from item_service.infrastructure.database.models import ItemFields


class ItemPayload(BaseModel):
    """Body of POST /api/items and PUT /api/items/{id}."""

    name: str | None = Field(
        default=None,
        validate_default=True,
        description="Item name (required, 1-255 characters)",
        examples=["Widget"],
    )
    description: str | None = Field(default=None, description="Free-form description")

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str | None) -> str:
        if v is None or not v.strip():
            raise ValueError("Item name is required")

        v = v.strip()
        if len(v) > ITEM_NAME_MAX_LENGTH:
            raise ValueError(f"Item name must be less than {ITEM_NAME_MAX_LENGTH} characters")
        return v

    @field_validator("description")
    @classmethod
    def blank_description_is_null(cls, v: str | None) -> str | None:
        if v is None or not v.strip():
            return None
        return v

    def to_fields(self) -> ItemFields:
        return ItemFields(name=self.name, description=self.description)
