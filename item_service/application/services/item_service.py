"""
Item Service

Business operations over items. Reads are served through the cache-aside
layer; writes go to the primary store and then invalidate the affected keys.

Cache keys:
    items:all   -> {"items": [...], "count": N}
    item:<id>   -> a single item
"""

from typing import Any

from item_service.core.config.constants import ITEMS_ALL_KEY, item_cache_key
from item_service.core.exceptions import RecordNotFoundError
from item_service.core.logging.logger import get_logger
from item_service.infrastructure.cache.cache_aside import CacheAsideLayer
from item_service.infrastructure.database.models import ItemFields
from item_service.infrastructure.database.repository import ItemRepository

logger = get_logger(__name__)


class ItemService:
    """
    Usage:
        service = ItemService(repository, cache_layer)

        body = await service.list_items()        # {"items": [...], "count": N, "cached": bool}
        item = await service.get_item(42)        # {..., "cached": bool}
        item = await service.create_item(ItemFields(name="Widget"))
    """

    def __init__(self, repository: ItemRepository, cache_layer: CacheAsideLayer):
        self._repository = repository
        self._cache = cache_layer

        self.list_items = cache_layer.cached(lambda: ITEMS_ALL_KEY)(self._load_items)
        self.get_item = cache_layer.cached(item_cache_key)(self._load_item)

    async def _load_items(self) -> dict[str, Any]:
        items = await self._repository.list_all()
        return {
            "items": [item.model_dump(mode="json") for item in items],
            "count": len(items),
        }

    async def _load_item(self, item_id: int) -> dict[str, Any]:
        item = await self._repository.get_by_id(item_id)
        if item is None:
            raise RecordNotFoundError("Item not found", details={"id": item_id})
        return item.model_dump(mode="json")

    async def create_item(self, fields: ItemFields) -> dict[str, Any]:
        item = await self._repository.create(fields)
        await self._cache.invalidate_many([ITEMS_ALL_KEY])
        return item.model_dump(mode="json")

    async def update_item(self, item_id: int, fields: ItemFields) -> dict[str, Any]:
        item = await self._repository.update(item_id, fields)
        if item is None:
            raise RecordNotFoundError("Item not found", details={"id": item_id})

        await self._cache.invalidate_many([item_cache_key(item_id), ITEMS_ALL_KEY])
        return item.model_dump(mode="json")

    async def delete_item(self, item_id: int) -> dict[str, Any]:
        if not await self._repository.delete(item_id):
            raise RecordNotFoundError("Item not found", details={"id": item_id})

        await self._cache.invalidate_many([item_cache_key(item_id), ITEMS_ALL_KEY])
        return {"message": "Item deleted successfully", "id": item_id}
