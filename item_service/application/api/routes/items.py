"""
Item Routes

CRUD endpoints under /api/items. Reads carry a ``cached`` flag telling
whether the body came from the cache. Errors are mapped to responses by the
exception handlers registered in ``create_app``:

- invalid id or body    -> 400
- unknown item          -> 404
- primary store failure -> 500
"""

from fastapi import APIRouter, status

from item_service.application.api.dependencies import ItemServiceDep
from item_service.application.api.models.items import ItemPayload

router = APIRouter(prefix="/items", tags=["Items"])


@router.get("")
async def list_items(service: ItemServiceDep):
    return await service.list_items()


@router.get("/{item_id}")
async def get_item(item_id: int, service: ItemServiceDep):
    return await service.get_item(item_id)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_item(payload: ItemPayload, service: ItemServiceDep):
    return await service.create_item(payload.to_fields())


@router.put("/{item_id}")
async def update_item(item_id: int, payload: ItemPayload, service: ItemServiceDep):
    return await service.update_item(item_id, payload.to_fields())


@router.delete("/{item_id}")
async def delete_item(item_id: int, service: ItemServiceDep):
    return await service.delete_item(item_id)
