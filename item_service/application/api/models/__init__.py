from item_service.application.api.models.items import ItemPayload

__all__ = ["ItemPayload"]
