from item_service.application.services.item_service import ItemService

__all__ = ["ItemService"]
