"""Menu Service.

Menu items of a stall. Reads are public (available items of active stalls);
writes are limited to the stall's owner and admins.
"""

from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from ..core.constants import ErrorMessages
from ..core.exceptions import NotFoundError
from ..core.logging import get_logger
from ..domain.transformers import menu_item_to_dict
from ..models import MenuItem, User
from ..repositories import StallRepository
from ..utils.transaction_helpers import safe_transaction
from .stall_service import ensure_can_manage

logger = get_logger(__name__)

MENU_FIELDS = ("name", "description", "price", "image_path", "is_available")


class MenuService:
    """Service for stall menu items."""

    def __init__(self, db: AsyncSession, repository: StallRepository | None = None):
        self.db = db
        self.repository = repository or StallRepository(db)

    async def _get_stall(self, stall_id: int, active_only: bool = False):
        stall = await self.repository.find_by_id(stall_id, active_only=active_only, with_relations=False)
        if not stall:
            raise NotFoundError(ErrorMessages.STALL_NOT_FOUND)
        return stall

    async def _get_item(self, stall_id: int, item_id: int) -> MenuItem:
        item = await self.repository.find_menu_item(stall_id, item_id)
        if not item:
            raise NotFoundError(ErrorMessages.MENU_ITEM_NOT_FOUND)
        return item

    async def list_menu(self, stall_id: int) -> list[dict]:
        await self._get_stall(stall_id, active_only=True)
        items = await self.repository.list_menu(stall_id)
        return [menu_item_to_dict(item) for item in items]

    async def add_item(self, user: User, stall_id: int, data: dict[str, Any]) -> dict:
        stall = await self._get_stall(stall_id)
        ensure_can_manage(user, stall)

        async with safe_transaction(self.db):
            item = await self.repository.add_menu_item(
                MenuItem(
                    stall_id=stall.id,
                    name=data["name"],
                    description=data.get("description"),
                    price=data["price"],
                    image_path=data.get("image_path"),
                    is_available=data.get("is_available", True)
                )
            )

        logger.info("Menu item created", extra={'stall_id': stall.id, 'item_id': item.id})
        return menu_item_to_dict(item)

    async def update_item(self, user: User, stall_id: int, item_id: int, changes: dict[str, Any]) -> dict:
        stall = await self._get_stall(stall_id)
        ensure_can_manage(user, stall)
        item = await self._get_item(stall.id, item_id)

        async with safe_transaction(self.db):
            for field in MENU_FIELDS:
                if changes.get(field) is not None:
                    setattr(item, field, changes[field])

        logger.info("Menu item updated", extra={'stall_id': stall.id, 'item_id': item.id})
        return menu_item_to_dict(item)

    async def delete_item(self, user: User, stall_id: int, item_id: int) -> None:
        stall = await self._get_stall(stall_id)
        ensure_can_manage(user, stall)
        item = await self._get_item(stall.id, item_id)

        async with safe_transaction(self.db):
            await self.repository.delete_menu_item(item)

        logger.info("Menu item deleted", extra={'stall_id': stall.id, 'item_id': item_id})
