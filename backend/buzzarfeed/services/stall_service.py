"""Stall Service.

The public stall directory and stall management by owners and admins.

Detail payloads and the category list are cached in Redis; every write that
changes what those payloads show invalidates them after commit.
"""

from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from ..core.constants import (
    AdminAction,
    Cache,
    EntityType,
    ErrorMessages,
    StallCategory,
    StallDefaults,
    UserType,
)
from ..core.exceptions import NotFoundError, PermissionDeniedError
from ..core.logging import get_logger
from ..domain.transformers import stall_to_dict
from ..models import FoodStall, User
from ..repositories import StallRepository
from ..utils import normalize_category
from ..utils.transaction_helpers import safe_transaction
from .admin_log_service import AdminLogService
from .cache_service import cache, categories_key, stall_key

logger = get_logger(__name__)

# Stall columns an owner or admin may edit directly
EDITABLE_FIELDS = ("name", "description", "hours", "logo_path", "categories")
LOCATION_FIELDS = ("address", "latitude", "longitude")


def ensure_can_manage(user: User, stall: FoodStall) -> None:
    """Only the stall's owner or an admin may change a stall."""
    if not user.is_admin and stall.owner_id != user.id:
        raise PermissionDeniedError("You do not have permission to manage this stall")


class StallService:
    """Service for stall directory reads and stall writes."""

    def __init__(self, db: AsyncSession, repository: StallRepository | None = None):
        self.db = db
        self.repository = repository or StallRepository(db)

    async def list_stalls(
        self,
        search: str | None = None,
        category: str | None = None,
        page: int = 1,
        page_size: int = 12
    ) -> tuple[list[dict], int]:
        """List active stalls, newest first.

        An unknown category matches nothing rather than being ignored.
        """
        slug = None
        if category:
            slug = normalize_category(category)
            if slug is None:
                logger.debug("Unknown category filter", extra={'category': category})
                return [], 0

        stalls, total = await self.repository.list_active(
            search=search, category=slug, page=page, page_size=page_size
        )
        return [stall_to_dict(stall) for stall in stalls], total

    async def get_featured(self, limit: int = StallDefaults.FEATURED_LIMIT) -> list[dict]:
        stalls = await self.repository.random_active(limit)
        return [stall_to_dict(stall) for stall in stalls]

    async def get_categories(self) -> list[str]:
        """Categories used by at least one active stall, in canonical order."""
        async def fetch() -> list[str]:
            in_use = set()
            for categories in await self.repository.categories_in_use():
                in_use.update(categories)
            return [slug for slug in StallCategory.ALL_CATEGORIES if slug in in_use]

        return await cache.get_or_set(
            categories_key(), fetch, ttl=Cache.CATEGORIES_TTL_SECONDS, key_type="categories"
        )

    async def get_stall(self, stall_id: int) -> dict:
        """Formatted active stall, served from cache when possible."""
        async def fetch() -> dict | None:
            stall = await self.repository.find_by_id(stall_id, active_only=True)
            return stall_to_dict(stall) if stall else None

        payload = await cache.get_or_set(
            stall_key(stall_id), fetch, ttl=Cache.STALL_TTL_SECONDS, key_type="stall"
        )
        if payload is None:
            raise NotFoundError(ErrorMessages.STALL_NOT_FOUND)
        return payload

    async def get_stall_model(self, stall_id: int, active_only: bool = False) -> FoodStall:
        stall = await self.repository.find_by_id(stall_id, active_only=active_only, with_relations=False)
        if not stall:
            raise NotFoundError(ErrorMessages.STALL_NOT_FOUND)
        return stall

    async def list_owned(self, owner: User) -> list[dict]:
        stalls = await self.repository.list_by_owner(owner.id)
        return [stall_to_dict(stall) for stall in stalls]

    async def create_stall(self, user: User, data: dict[str, Any]) -> dict:
        """Create a stall directly (stall owners and admins).

        Args:
            data: name, description, address, and optionally hours, logo_path,
                categories, latitude, longitude
        """
        if user.user_type not in (UserType.FOOD_STALL_OWNER, UserType.ADMIN):
            raise PermissionDeniedError("Only stall owners can create stalls")

        async with safe_transaction(self.db):
            stall = await self.repository.create(
                FoodStall(
                    owner_id=user.id,
                    name=data["name"],
                    description=data["description"],
                    hours=data.get("hours"),
                    logo_path=data.get("logo_path"),
                    categories=list(data.get("categories") or []),
                    is_active=True
                )
            )
            await self.repository.set_location(
                stall.id, data["address"], data.get("latitude"), data.get("longitude")
            )

        await cache.delete(categories_key())
        logger.info("Stall created", extra={'stall_id': stall.id, 'owner_id': user.id})

        return stall_to_dict(await self.repository.find_by_id(stall.id))

    async def update_stall(self, user: User, stall_id: int, changes: dict[str, Any]) -> dict:
        """Update stall fields and/or its location (owner or admin).

        ``is_active`` may only be changed by an admin.
        """
        stall = await self.get_stall_model(stall_id)
        ensure_can_manage(user, stall)

        if "is_active" in changes and not user.is_admin:
            raise PermissionDeniedError("Only admins can activate or deactivate stalls")

        async with safe_transaction(self.db):
            for field in EDITABLE_FIELDS:
                if changes.get(field) is not None:
                    setattr(stall, field, changes[field])
            if changes.get("is_active") is not None:
                stall.is_active = changes["is_active"]

            if any(changes.get(field) is not None for field in LOCATION_FIELDS):
                location = await self.repository.get_location(stall.id)
                address = changes.get("address") or (location.address if location else "")
                await self.repository.set_location(
                    stall.id, address, changes.get("latitude"), changes.get("longitude")
                )

        await cache.invalidate_stall(stall.id)
        logger.info(
            "Stall updated",
            extra={'stall_id': stall.id, 'user_id': user.id, 'fields': sorted(changes)}
        )

        return stall_to_dict(await self.repository.find_by_id(stall.id))

    async def delete_stall(self, admin: User, stall_id: int, ip_address: str | None = None) -> None:
        """Delete a stall with its reviews, reactions, reports, menu and location."""
        stall = await self.get_stall_model(stall_id)
        stall_name = stall.name

        async with safe_transaction(self.db):
            await self.repository.delete_stalls([stall.id])
            await AdminLogService(self.db).log_action(
                admin.id,
                EntityType.STALL,
                stall_id,
                AdminAction.DELETE_STALL,
                f"Deleted stall: {stall_name}",
                ip_address
            )

        await cache.invalidate_stall(stall_id)
        logger.info("Stall deleted", extra={'stall_id': stall_id, 'admin_id': admin.id})
