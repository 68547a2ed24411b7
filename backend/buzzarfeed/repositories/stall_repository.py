"""Stall Repository.

Data access for stalls, their locations and menu items, including the
cascade used whenever stalls are removed.
"""

from __future__ import annotations

from sqlalchemy import String, cast, delete, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..models import (
    AmendmentRequest,
    Application,
    FoodStall,
    MenuItem,
    Review,
    ReviewReaction,
    ReviewReport,
    StallLocation,
)
from ..utils import escape_like
from .base import paginate


class StallRepository:
    """Repository for FoodStall data access operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    def _with_relations(self, query):
        # populate_existing so stalls already in the session get their relations too
        return query.options(
            selectinload(FoodStall.owner),
            selectinload(FoodStall.location)
        ).execution_options(populate_existing=True)

    async def find_by_id(
        self,
        stall_id: int,
        active_only: bool = False,
        with_relations: bool = True
    ) -> FoodStall | None:
        """Find a stall by ID.

        Args:
            stall_id: Stall ID
            active_only: If True, inactive stalls are treated as missing
            with_relations: Eager-load owner and location (needed for formatting)
        """
        query = select(FoodStall).where(FoodStall.id == stall_id)
        if active_only:
            query = query.where(FoodStall.is_active.is_(True))
        if with_relations:
            query = self._with_relations(query)

        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def list_active(
        self,
        search: str | None = None,
        category: str | None = None,
        page: int = 1,
        page_size: int = 12
    ) -> tuple[list[FoodStall], int]:
        """List active stalls, newest first.

        Args:
            search: Case-insensitive match on name or description
            category: Normalized category slug
        """
        query = select(FoodStall).where(FoodStall.is_active.is_(True))

        if search:
            pattern = f"%{escape_like(search.strip())}%"
            query = query.where(
                or_(
                    FoodStall.name.ilike(pattern, escape="\\"),
                    FoodStall.description.ilike(pattern, escape="\\")
                )
            )

        if category:
            # JSON list stored as text on both SQLite and PostgreSQL
            query = query.where(
                cast(FoodStall.categories, String).like(f'%"{category}"%')
            )

        query = self._with_relations(
            query.order_by(FoodStall.created_at.desc(), FoodStall.id.desc())
        )
        return await paginate(self.db, query, page, page_size)

    async def list_by_owner(self, owner_id: int) -> list[FoodStall]:
        query = self._with_relations(
            select(FoodStall)
            .where(FoodStall.owner_id == owner_id)
            .order_by(FoodStall.created_at.desc(), FoodStall.id.desc())
        )
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def random_active(self, limit: int) -> list[FoodStall]:
        query = self._with_relations(
            select(FoodStall)
            .where(FoodStall.is_active.is_(True))
            .order_by(func.random())
            .limit(limit)
        )
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def categories_in_use(self) -> list[list[str]]:
        result = await self.db.execute(
            select(FoodStall.categories).where(FoodStall.is_active.is_(True))
        )
        return [row or [] for row in result.scalars().all()]

    async def ids_by_owner(self, owner_id: int, active_only: bool = False) -> list[int]:
        query = select(FoodStall.id).where(FoodStall.owner_id == owner_id)
        if active_only:
            query = query.where(FoodStall.is_active.is_(True))
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def count(self, active_only: bool = True) -> int:
        query = select(func.count(FoodStall.id))
        if active_only:
            query = query.where(FoodStall.is_active.is_(True))
        return (await self.db.execute(query)).scalar_one()

    async def create(self, stall: FoodStall) -> FoodStall:
        self.db.add(stall)
        await self.db.flush()
        return stall

    async def get_location(self, stall_id: int) -> StallLocation | None:
        result = await self.db.execute(
            select(StallLocation).where(StallLocation.stall_id == stall_id)
        )
        return result.scalar_one_or_none()

    async def set_location(
        self,
        stall_id: int,
        address: str,
        latitude: float | None = None,
        longitude: float | None = None
    ) -> StallLocation:
        """Create or update the stall's location row."""
        location = await self.get_location(stall_id)
        if location is None:
            location = StallLocation(stall_id=stall_id, address=address)
            self.db.add(location)
        else:
            location.address = address

        if latitude is not None:
            location.latitude = latitude
        if longitude is not None:
            location.longitude = longitude

        await self.db.flush()
        return location

    async def update_rating(self, stall_id: int, average_rating, total_reviews: int) -> None:
        await self.db.execute(
            update(FoodStall)
            .where(FoodStall.id == stall_id)
            .values(average_rating=average_rating, total_reviews=total_reviews)
        )

    # Menu items

    async def list_menu(self, stall_id: int, available_only: bool = True) -> list[MenuItem]:
        query = select(MenuItem).where(MenuItem.stall_id == stall_id)
        if available_only:
            query = query.where(MenuItem.is_available.is_(True))
        result = await self.db.execute(query.order_by(MenuItem.name, MenuItem.id))
        return list(result.scalars().all())

    async def find_menu_item(self, stall_id: int, item_id: int) -> MenuItem | None:
        result = await self.db.execute(
            select(MenuItem).where(MenuItem.id == item_id, MenuItem.stall_id == stall_id)
        )
        return result.scalar_one_or_none()

    async def add_menu_item(self, item: MenuItem) -> MenuItem:
        self.db.add(item)
        await self.db.flush()
        return item

    async def delete_menu_item(self, item: MenuItem) -> None:
        await self.db.delete(item)
        await self.db.flush()

    # Cascade

    async def delete_stalls(self, stall_ids: list[int]) -> int:
        """Delete stalls and everything hanging off them.

        Removes, in foreign-key order: reactions and reports on the stalls'
        reviews, the reviews, menu items, locations and amendment requests.
        Applications keep their row but lose the stall link.

        Returns:
            Number of stalls deleted
        """
        if not stall_ids:
            return 0

        review_ids = select(Review.id).where(Review.stall_id.in_(stall_ids))

        await self.db.execute(delete(ReviewReaction).where(ReviewReaction.review_id.in_(review_ids)))
        await self.db.execute(delete(ReviewReport).where(ReviewReport.review_id.in_(review_ids)))
        await self.db.execute(delete(Review).where(Review.stall_id.in_(stall_ids)))
        await self.db.execute(delete(MenuItem).where(MenuItem.stall_id.in_(stall_ids)))
        await self.db.execute(delete(StallLocation).where(StallLocation.stall_id.in_(stall_ids)))
        await self.db.execute(delete(AmendmentRequest).where(AmendmentRequest.stall_id.in_(stall_ids)))
        await self.db.execute(
            update(Application)
            .where(Application.stall_id.in_(stall_ids))
            .values(stall_id=None)
        )
        result = await self.db.execute(delete(FoodStall).where(FoodStall.id.in_(stall_ids)))
        return result.rowcount or 0
