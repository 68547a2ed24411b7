"""Shared query helpers for repositories."""

from typing import Any

from sqlalchemy import Select, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.constants import Pagination


def clamp_pagination(page: int, page_size: int) -> tuple[int, int]:
    """Clamp page >= 1 and MIN_PAGE_SIZE <= page_size <= MAX_PAGE_SIZE."""
    page = max(page or Pagination.DEFAULT_PAGE, 1)
    page_size = min(max(page_size or Pagination.DEFAULT_PAGE_SIZE, Pagination.MIN_PAGE_SIZE), Pagination.MAX_PAGE_SIZE)
    return page, page_size


async def count_rows(db: AsyncSession, query: Select) -> int:
    """Count the rows a select would return (ORDER BY is dropped)."""
    count_query = select(func.count()).select_from(query.order_by(None).subquery())
    return (await db.execute(count_query)).scalar_one()


async def paginate(
    db: AsyncSession,
    query: Select,
    page: int,
    page_size: int,
    scalars: bool = True
) -> tuple[list[Any], int]:
    """Run ``query`` for one page.

    Returns:
        (rows, total) where rows are ORM objects when ``scalars`` is True,
        otherwise Row tuples
    """
    page, page_size = clamp_pagination(page, page_size)
    total = await count_rows(db, query)

    result = await db.execute(
        query.offset((page - 1) * page_size).limit(page_size)
    )
    rows = list(result.scalars().all()) if scalars else list(result.all())
    return rows, total


async def claim_status(db: AsyncSession, model, row_id: int, expected: str, new_status: str) -> bool:
    """Move one row from ``expected`` to ``new_status`` with a conditional UPDATE.

    The WHERE clause re-reads the status at write time, so when two decisions
    race only one of them updates the row. SQLite has no SELECT ... FOR UPDATE;
    this is what serializes decisions there.

    Returns:
        True if this call made the transition
    """
    result = await db.execute(
        update(model)
        .where(model.id == row_id, model.status == expected)
        .values(status=new_status)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1
