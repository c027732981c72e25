"""
Pagination helpers for list endpoints.

Catalogue listings answer with {count, total, page, pages, data}.
"""
from typing import Optional
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import Select


MAX_PAGE_SIZE = 100


async def paginate(
    db: AsyncSession,
    query: Select,
    page: int = 1,
    limit: int = 20,
    count_query: Optional[Select] = None
) -> dict:
    """
    Apply offset pagination to a SQLAlchemy query.

    Args:
        db: Database session
        query: Base query, already filtered and ordered
        page: Page number (1-indexed)
        limit: Items per page, capped at MAX_PAGE_SIZE
        count_query: Optional custom count query

    Returns:
        Dictionary with count (items on this page), total, page, pages and data
    """
    page = max(1, page)
    limit = max(1, min(MAX_PAGE_SIZE, limit))

    if count_query is None:
        count_query = select(func.count()).select_from(query.order_by(None).subquery())
    total = (await db.execute(count_query)).scalar() or 0
    pages = (total + limit - 1) // limit if total > 0 else 0

    result = await db.execute(query.offset((page - 1) * limit).limit(limit))
    items = list(result.scalars().all())

    return {
        "count": len(items),
        "total": total,
        "page": page,
        "pages": pages,
        "data": items,
    }
