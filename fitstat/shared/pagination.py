"""Offset pagination for list endpoints"""

import math
from typing import Any

from pydantic import BaseModel
from sqlalchemy.orm import Query


class PaginationMeta(BaseModel):
    currentPage: int
    totalPages: int
    totalItems: int
    limit: int
    hasNext: bool
    hasPrev: bool


def paginate(query: Query, page: int, limit: int) -> tuple[list[Any], PaginationMeta]:
    """Run ``query`` for one page and describe where that page sits"""
    page = max(page, 1)
    limit = max(limit, 1)

    total = query.order_by(None).count()
    items = query.offset((page - 1) * limit).limit(limit).all()
    total_pages = math.ceil(total / limit) if total else 0

    return items, PaginationMeta(
        currentPage=page,
        totalPages=total_pages,
        totalItems=total,
        limit=limit,
        hasNext=page < total_pages,
        hasPrev=page > 1,
    )
