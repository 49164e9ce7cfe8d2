"""
Offset pagination and whitelisted sorting for list endpoints.

Responses use the shape the dashboards consume:
    {"data": [...], "total": 42, "page": 1, "pageSize": 10, "totalPages": 5}
"""

import math
from typing import Any, Callable, Literal, Optional

from fastapi import Query
from pydantic import BaseModel, Field
from sqlalchemy.orm import Query as SAQuery

MAX_PAGE_SIZE = 100


class PageParams(BaseModel):
    page: int = Field(1, ge=1)
    page_size: int = Field(10, ge=1, le=MAX_PAGE_SIZE)
    sort: Optional[str] = None
    direction: Literal["asc", "desc"] = "desc"

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


def page_params(
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=MAX_PAGE_SIZE, alias="pageSize"),
    sort: Optional[str] = Query(None),
    direction: Literal["asc", "desc"] = Query("desc"),
) -> PageParams:
    """FastAPI dependency building PageParams from query parameters"""
    return PageParams(page=page, page_size=page_size, sort=sort, direction=direction)


def total_pages(total: int, page_size: int) -> int:
    if total <= 0:
        return 0
    return math.ceil(total / page_size)


def apply_sort(
    query: SAQuery,
    params: PageParams,
    sort_columns: dict[str, Any],
    default_sort: str,
) -> SAQuery:
    """
    Order the query by a whitelisted column. Unknown sort keys fall back to the
    default so arbitrary client input never reaches ORDER BY.
    """
    key = params.sort if params.sort in sort_columns else default_sort
    column = sort_columns[key]
    ordered = column.asc() if params.direction == "asc" else column.desc()
    return query.order_by(ordered)


def paginate(
    query: SAQuery,
    params: PageParams,
    sort_columns: dict[str, Any],
    default_sort: str,
    serializer: Optional[Callable[[Any], Any]] = None,
    tiebreaker: Optional[Any] = None,
) -> dict:
    total = query.order_by(None).count()
    ordered = apply_sort(query, params, sort_columns, default_sort)
    if tiebreaker is not None:
        ordered = ordered.order_by(tiebreaker)
    rows = ordered.offset(params.offset).limit(params.page_size).all()

    return {
        "data": [serializer(row) for row in rows] if serializer else rows,
        "total": total,
        "page": params.page,
        "pageSize": params.page_size,
        "totalPages": total_pages(total, params.page_size),
    }
