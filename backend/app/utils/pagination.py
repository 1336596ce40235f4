"""
Pagination Utility Module

Provides standardized pagination helpers for the dashboard list endpoints.
"""
from typing import Any, Dict, Optional, Tuple

from pydantic import BaseModel

MAX_PAGE_SIZE = 100
DEFAULT_PAGE_SIZE = 10


class PaginationMeta(BaseModel):
    """Pagination block returned alongside list results"""
    page: int
    limit: int
    total: int
    totalPages: int
    hasNext: bool
    hasPrev: bool


def normalize_page_params(page: Optional[int], limit: Optional[int]) -> Tuple[int, int]:
    """Clamp page to >= 1 and limit to 1..100"""
    page = max(1, page or 1)
    limit = max(1, min(MAX_PAGE_SIZE, limit or DEFAULT_PAGE_SIZE))
    return page, limit


def create_pagination_meta(page: int, limit: int, total: int) -> Dict[str, Any]:
    """
    Create the pagination dictionary for a list response.

    Args:
        page: Current page number (1-indexed)
        limit: Items per page
        total: Total count of matching items

    Returns:
        Dict with page, limit, total, totalPages, hasNext, hasPrev
    """
    total_pages = (total + limit - 1) // limit if total > 0 else 0

    return PaginationMeta(
        page=page,
        limit=limit,
        total=total,
        totalPages=total_pages,
        hasNext=page * limit < total,
        hasPrev=page > 1,
    ).model_dump()


def parse_bool_filter(value: Optional[str]) -> Optional[bool]:
    """'true' / 'false' query values to a bool; anything else means no filter"""
    if value is None:
        return None
    lowered = value.strip().lower()
    if lowered in ("true", "1", "yes"):
        return True
    if lowered in ("false", "0", "no"):
        return False
    return None
