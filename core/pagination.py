import math
from typing import Any, Dict


def parse_page(raw) -> int:
    """Page numbers are 1-based; anything unparsable or < 1 means page 1."""
    try:
        page = int(raw)
    except (TypeError, ValueError):
        return 1
    return max(1, page)


def paginate(items, page, per_page: int) -> Dict[str, Any]:
    """
    Slice a queryset (or list) into one page.

    Returns at most ``per_page`` items and reports ceil(total / per_page)
    pages. A page past the end, or page 1 of an empty set, yields an empty
    ``items`` list rather than an error.
    """
    if per_page < 1:
        raise ValueError("per_page must be positive")

    page = parse_page(page)
    total = items.count() if hasattr(items, "count") and not isinstance(items, list) else len(items)
    total_pages = math.ceil(total / per_page)

    offset = (page - 1) * per_page
    page_items = list(items[offset:offset + per_page]) if offset < total else []

    return {
        "items": page_items,
        "page": page,
        "per_page": per_page,
        "total": total,
        "total_pages": total_pages,
        "has_previous": page > 1,
        "has_next": page < total_pages,
    }


def pagination_meta(page_data: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in page_data.items() if key != "items"}
