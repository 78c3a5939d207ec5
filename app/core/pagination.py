from typing import Any, Dict, Tuple
import math


def clamp_page(page: int, limit: int, max_limit: int) -> Tuple[int, int, int]:
    """Returns (page, limit, offset) with page >= 1 and 1 <= limit <= max_limit."""
    page = max(page or 1, 1)
    limit = min(max(limit or 1, 1), max_limit)
    return page, limit, (page - 1) * limit


def page_meta(page: int, limit: int, total: int) -> Dict[str, Any]:
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "total_pages": math.ceil(total / limit) if limit else 0,
        "has_next": page * limit < total,
        "has_prev": page > 1,
    }
