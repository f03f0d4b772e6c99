import math

from sqlalchemy.orm import Query

from ..config import settings
from ..errors import ValidationError


def check_page(page: int, limit: int) -> None:
    if page is None or page < 1:
        raise ValidationError("page must be 1 or greater")
    if limit is None or limit < 1 or limit > settings.MAX_PAGE_SIZE:
        raise ValidationError(f"limit must be between 1 and {settings.MAX_PAGE_SIZE}")


def paginate(query: Query, page: int, limit: int) -> tuple[list, dict]:
    """
    Slice an already filtered and ordered query.

    The total is counted on the unsliced query, so it does not depend on the page size.
    """
    check_page(page, limit)
    total = query.order_by(None).count()
    items = query.limit(limit).offset((page - 1) * limit).all()
    return items, {
        "page": page,
        "limit": limit,
        "total": total,
        "total_pages": math.ceil(total / limit),
    }


def contains_pattern(text: str) -> str:
    """ILIKE pattern matching ``text`` anywhere, with LIKE wildcards taken literally. Use with ``escape="\\\\"``."""
    escaped = text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"
