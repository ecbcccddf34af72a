import math

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10


def paginate(query, page=DEFAULT_PAGE, limit=DEFAULT_LIMIT):
    """Apply 1-indexed skip/limit to ``query``; returns (items, pagination)."""
    total = query.count()
    items = query.offset((page - 1) * limit).limit(limit).all()
    return items, {
        "total": total,
        "page": page,
        "limit": limit,
        "pages": math.ceil(total / limit),
    }


def contains(column, term):
    """Case-insensitive literal substring match; ``%`` and ``_`` in ``term`` are not wildcards."""
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return column.ilike(f"%{escaped}%", escape="\\")
