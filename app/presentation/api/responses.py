import math
from typing import Any, Dict


def pagination_meta(page: int, limit: int, total: int) -> Dict[str, Any]:
    return {
        "currentPage": page,
        "totalPages": math.ceil(total / limit) if limit else 0,
        "totalItems": total,
        "itemsPerPage": limit,
        "hasNextPage": page * limit < total,
        "hasPrevPage": page > 1,
    }


def isoformat(value) -> Any:
    return value.replace(microsecond=0).isoformat() if value is not None else None
