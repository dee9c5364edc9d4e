from __future__ import annotations
import math
from typing import Any, Dict, List, Sequence, Tuple
from flask import request
from sqlalchemy.orm import Query
from vansupport.config.pagination import normalize_pagination


def build_pagination(page: int, limit: int, total: int) -> Dict[str, Any]:
    """Offset pagination envelope; page is echoed even past the last page."""
    total_pages = math.ceil(total / limit) if limit else 0
    return {
        'page': page,
        'limit': limit,
        'totalCount': total,
        'totalPages': total_pages,
        'hasNextPage': page < total_pages,
        'hasPreviousPage': page > 1,
    }


def request_pagination() -> Tuple[int, int]:
    return normalize_pagination(request.args.get('page'), request.args.get('limit'))


def paginate_query(q: Query) -> Tuple[list, Dict[str, Any]]:
    page, limit = request_pagination()
    total = q.order_by(None).count()
    rows = q.offset((page - 1) * limit).limit(limit).all()
    return rows, build_pagination(page, limit, total)


def paginate_sequence(items: Sequence[Any], page: int, limit: int) -> Tuple[List[Any], Dict[str, Any]]:
    start = (page - 1) * limit
    return list(items[start:start + limit]), build_pagination(page, limit, len(items))


def build_list_payload(key: str, rows: list, pagination: Dict[str, Any]) -> Dict[str, Any]:
    return {key: rows, 'pagination': pagination}

__all__ = ['build_pagination', 'request_pagination', 'paginate_query', 'paginate_sequence', 'build_list_payload']
