"""
Paging for the list endpoints.

Database lists go through ``paginate_query`` (Flask-SQLAlchemy's
``paginate``); lists filtered in Python, like the upcoming-birthday view,
go through ``paginate_sequence``. Both results share the attributes read
by ``page_meta``.
"""
from math import ceil
from types import SimpleNamespace

from flask import request

DEFAULT_PER_PAGE = 20
MAX_PER_PAGE = 200


class Pagination(SimpleNamespace):
    """In-memory page with the attributes of Flask-SQLAlchemy's Pagination"""

    def __init__(self, items, page: int, per_page: int, total: int):
        pages = ceil(total / per_page) if per_page else 0
        super().__init__(items=items, page=page, per_page=per_page, total=total, pages=pages,
                         has_prev=page > 1, has_next=page < pages)


def _int_arg(name: str, default: int) -> int:
    try:
        return int(request.args.get(name, default))
    except (TypeError, ValueError):
        return default


def get_page_args(default_per_page: int = DEFAULT_PER_PAGE, max_per_page: int = MAX_PER_PAGE):
    """``(page, per_page)`` from the query string, clamped to sane values."""
    page = max(_int_arg('page', 1), 1)
    per_page = _int_arg('per_page', default_per_page)
    if per_page < 1:
        per_page = default_per_page
    return page, min(per_page, max_per_page)


def paginate_query(query, page: int, per_page: int):
    # out-of-range pages come back empty instead of a 404
    return query.paginate(page=page, per_page=per_page, error_out=False)


def paginate_sequence(seq, page: int, per_page: int) -> Pagination:
    if per_page <= 0:
        per_page = DEFAULT_PER_PAGE
    start = (page - 1) * per_page
    return Pagination(items=seq[start:start + per_page], page=page, per_page=per_page, total=len(seq))


def page_meta(pagination) -> dict:
    """JSON summary of a page, returned next to the items."""
    return {
        'page': pagination.page,
        'per_page': pagination.per_page,
        'total': pagination.total,
        'pages': pagination.pages,
        'has_prev': pagination.has_prev,
        'has_next': pagination.has_next,
    }
