"""
services/pagination.py

목록 조회 공통 페이지네이션.

응답 형태:
    {"data": [...], "pagination": {"page", "limit", "total", "total_pages"}}

"""

import math

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from school_cms.core.exceptions import ValidationError

MAX_LIMIT = 100


def check_page(page: int, limit: int) -> None:
    errors = {}
    if page < 1:
        errors["page"] = ["page must be >= 1"]
    if limit < 1 or limit > MAX_LIMIT:
        errors["limit"] = [f"limit must be between 1 and {MAX_LIMIT}"]
    if errors:
        raise ValidationError("Invalid pagination", errors=errors)


def paginate(db: Session, stmt, *, page: int, limit: int):
    """stmt 는 정렬까지 포함된 select. (items, pagination dict) 를 반환한다."""
    check_page(page, limit)

    total = db.scalar(
        select(func.count()).select_from(stmt.order_by(None).subquery())
    ) or 0
    items = db.scalars(stmt.offset((page - 1) * limit).limit(limit)).all()

    return items, {
        "page": page,
        "limit": limit,
        "total": total,
        "total_pages": math.ceil(total / limit),
    }
