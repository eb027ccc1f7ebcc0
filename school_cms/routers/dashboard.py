"""
dashboard.py

관리자 대시보드 통계 API.

- EDITOR 이상만 조회 가능 (권한 없으면 401)
- period_id 를 주면 접수 관련 집계를 해당 기간으로 한정

"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from school_cms.core.deps import get_current_editor, get_db
from school_cms.core.permissions import SessionUser
from school_cms.services.dashboard import get_dashboard_stats

router = APIRouter(prefix="/admin/dashboard", tags=["admin-dashboard"])


@router.get("")
def dashboard(
    period_id: Optional[uuid.UUID] = None,
    db: Session = Depends(get_db),
    session: SessionUser = Depends(get_current_editor),
):
    return {"data": get_dashboard_stats(db, session, period_id=period_id)}
