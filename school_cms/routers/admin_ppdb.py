"""
admin_ppdb.py

관리자 전용 PPDB(신입생 모집) 관리 API 모음.

주요 기능:
- 모집 기간 목록 / 상세 조회, 생성, 수정, 삭제, 활성 토글 (ADMIN 이상)
- 접수 목록 / 상세 조회, 상태 변경, 상태 변경 이력 (EDITOR 이상)
- 접수 내역 CSV / Excel(xlsx) 내보내기 (EDITOR 이상)

설계 원칙:
- 비즈니스 로직은 service 계층(school_cms.services.ppdb)에 위임
- 변경 작업은 ActionResult 를 그대로 JSON 으로 변환 (권한 부족도 결과로 반환)
- 조회 작업은 권한 부족 시 UnauthorizedError → 401

관련 파일:
- school_cms.services.ppdb    : 기간 / 접수 / 상태 전이 규칙
- school_cms.services.export  : 내보내기 열 구성 / 포맷
- school_cms.schemas.ppdb     : 요청/응답 스키마 정의

"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from starlette.responses import Response, StreamingResponse
from sqlalchemy.orm import Session

from school_cms.core.deps import audit_meta, get_current_editor, get_current_session, get_db
from school_cms.core.permissions import SessionUser
from school_cms.core.results import to_response
from school_cms.models.ppdb import RegistrationStatus
from school_cms.schemas.ppdb import PeriodCreateRequest, PeriodUpdateRequest, StatusUpdateRequest
from school_cms.services import export, ppdb

router = APIRouter(prefix="/admin/ppdb", tags=["admin-ppdb"])


# ---------------------------------------------------------------------------
# 모집 기간
# ---------------------------------------------------------------------------

@router.get("/periods")
def list_periods(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    is_active: Optional[bool] = None,
    db: Session = Depends(get_db),
    session: SessionUser = Depends(get_current_editor),
):
    return ppdb.list_periods(db, session, page=page, limit=limit, is_active=is_active)


@router.post("/periods")
def create_period(
    body: PeriodCreateRequest,
    db: Session = Depends(get_db),
    session: SessionUser | None = Depends(get_current_session),
    meta: dict = Depends(audit_meta),
):
    return to_response(ppdb.create_period(db, session, body, **meta), success_status=201)


@router.get("/periods/{period_id}")
def get_period(
    period_id: uuid.UUID,
    db: Session = Depends(get_db),
    session: SessionUser = Depends(get_current_editor),
):
    return {"data": ppdb.get_period(db, session, period_id)}


@router.patch("/periods/{period_id}")
def update_period(
    period_id: uuid.UUID,
    body: PeriodUpdateRequest,
    db: Session = Depends(get_db),
    session: SessionUser | None = Depends(get_current_session),
    meta: dict = Depends(audit_meta),
):
    return to_response(ppdb.update_period(db, session, period_id, body, **meta))


"""
모집 기간 삭제 API

- 접수 내역이 있는 기간은 삭제 불가 (409)

"""
@router.delete("/periods/{period_id}")
def delete_period(
    period_id: uuid.UUID,
    db: Session = Depends(get_db),
    session: SessionUser | None = Depends(get_current_session),
    meta: dict = Depends(audit_meta),
):
    return to_response(ppdb.delete_period(db, session, period_id, **meta))


"""
모집 기간 활성 토글 API

- 비활성 → 활성 : 다른 활성 기간은 같은 트랜잭션에서 모두 비활성화
- 활성 → 비활성 : 해당 기간만 비활성화

"""
@router.post("/periods/{period_id}/toggle-active")
def toggle_period_active(
    period_id: uuid.UUID,
    db: Session = Depends(get_db),
    session: SessionUser | None = Depends(get_current_session),
    meta: dict = Depends(audit_meta),
):
    return to_response(ppdb.toggle_period_active(db, session, period_id, **meta))


# ---------------------------------------------------------------------------
# 접수 내역
# ---------------------------------------------------------------------------

@router.get("/registrations")
def list_registrations(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    period_id: Optional[uuid.UUID] = None,
    status: Optional[RegistrationStatus] = None,
    search: Optional[str] = Query(None, max_length=100),
    db: Session = Depends(get_db),
    session: SessionUser = Depends(get_current_editor),
):
    return ppdb.list_registrations(
        db,
        session,
        page=page,
        limit=limit,
        period_id=period_id,
        status=status,
        search=search,
    )


"""
관리자용 접수 내역 CSV 다운로드 API

- period_id 를 주면 해당 기간만, 없으면 전체 (최신순)
- UTF-8 BOM을 먼저 내보내 Excel에서 바로 열 수 있도록 처리
- /registrations/{registration_id} 보다 먼저 등록해야 경로가 가려지지 않음

"""
@router.get("/registrations/export")
def export_registrations_csv(
    period_id: Optional[uuid.UUID] = None,
    db: Session = Depends(get_db),
    session: SessionUser = Depends(get_current_editor),
):
    # 응답 스트리밍 전에 DB 조회를 끝낸다
    rows = export.export_rows(db, session, period_id=period_id)

    def generate():
        yield "\ufeff"
        yield from export.iter_csv(rows)

    filename = export.export_filename("csv")
    headers = {"Content-Disposition": f'attachment; filename="{filename}"'}
    return StreamingResponse(generate(), media_type="text/csv; charset=utf-8", headers=headers)


@router.get("/registrations/export.xlsx")
def export_registrations_xlsx(
    period_id: Optional[uuid.UUID] = None,
    db: Session = Depends(get_db),
    session: SessionUser = Depends(get_current_editor),
):
    rows = export.export_rows(db, session, period_id=period_id)

    filename = export.export_filename("xlsx")
    headers = {"Content-Disposition": f'attachment; filename="{filename}"'}
    return Response(
        content=export.build_xlsx(rows),
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers=headers,
    )


@router.get("/registrations/{registration_id}")
def get_registration(
    registration_id: uuid.UUID,
    db: Session = Depends(get_db),
    session: SessionUser = Depends(get_current_editor),
):
    return {"data": ppdb.get_registration(db, session, registration_id)}


@router.patch("/registrations/{registration_id}/status")
def update_registration_status(
    registration_id: uuid.UUID,
    body: StatusUpdateRequest,
    db: Session = Depends(get_db),
    session: SessionUser | None = Depends(get_current_session),
    meta: dict = Depends(audit_meta),
):
    result = ppdb.update_registration_status(
        db, session, registration_id, body.status, body.notes, **meta
    )
    return to_response(result)


@router.get("/registrations/{registration_id}/history")
def registration_history(
    registration_id: uuid.UUID,
    db: Session = Depends(get_db),
    session: SessionUser = Depends(get_current_editor),
):
    return {"data": ppdb.get_registration_history(db, session, registration_id)}
