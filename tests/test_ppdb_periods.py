"""
모집 기간 관리 테스트.
- 활성 기간은 항상 최대 1개 (생성 / 수정 / 토글 / 동시 활성화)
- ADMIN 미만은 변경 불가 (권한 부족은 결과로 반환, 필요 역할 미노출)
- 접수 내역이 있는 기간은 삭제 불가
"""

import threading
from datetime import timedelta

from sqlalchemy import func, select

from school_cms.models.admin_log import AdminAction, AdminActionLog
from school_cms.models.ppdb import PPDBPeriod
from school_cms.models.user import Role
from school_cms.services.ppdb import set_active_period

from tests.helpers import (
    create_period_in_db,
    create_registration_in_db,
    create_user_in_db,
    session_for,
    staff,
    utcnow,
)


def _period_body(name="PPDB 2025/2026", is_active=True, **overrides) -> dict:
    start = utcnow() - timedelta(days=1)
    body = {
        "name": name,
        "academic_year": "2025/2026",
        "description": "Penerimaan peserta didik baru",
        "start_date": start.isoformat(),
        "end_date": (start + timedelta(days=30)).isoformat(),
        "quota": 120,
        "requirements": ["Akta kelahiran", "Rapor"],
        "is_active": is_active,
    }
    body.update(overrides)
    return body


def _active_ids(db) -> set[str]:
    db.expire_all()
    return {str(i) for i in db.scalars(select(PPDBPeriod.id).where(PPDBPeriod.is_active.is_(True)))}


def test_admin_creates_period(client, db_session):
    admin = staff(client, db_session, Role.ADMIN)

    r = client.post("/admin/ppdb/periods", json=_period_body(), headers=admin["headers"])

    assert r.status_code == 201, r.text
    data = r.json()["data"]
    assert data["is_active"] is True
    assert data["registration_count"] == 0
    assert data["remaining_quota"] == 120

    log = db_session.scalar(select(AdminActionLog).where(AdminActionLog.action == AdminAction.CREATE_PERIOD))
    assert log is not None
    assert log.actor_id == admin["user"].id


def test_creating_active_period_deactivates_previous(client, db_session):
    admin = staff(client, db_session, Role.ADMIN)

    a = client.post("/admin/ppdb/periods", json=_period_body("A"), headers=admin["headers"]).json()["data"]
    b = client.post("/admin/ppdb/periods", json=_period_body("B"), headers=admin["headers"]).json()["data"]

    assert _active_ids(db_session) == {b["id"]}
    r = client.get(f"/admin/ppdb/periods/{a['id']}", headers=admin["headers"])
    assert r.json()["data"]["is_active"] is False


def test_editor_cannot_create_period(client, db_session):
    editor = staff(client, db_session, Role.EDITOR)

    r = client.post("/admin/ppdb/periods", json=_period_body(), headers=editor["headers"])

    assert r.status_code == 401
    body = r.json()
    assert body == {"success": False, "error": "Unauthorized", "code": "UNAUTHORIZED"}
    assert db_session.scalar(select(func.count()).select_from(PPDBPeriod)) == 0


def test_anonymous_cannot_list_periods(client):
    r = client.get("/admin/ppdb/periods")
    assert r.status_code == 401
    assert r.json()["code"] == "UNAUTHORIZED"


def test_invalid_token_is_treated_as_no_session(client):
    r = client.get("/admin/ppdb/periods", headers={"Authorization": "Bearer not-a-token"})
    assert r.status_code == 401


def test_create_period_validation(client, db_session):
    admin = staff(client, db_session, Role.ADMIN)
    start = utcnow()

    r = client.post(
        "/admin/ppdb/periods",
        json=_period_body(
            academic_year="2025-2026",
            start_date=start.isoformat(),
            end_date=(start - timedelta(days=1)).isoformat(),
        ),
        headers=admin["headers"],
    )

    assert r.status_code == 400
    body = r.json()
    assert body["code"] == "VALIDATION_ERROR"
    assert "academic_year" in body["errors"]


def test_update_period_fields_and_range_check(client, db_session):
    admin = staff(client, db_session, Role.ADMIN)
    period = create_period_in_db(db_session)

    r = client.patch(
        f"/admin/ppdb/periods/{period.id}",
        json={"name": "PPDB Gelombang 2", "quota": 10},
        headers=admin["headers"],
    )
    assert r.status_code == 200, r.text
    assert r.json()["data"]["name"] == "PPDB Gelombang 2"
    assert r.json()["data"]["remaining_quota"] == 10

    bad_end = (period.start_date - timedelta(days=1)).isoformat()
    r = client.patch(f"/admin/ppdb/periods/{period.id}", json={"end_date": bad_end}, headers=admin["headers"])
    assert r.status_code == 400
    assert "end_date" in r.json()["errors"]


def test_update_is_active_keeps_single_active(client, db_session):
    admin = staff(client, db_session, Role.ADMIN)
    a = create_period_in_db(db_session, name="A", is_active=True)
    b = create_period_in_db(db_session, name="B")

    r = client.patch(f"/admin/ppdb/periods/{b.id}", json={"is_active": True}, headers=admin["headers"])

    assert r.status_code == 200, r.text
    assert _active_ids(db_session) == {str(b.id)}
    assert str(a.id) not in _active_ids(db_session)


def test_toggle_period_active(client, db_session):
    admin = staff(client, db_session, Role.ADMIN)
    create_period_in_db(db_session, name="A", is_active=True)
    b = create_period_in_db(db_session, name="B")

    r = client.post(f"/admin/ppdb/periods/{b.id}/toggle-active", headers=admin["headers"])
    assert r.status_code == 200, r.text
    assert r.json()["message"] == "PPDB period activated"
    assert _active_ids(db_session) == {str(b.id)}

    r = client.post(f"/admin/ppdb/periods/{b.id}/toggle-active", headers=admin["headers"])
    assert r.json()["message"] == "PPDB period deactivated"
    assert _active_ids(db_session) == set()

    actions = db_session.scalars(
        select(AdminActionLog.action).where(AdminActionLog.target_id == str(b.id)).order_by(AdminActionLog.created_at)
    ).all()
    assert actions == [AdminAction.ACTIVATE_PERIOD, AdminAction.DEACTIVATE_PERIOD]


def test_toggle_unknown_period_404(client, db_session):
    admin = staff(client, db_session, Role.ADMIN)
    r = client.post("/admin/ppdb/periods/00000000-0000-0000-0000-000000000000/toggle-active", headers=admin["headers"])
    assert r.status_code == 404
    assert r.json()["code"] == "NOT_FOUND"


def test_delete_period_with_registrations_is_refused(client, db_session):
    admin = staff(client, db_session, Role.ADMIN)
    period = create_period_in_db(db_session, is_active=True)
    create_registration_in_db(db_session, period)

    r = client.delete(f"/admin/ppdb/periods/{period.id}", headers=admin["headers"])

    assert r.status_code == 409
    assert r.json()["code"] == "DUPLICATE"
    assert "1 registrations" in r.json()["error"]
    assert db_session.get(PPDBPeriod, period.id) is not None


def test_delete_empty_period(client, db_session):
    admin = staff(client, db_session, Role.ADMIN)
    period = create_period_in_db(db_session)

    r = client.delete(f"/admin/ppdb/periods/{period.id}", headers=admin["headers"])

    assert r.status_code == 200, r.text
    assert r.json() == {"success": True, "message": "PPDB period deleted"}
    db_session.expire_all()
    assert db_session.get(PPDBPeriod, period.id) is None


def test_list_periods_with_counts(client, db_session):
    editor = staff(client, db_session, Role.EDITOR)
    period = create_period_in_db(db_session, quota=2, is_active=True)
    create_period_in_db(db_session, name="Old")
    for _ in range(3):
        create_registration_in_db(db_session, period)

    r = client.get("/admin/ppdb/periods?is_active=true", headers=editor["headers"])

    assert r.status_code == 200, r.text
    body = r.json()
    assert body["pagination"] == {"page": 1, "limit": 10, "total": 1, "total_pages": 1}
    assert body["data"][0]["registration_count"] == 3
    # 정원은 표시용: 초과해도 0 으로 표시될 뿐 막지 않음
    assert body["data"][0]["remaining_quota"] == 0


def test_list_periods_limit_bounds(client, db_session):
    editor = staff(client, db_session, Role.EDITOR)
    r = client.get("/admin/ppdb/periods?limit=101", headers=editor["headers"])
    assert r.status_code == 400
    assert "limit" in r.json()["errors"]


def test_concurrent_activation_leaves_exactly_one_active(db_session, session_factory):
    admin = create_user_in_db(db_session, role=Role.ADMIN)
    actor = session_for(admin)
    a = create_period_in_db(db_session, name="A", is_active=True)
    b = create_period_in_db(db_session, name="B")
    c = create_period_in_db(db_session, name="C")

    barrier = threading.Barrier(2)
    results = {}

    def activate(period_id):
        db = session_factory()
        try:
            barrier.wait()
            results[period_id] = set_active_period(db, actor, period_id)
        finally:
            db.close()

    threads = [threading.Thread(target=activate, args=(p.id,)) for p in (b, c)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    active = _active_ids(db_session)
    assert len(active) == 1
    assert active <= {str(b.id), str(c.id)}
    assert str(a.id) not in active
    assert any(r.success for r in results.values())
