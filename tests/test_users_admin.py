"""
스태프 계정 관리 + 로그인 테스트.
- 생성 / 중복 이메일 / 상위 역할 부여 금지
- 자기 자신 보호, 마지막 SUPERADMIN 보호
- 비활성화된 계정의 토큰은 더 이상 세션으로 인정되지 않음
- 관리자 행위 로그 조회
"""

from school_cms.core.config import settings
from school_cms.models.admin_log import AdminAction, AdminActionLog
from school_cms.models.user import Role, User
from school_cms.services import users

from tests.helpers import (
    DEFAULT_PASSWORD,
    auth_header,
    create_user_in_db,
    session_for,
    staff,
)


def _new_user(**overrides) -> dict:
    data = {
        "name": "Guru Baru",
        "email": "guru.baru@school.example.com",
        "password": "rahasia123",
        "role": "EDITOR",
    }
    data.update(overrides)
    return data


# ---------------------------------------------------------------------------
# 로그인
# ---------------------------------------------------------------------------

def test_login_and_me(client, db_session):
    user = create_user_in_db(db_session, role=Role.ADMIN, email="Admin@school.example.com")

    r = client.post("/auth/login", json={"email": "admin@school.example.com", "password": DEFAULT_PASSWORD})
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["success"] is True
    assert body["data"]["token_type"] == "bearer"
    assert body["data"]["expires_in"] == settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60

    me = client.get("/auth/me", headers=auth_header(body["data"]["access_token"]))
    assert me.status_code == 200
    assert me.json()["data"]["id"] == str(user.id)
    assert "password_hash" not in me.json()["data"]


def test_login_wrong_password(client, db_session):
    user = create_user_in_db(db_session)

    r = client.post("/auth/login", json={"email": user.email, "password": "salah-password"})

    assert r.status_code == 401
    assert r.json()["error"] == "Invalid credentials"


def test_login_inactive_account(client, db_session):
    user = create_user_in_db(db_session, is_active=False)

    r = client.post("/auth/login", json={"email": user.email, "password": DEFAULT_PASSWORD})

    assert r.status_code == 401
    assert r.json()["error"] == "Account is inactive"


def test_me_without_token(client):
    assert client.get("/auth/me").status_code == 401


# ---------------------------------------------------------------------------
# 생성 / 조회
# ---------------------------------------------------------------------------

def test_admin_creates_editor(client, db_session):
    admin = staff(client, db_session, Role.ADMIN)

    r = client.post("/admin/users", json=_new_user(), headers=admin["headers"])

    assert r.status_code == 201, r.text
    data = r.json()["data"]
    assert data["email"] == "guru.baru@school.example.com"
    assert data["role"] == "EDITOR"
    assert "password" not in data and "password_hash" not in data

    # 새 계정으로 바로 로그인 가능
    login = client.post("/auth/login", json={"email": "guru.baru@school.example.com", "password": "rahasia123"})
    assert login.status_code == 200

    log = db_session.query(AdminActionLog).filter_by(action=AdminAction.CREATE_USER).one()
    assert log.actor_id == admin["user"].id
    assert log.target_id == data["id"]


def test_duplicate_email_is_conflict(client, db_session):
    admin = staff(client, db_session, Role.ADMIN)
    create_user_in_db(db_session, email="guru.baru@school.example.com")

    r = client.post("/admin/users", json=_new_user(email="GURU.BARU@school.example.com"), headers=admin["headers"])

    assert r.status_code == 409
    assert r.json()["code"] == "DUPLICATE"


def test_admin_cannot_grant_superadmin(client, db_session):
    admin = staff(client, db_session, Role.ADMIN)

    r = client.post("/admin/users", json=_new_user(role="SUPERADMIN"), headers=admin["headers"])

    assert r.status_code == 401
    assert db_session.query(User).filter_by(email="guru.baru@school.example.com").count() == 0


def test_editor_cannot_manage_users(client, db_session):
    editor = staff(client, db_session, Role.EDITOR)

    assert client.get("/admin/users", headers=editor["headers"]).status_code == 401
    assert client.post("/admin/users", json=_new_user(), headers=editor["headers"]).status_code == 401
    assert client.get("/admin/logs", headers=editor["headers"]).status_code == 401


def test_list_users_with_search(client, db_session):
    admin = staff(client, db_session, Role.ADMIN)
    create_user_in_db(db_session, email="wali.kelas@school.example.com")
    create_user_in_db(db_session, email="operator@school.example.com")

    r = client.get("/admin/users?search=wali", headers=admin["headers"])

    assert r.status_code == 200
    assert [u["email"] for u in r.json()["data"]] == ["wali.kelas@school.example.com"]

    r = client.get("/admin/users", headers=admin["headers"])
    assert r.json()["pagination"]["total"] == 3


# ---------------------------------------------------------------------------
# 수정 / 토글 / 삭제
# ---------------------------------------------------------------------------

def test_update_user(client, db_session):
    admin = staff(client, db_session, Role.ADMIN)
    editor = create_user_in_db(db_session)

    r = client.patch(
        f"/admin/users/{editor.id}",
        json={"name": "Nama Baru", "role": "ADMIN", "password": "baru12345"},
        headers=admin["headers"],
    )

    assert r.status_code == 200, r.text
    assert r.json()["data"]["name"] == "Nama Baru"
    assert r.json()["data"]["role"] == "ADMIN"
    assert client.post("/auth/login", json={"email": editor.email, "password": "baru12345"}).status_code == 200


def test_cannot_change_own_role(client, db_session):
    admin = staff(client, db_session, Role.ADMIN)

    r = client.patch(f"/admin/users/{admin['user'].id}", json={"role": "EDITOR"}, headers=admin["headers"])

    assert r.status_code == 400
    assert "role" in r.json()["errors"]


def test_admin_cannot_edit_superadmin(client, db_session):
    admin = staff(client, db_session, Role.ADMIN)
    superadmin = create_user_in_db(db_session, role=Role.SUPERADMIN)

    r = client.patch(f"/admin/users/{superadmin.id}", json={"name": "Diubah"}, headers=admin["headers"])
    assert r.status_code == 401

    r = client.post(f"/admin/users/{superadmin.id}/toggle-active", headers=admin["headers"])
    assert r.status_code == 401


def test_toggle_user_revokes_session(client, db_session):
    admin = staff(client, db_session, Role.ADMIN)
    editor = staff(client, db_session, Role.EDITOR)

    r = client.post(f"/admin/users/{editor['user'].id}/toggle-active", headers=admin["headers"])

    assert r.status_code == 200
    assert r.json()["data"]["is_active"] is False
    assert r.json()["message"] == "User deactivated"
    assert client.get("/auth/me", headers=editor["headers"]).status_code == 401

    r = client.post(f"/admin/users/{editor['user'].id}/toggle-active", headers=admin["headers"])
    assert r.json()["data"]["is_active"] is True
    assert client.get("/auth/me", headers=editor["headers"]).status_code == 200


def test_cannot_toggle_self(client, db_session):
    admin = staff(client, db_session, Role.ADMIN)

    r = client.post(f"/admin/users/{admin['user'].id}/toggle-active", headers=admin["headers"])

    assert r.status_code == 400
    assert r.json()["error"] == "Cannot deactivate your own account"


def test_only_superadmin_deletes(client, db_session):
    admin = staff(client, db_session, Role.ADMIN)
    superadmin = staff(client, db_session, Role.SUPERADMIN)
    editor = create_user_in_db(db_session)

    r = client.delete(f"/admin/users/{editor.id}", headers=admin["headers"])
    assert r.status_code == 401

    r = client.delete(f"/admin/users/{editor.id}", headers=superadmin["headers"])
    assert r.status_code == 200
    assert r.json()["data"]["email"] == editor.email

    db_session.expire_all()
    assert db_session.get(User, editor.id) is None

    r = client.delete(f"/admin/users/{editor.id}", headers=superadmin["headers"])
    assert r.status_code == 404


def test_cannot_delete_self(client, db_session):
    superadmin = staff(client, db_session, Role.SUPERADMIN)

    r = client.delete(f"/admin/users/{superadmin['user'].id}", headers=superadmin["headers"])

    assert r.status_code == 400
    assert r.json()["error"] == "Cannot delete yourself"


def test_last_superadmin_is_protected(db_session):
    last = create_user_in_db(db_session, role=Role.SUPERADMIN)
    # 호출자는 비활성 SUPERADMIN 계정: 활성 SUPERADMIN 수에 포함되지 않고, 로그의 actor FK 는 유효
    caller_user = create_user_in_db(db_session, role=Role.SUPERADMIN, is_active=False)
    caller = session_for(caller_user)

    result = users.delete_user(db_session, caller, last.id)
    assert result.success is False
    assert result.error == "Cannot delete the last SUPERADMIN"

    result = users.toggle_user_status(db_session, caller, last.id)
    assert result.error == "Cannot deactivate the last SUPERADMIN"

    result = users.update_user(db_session, caller, last.id, {"role": "ADMIN"})
    assert result.errors == {"role": ["Cannot demote the last SUPERADMIN"]}

    # 두 번째 활성 SUPERADMIN 이 생기면 보호 해제
    create_user_in_db(db_session, role=Role.SUPERADMIN)
    result = users.toggle_user_status(db_session, caller, last.id)
    assert result.success, result
    assert result.data["is_active"] is False

    log = db_session.query(AdminActionLog).filter_by(action=AdminAction.TOGGLE_USER).one()
    assert log.actor_id == caller_user.id


def test_deleted_actor_logs_keep_rows(db_session):
    superadmin = create_user_in_db(db_session, role=Role.SUPERADMIN)
    admin = create_user_in_db(db_session, role=Role.ADMIN)
    editor = create_user_in_db(db_session)

    assert users.toggle_user_status(db_session, session_for(admin), editor.id).success
    assert users.delete_user(db_session, session_for(superadmin), admin.id).success

    db_session.expire_all()
    logs = db_session.query(AdminActionLog).filter_by(action=AdminAction.TOGGLE_USER).all()
    assert len(logs) == 1
    assert logs[0].actor_id is None


def test_admin_logs_endpoint(client, db_session):
    admin = staff(client, db_session, Role.ADMIN)
    editor = create_user_in_db(db_session)
    client.post(f"/admin/users/{editor.id}/toggle-active", headers={**admin["headers"], "User-Agent": "pytest-ua"})

    r = client.get("/admin/logs?action=TOGGLE_USER", headers=admin["headers"])

    assert r.status_code == 200
    entries = r.json()["data"]
    assert len(entries) == 1
    entry = entries[0]
    assert entry["target_type"] == "user"
    assert entry["target_id"] == str(editor.id)
    assert (entry["before_value"], entry["after_value"]) == ("active", "inactive")
    assert entry["user_agent"] == "pytest-ua"
    assert entry["actor"]["email"] == admin["user"].email
    assert r.json()["pagination"]["total"] == 1
