"""
문의하기 폼 + 관리자 문의 관리 테스트.
"""

from datetime import timedelta

from school_cms.models.contact import ContactMessage
from school_cms.models.user import Role

from tests.helpers import staff, utcnow


def _payload(**overrides) -> dict:
    data = {
        "name": "Ibu Rina",
        "email": "rina@example.com",
        "phone": "081200001111",
        "subject": "Jadwal PPDB",
        "message": "Kapan pendaftaran gelombang kedua dibuka?",
    }
    data.update(overrides)
    return data


def _create_message(db, *, name="Pak Andi", is_read=False, minutes_ago=0) -> ContactMessage:
    message = ContactMessage(
        name=name,
        email=f"{name.lower().replace(' ', '.')}@example.com",
        message="Halo",
        is_read=is_read,
        created_at=utcnow() - timedelta(minutes=minutes_ago),
    )
    db.add(message)
    db.commit()
    db.refresh(message)
    return message


def test_submit_contact_message(client, db_session):
    r = client.post("/contact", json=_payload(phone="   ", subject=""))

    assert r.status_code == 201, r.text
    assert r.json() == {"success": True, "message": "Message sent"}

    saved = db_session.query(ContactMessage).one()
    assert saved.name == "Ibu Rina"
    assert saved.phone is None
    assert saved.subject is None
    assert saved.is_read is False


def test_submit_contact_message_validation(client, db_session):
    r = client.post("/contact", json=_payload(email="bukan-email", message=""))

    assert r.status_code == 400
    body = r.json()
    assert body["success"] is False
    assert body["code"] == "VALIDATION_ERROR"
    assert "email" in body["errors"]
    assert "message" in body["errors"]
    assert db_session.query(ContactMessage).count() == 0


def test_contact_rate_limit(client, db_session):
    for _ in range(5):
        assert client.post("/contact", json=_payload()).status_code == 201

    r = client.post("/contact", json=_payload())

    assert r.status_code == 429
    assert r.json()["code"] == "RATE_LIMIT"
    assert int(r.headers["Retry-After"]) > 0
    assert db_session.query(ContactMessage).count() == 5


def test_contact_and_registration_limits_are_separate(client):
    for _ in range(5):
        client.post("/contact", json=_payload())

    # 접수 폼은 다른 키를 사용하므로 한도에 걸리지 않고 본문 검증까지 진행됨
    r = client.post("/ppdb/registrations", json={})
    assert r.status_code == 400


def test_admin_lists_and_filters_messages(client, db_session):
    editor = staff(client, db_session, Role.EDITOR)
    _create_message(db_session, name="Lama", is_read=True, minutes_ago=30)
    _create_message(db_session, name="Baru", minutes_ago=1)

    r = client.get("/admin/contact-messages", headers=editor["headers"])
    assert r.status_code == 200
    assert [m["name"] for m in r.json()["data"]] == ["Baru", "Lama"]
    assert r.json()["pagination"]["total"] == 2

    r = client.get("/admin/contact-messages?is_read=false", headers=editor["headers"])
    assert [m["name"] for m in r.json()["data"]] == ["Baru"]


def test_list_messages_requires_session(client):
    r = client.get("/admin/contact-messages")
    assert r.status_code == 401


def test_mark_as_read_and_delete(client, db_session):
    editor = staff(client, db_session, Role.EDITOR)
    message = _create_message(db_session)

    r = client.post(f"/admin/contact-messages/{message.id}/read", headers=editor["headers"])
    assert r.status_code == 200
    assert r.json()["data"]["is_read"] is True

    r = client.delete(f"/admin/contact-messages/{message.id}", headers=editor["headers"])
    assert r.json() == {"success": True, "message": "Message deleted"}

    r = client.delete(f"/admin/contact-messages/{message.id}", headers=editor["headers"])
    assert r.status_code == 404
    assert r.json()["code"] == "NOT_FOUND"


def test_mark_as_read_without_session_is_rejected(client, db_session):
    message = _create_message(db_session)

    r = client.post(f"/admin/contact-messages/{message.id}/read")

    assert r.status_code == 401
    db_session.expire_all()
    assert db_session.get(ContactMessage, message.id).is_read is False
