from __future__ import annotations

import json

import pytest
from fastapi.testclient import TestClient

from app.core.config import settings
from app.core.security import create_access_token
from app.db.session import get_db
from app.main import create_app
from app.models.enums import UserRole
from app.models.ticket import Ticket
from app.models.user import User


@pytest.fixture()
def client(db_session, monkeypatch) -> TestClient:  # noqa: ANN001
    monkeypatch.setattr(settings, "RATE_LIMIT_ENABLED", False)
    application = create_app()

    def override_get_db():  # noqa: ANN202
        yield db_session

    application.dependency_overrides[get_db] = override_get_db
    return TestClient(application)


def _auth(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


def _ticket_file(payload, name: str = "tickets.json", content_type: str = "application/json"):  # noqa: ANN001, ANN202
    body = payload if isinstance(payload, (bytes, str)) else json.dumps(payload)
    return {"file": (name, body, content_type)}


def test_requires_authentication(client) -> None:  # noqa: ANN001
    response = client.post("/api/import/tickets", files=_ticket_file([{"id": 1, "status": "open"}]))

    assert response.status_code == 401
    assert response.json()["error_code"] == "NOT_AUTHENTICATED"


def test_requires_admin_role(client, db_session) -> None:  # noqa: ANN001
    agent = User(external_id="idp|agent", email="agent@example.com", role=UserRole.agent)
    db_session.add(agent)
    db_session.commit()

    response = client.post(
        "/api/import/tickets",
        files=_ticket_file([{"id": 1, "status": "open"}]),
        headers=_auth(agent),
    )

    assert response.status_code == 403


def test_ticket_upload_returns_report_without_empty_fields(client, db_session, db_admin) -> None:  # noqa: ANN001
    payload = {"tickets": [{"id": 10, "status": "open"}, {"id": 11, "status": "pending"}]}

    response = client.post("/api/import/tickets", files=_ticket_file(payload), headers=_auth(db_admin))

    assert response.status_code == 200
    body = response.json()
    assert body == {
        "success": True,
        "imported": 2,
        "duplicates": 0,
        "skipped": 0,
        "users_created": 0,
        "custom_fields_created": 0,
        "form_responses_created": 0,
    }
    assert db_session.query(Ticket).count() == 2
    assert response.headers["Cache-Control"] == "no-store"


def test_ticket_upload_accepts_jsonl_format_hint(client, db_admin) -> None:  # noqa: ANN001
    content = "\n".join(json.dumps({"id": number, "status": "open"}) for number in (20, 21, 22))

    response = client.post(
        "/api/import/tickets?format=jsonl",
        files=_ticket_file(content, name="tickets.jsonl", content_type="application/octet-stream"),
        headers=_auth(db_admin),
    )

    assert response.status_code == 200
    assert response.json()["imported"] == 3


def test_ticket_upload_reports_partial_failures(client, db_admin) -> None:  # noqa: ANN001
    payload = [{"id": 30, "status": "open"}, {"id": 31, "status": "open", "comments": ["bad"]}]

    response = client.post("/api/import/tickets", files=_ticket_file(payload), headers=_auth(db_admin))

    assert response.status_code == 200
    body = response.json()
    assert (body["imported"], body["skipped"]) == (1, 1)
    assert body["errors"] == ["Ticket 31: malformed_comment"]


def test_upload_validation_errors(client, db_admin, monkeypatch) -> None:  # noqa: ANN001
    headers = _auth(db_admin)

    missing = client.post("/api/import/tickets", headers=headers)
    assert missing.status_code == 400
    assert missing.json()["message"] == "no_file_uploaded"

    wrong_type = client.post(
        "/api/import/tickets",
        files=_ticket_file("hello", name="notes.txt", content_type="text/plain"),
        headers=headers,
    )
    assert wrong_type.status_code == 400
    assert wrong_type.json()["message"] == "only_json_files_allowed"

    unparseable = client.post("/api/import/tickets", files=_ticket_file("garbage\nmore garbage"), headers=headers)
    assert unparseable.status_code == 400
    assert unparseable.json()["error_code"] == "EMPTY_OR_UNPARSEABLE"

    not_an_export = client.post("/api/import/tickets", files=_ticket_file({"page": 1}), headers=headers)
    assert not_an_export.status_code == 400
    assert not_an_export.json()["error_code"] == "INVALID_IMPORT_FORMAT"

    monkeypatch.setattr(settings, "IMPORT_MAX_JSON_BYTES", 16)
    too_large = client.post(
        "/api/import/tickets",
        files=_ticket_file([{"id": 1, "status": "open", "subject": "x" * 64}]),
        headers=headers,
    )
    assert too_large.status_code == 413
    assert too_large.json()["details"] == {"limit_bytes": 16}


def test_user_and_field_uploads(client, db_admin) -> None:  # noqa: ANN001
    headers = _auth(db_admin)
    users = {"users": [{"id": 5, "email": "someone@example.com", "name": "Some One"}, {"id": 6, "email": None}]}

    user_response = client.post(
        "/api/import/users",
        files={"file": ("users.json", json.dumps(users), "application/json")},
        headers=headers,
    )
    csv = "Display name,Type,Field ID,Description,Tag\nOrder Number,text,77,,\n"
    field_response = client.post(
        "/api/import/fields",
        files={"file": ("ticket-fields.csv", csv, "text/csv")},
        headers=headers,
    )
    wrong_csv = client.post(
        "/api/import/fields",
        files={"file": ("fields.json", "{}", "application/json")},
        headers=headers,
    )

    assert user_response.status_code == 200
    assert user_response.json() == {
        "success": True,
        "imported": 1,
        "updated": 0,
        "skipped": 1,
        "errors": ["User 6: No email address"],
    }
    assert field_response.status_code == 200
    assert field_response.json() == {"success": True, "imported": 1, "updated": 0, "skipped": 0}
    assert wrong_csv.status_code == 400


def test_reset_ticket_sequence(client, db_admin) -> None:  # noqa: ANN001
    headers = _auth(db_admin)
    client.post("/api/import/tickets", files=_ticket_file([{"id": 905, "status": "open"}]), headers=headers)

    response = client.post("/api/import/reset-ticket-sequence", headers=headers)

    assert response.status_code == 200
    assert response.json() == {"next_number": 906}


def test_expired_token_and_cookie_auth(client, db_admin) -> None:  # noqa: ANN001
    expired = client.post(
        "/api/import/reset-ticket-sequence",
        headers={"Authorization": f"Bearer {create_access_token(db_admin.id, expires_minutes=-1)}"},
    )
    assert expired.status_code == 401
    assert expired.json()["error_code"] == "EXPIRED_TOKEN"

    client.cookies.set(settings.COOKIE_NAME, create_access_token(db_admin.id))
    via_cookie = client.post("/api/import/reset-ticket-sequence")
    assert via_cookie.status_code == 200
