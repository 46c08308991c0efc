from __future__ import annotations

import datetime as dt

import pytest

from app.integrations.zendesk.fields import reconcile_fields
from app.integrations.zendesk.mapper import map_ticket
from app.integrations.zendesk.tickets import import_ticket
from app.integrations.zendesk.users import reconcile_users
from app.models.enums import CommentChannel, TicketChannel, TicketPriority, TicketStatus


def _prepare(gateway, admin, payload: dict):  # noqa: ANN001, ANN202
    ticket = map_ticket(payload)
    fields = reconcile_fields(gateway, [ticket])
    users = reconcile_users(gateway, [ticket], fallback_user_id=admin.id)
    return ticket, fields, users


def test_import_ticket_creates_ticket_comments_and_responses(gateway, admin) -> None:  # noqa: ANN001
    ticket, fields, users = _prepare(
        gateway,
        admin,
        {
            "id": 4001,
            "status": "hold",
            "priority": "high",
            "subject": "Laptop will not boot",
            "description": "Black screen after update",
            "requester": {"id": 1, "email": "req@example.com", "name": "Rita Requester"},
            "assignee": {"id": 2, "email": "agent@example.com", "name": "Al Agent"},
            "created_at": "2026-04-01T09:00:00Z",
            "comments": [
                {"id": 1, "author_id": 1, "body": "It died", "public": True},
                {"id": 2, "author_id": 2, "html_body": "<b>Looking</b>", "plain_body": "Looking", "public": False},
            ],
            "custom_fields": [
                {"id": 77, "value": "ORD-1"},
                {"id": 78, "value": None},
                {"id": 79, "value": ["a", "b"]},
            ],
        },
    )

    outcome = import_ticket(gateway, ticket, fields=fields, users=users, fallback_user_id=admin.id)

    assert outcome.status == "imported"
    assert (outcome.comments_created, outcome.form_responses_created) == (2, 2)
    created = gateway.find_ticket_by_number(4001)
    assert created.subject == "Laptop will not boot"
    assert created.status == TicketStatus.on_hold
    assert created.priority == TicketPriority.high
    assert created.channel == TicketChannel.web
    assert created.external_source == "zendesk"
    assert created.requester_id == users.get(1)
    assert created.assignee_id == users.get(2)
    assert created.solved_at is None
    assert created.created_at == dt.datetime(2026, 4, 1, 9, 0, tzinfo=dt.timezone.utc)

    internal = [comment for comment in gateway.comments if comment.is_internal]
    assert [comment.body for comment in internal] == ["<b>Looking</b>"]
    assert all(comment.channel == CommentChannel.system for comment in gateway.comments)
    assert sorted(response.value for response in gateway.responses) == ["ORD-1", '["a","b"]']


def test_import_ticket_defaults_and_unresolved_assignee(gateway, admin) -> None:  # noqa: ANN001
    ticket, fields, users = _prepare(
        gateway,
        admin,
        {
            "id": 4002,
            "status": "closed",
            "assignee_id": 99,
            "updated_at": "2026-04-02T10:00:00Z",
            "comments": [{"body": "anonymous note"}],
        },
    )

    import_ticket(gateway, ticket, fields=fields, users=users, fallback_user_id=admin.id)

    created = gateway.find_ticket_by_number(4002)
    assert created.subject == "Imported from Zendesk"
    assert created.status == TicketStatus.solved
    assert created.priority == TicketPriority.normal
    assert created.requester_id == admin.id
    assert created.assignee_id is None
    assert created.solved_at == dt.datetime(2026, 4, 2, 10, 0, tzinfo=dt.timezone.utc)
    assert gateway.comments[0].author_id == admin.id


def test_import_ticket_reports_duplicates(gateway, admin) -> None:  # noqa: ANN001
    ticket, fields, users = _prepare(gateway, admin, {"id": 4003, "status": "open"})

    first = import_ticket(gateway, ticket, fields=fields, users=users, fallback_user_id=admin.id)
    second = import_ticket(gateway, ticket, fields=fields, users=users, fallback_user_id=admin.id)

    assert (first.status, second.status) == ("imported", "duplicate")
    assert len(gateway.tickets) == 1


def test_malformed_comment_fails_before_anything_is_written(gateway, admin) -> None:  # noqa: ANN001
    ticket, fields, users = _prepare(
        gateway,
        admin,
        {"id": 4004, "status": "open", "comments": [{"body": "ok"}, "garbage"]},
    )

    with pytest.raises(ValueError, match="malformed_comment"):
        import_ticket(gateway, ticket, fields=fields, users=users, fallback_user_id=admin.id)

    assert gateway.tickets == []
    assert gateway.comments == []


def test_form_response_failure_does_not_fail_ticket(gateway, admin) -> None:  # noqa: ANN001
    ticket, fields, users = _prepare(
        gateway,
        admin,
        {
            "id": 4005,
            "status": "open",
            "custom_fields": [{"id": 77, "value": "keep"}, {"id": 78, "value": "explode"}],
        },
    )
    gateway.fail_form_response = lambda values: values["value"] == "explode"

    outcome = import_ticket(gateway, ticket, fields=fields, users=users, fallback_user_id=admin.id)

    assert outcome.status == "imported"
    assert (outcome.form_responses_created, outcome.form_responses_failed) == (1, 1)
    assert [response.value for response in gateway.responses] == ["keep"]
