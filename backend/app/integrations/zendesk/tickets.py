"""Per-ticket import: one Zendesk ticket -> ticket, comments and form responses."""

from __future__ import annotations

import datetime as dt
import logging
from dataclasses import dataclass
from uuid import UUID

from app.integrations.zendesk.gateway import ImportGateway, ticket_exists
from app.integrations.zendesk.mapper import (
    DEFAULT_SUBJECT,
    ZENDESK_SOURCE,
    flatten_field_value,
    is_done_status,
    map_comment,
    map_priority,
    map_status,
)
from app.integrations.zendesk.records import ReconciliationResult, SourceComment, SourceTicket
from app.models.enums import CommentChannel, TicketChannel

logger = logging.getLogger(__name__)


@dataclass
class TicketOutcome:
    status: str  # "imported" | "duplicate"
    comments_created: int = 0
    form_responses_created: int = 0
    form_responses_failed: int = 0


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


def _solved_at(ticket: SourceTicket) -> dt.datetime | None:
    if ticket.solved_at is not None:
        return ticket.solved_at
    if is_done_status(ticket.status):
        return ticket.updated_at or _utcnow()
    return None


def _create_comment(
    gateway: ImportGateway,
    *,
    ticket_id: UUID,
    comment: SourceComment,
    author_id: UUID,
    fallback_created_at: dt.datetime | None,
) -> None:
    values = {
        "ticket_id": ticket_id,
        "author_id": author_id,
        "body": comment.body,
        "body_plain": comment.body_plain,
        "is_internal": comment.is_internal,
        "is_system": False,
        "channel": CommentChannel.system,
    }
    created_at = comment.created_at or fallback_created_at
    if created_at is not None:
        values["created_at"] = created_at
    gateway.create_comment(**values)


def import_ticket(
    gateway: ImportGateway,
    ticket: SourceTicket,
    *,
    fields: ReconciliationResult,
    users: ReconciliationResult,
    fallback_user_id: UUID,
) -> TicketOutcome:
    """Write one ticket. Raises on malformed content so the caller can roll the ticket back."""
    if ticket_exists(gateway, ticket.id):
        return TicketOutcome(status="duplicate")

    # Parse every comment before writing anything for this ticket.
    comments = [map_comment(raw) for raw in ticket.comments]

    values = {
        "ticket_number": ticket.id,
        "subject": (ticket.subject or DEFAULT_SUBJECT)[:500],
        "description": ticket.description or "",
        "status": map_status(ticket.status),
        "priority": map_priority(ticket.priority),
        "channel": TicketChannel.web,
        "requester_id": users.get(ticket.requester_source_id) or fallback_user_id,
        "assignee_id": users.get_matched(ticket.assignee_source_id),
        "external_source": ZENDESK_SOURCE,
        "solved_at": _solved_at(ticket),
    }
    if ticket.created_at is not None:
        values["created_at"] = ticket.created_at
    if ticket.updated_at is not None:
        values["updated_at"] = ticket.updated_at
    created = gateway.create_ticket(**values)

    outcome = TicketOutcome(status="imported")
    for comment in comments:
        _create_comment(
            gateway,
            ticket_id=created.id,
            comment=comment,
            author_id=users.get(comment.author_id) or fallback_user_id,
            fallback_created_at=ticket.created_at,
        )
        outcome.comments_created += 1

    for custom_field in ticket.custom_fields:
        value = flatten_field_value(custom_field.value)
        if value is None:
            continue
        field_id = fields.get(custom_field.field_id)
        if field_id is None:
            logger.warning("Ticket %s references unmapped field %s", ticket.id, custom_field.field_id)
            continue
        try:
            gateway.create_form_response(ticket_id=created.id, field_id=field_id, value=value)
        except Exception as exc:  # noqa: BLE001
            outcome.form_responses_failed += 1
            logger.warning(
                "Failed to store field %s on ticket %s: %s", custom_field.field_id, ticket.id, exc
            )
        else:
            outcome.form_responses_created += 1
    return outcome
