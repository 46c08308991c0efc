"""Zendesk import orchestration: parse, reconcile, import, report."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from uuid import UUID

from app.core.config import settings
from app.integrations.zendesk.fields import apply_field_row, reconcile_fields
from app.integrations.zendesk.gateway import ImportGateway
from app.integrations.zendesk.parser import ParsedExport, parse_field_catalog, parse_json_export
from app.integrations.zendesk.records import ExportKind, SourceFieldRow, SourceTicket, SourceUser
from app.integrations.zendesk.schemas import ImportReport, TicketSequenceResult
from app.integrations.zendesk.tickets import import_ticket
from app.integrations.zendesk.users import reconcile_users, upsert_user

logger = logging.getLogger(__name__)


@dataclass
class ImportCounts:
    imported: int = 0
    duplicates: int = 0
    updated: int = 0
    skipped: int = 0
    form_responses_created: int = 0
    form_responses_failed: int = 0


def _bounded(errors: list[str]) -> list[str] | None:
    if not errors:
        return None
    return errors[: settings.IMPORT_MAX_ERRORS]


def _rejected_errors(parsed: ParsedExport, label: str) -> list[str]:
    return [f"{label} {issue.position}: {issue.reason}" for issue in parsed.rejected]


def import_tickets(
    gateway: ImportGateway,
    content: bytes | str,
    *,
    admin_id: UUID,
    line_mode: bool = False,
) -> ImportReport:
    """Import a ticket export. ``admin_id`` owns anything whose author cannot be resolved."""
    parsed = parse_json_export(content, ExportKind.tickets, line_mode=line_mode)
    tickets = [record for record in parsed.records if isinstance(record, SourceTicket)]

    fields = reconcile_fields(gateway, tickets)
    gateway.commit()
    users = reconcile_users(
        gateway,
        tickets,
        fallback_user_id=admin_id,
        include_submitters=settings.IMPORT_SUBMITTER_IMPLIES_AGENT,
    )
    gateway.commit()

    counts = ImportCounts(skipped=len(parsed.rejected))
    errors = _rejected_errors(parsed, "Entry")
    for ticket in tickets:
        try:
            outcome = import_ticket(gateway, ticket, fields=fields, users=users, fallback_user_id=admin_id)
            gateway.commit()
        except Exception as exc:  # noqa: BLE001
            gateway.rollback()
            counts.skipped += 1
            errors.append(f"Ticket {ticket.id}: {exc}")
            logger.exception("Zendesk import failed for ticket %s", ticket.id)
            continue
        if outcome.status == "duplicate":
            counts.duplicates += 1
            continue
        counts.imported += 1
        counts.form_responses_created += outcome.form_responses_created
        counts.form_responses_failed += outcome.form_responses_failed

    logger.info(
        "Zendesk ticket import (%s): imported=%d duplicates=%d skipped=%d users_created=%d fields_created=%d",
        parsed.mode,
        counts.imported,
        counts.duplicates,
        counts.skipped,
        users.created,
        fields.created,
    )
    return ImportReport(
        imported=counts.imported,
        duplicates=counts.duplicates,
        skipped=counts.skipped,
        users_created=users.created,
        custom_fields_created=fields.created,
        form_responses_created=counts.form_responses_created,
        form_responses_failed=counts.form_responses_failed or None,
        errors=_bounded(errors),
    )


def import_users(gateway: ImportGateway, content: bytes | str, *, line_mode: bool = False) -> ImportReport:
    parsed = parse_json_export(content, ExportKind.users, line_mode=line_mode)
    counts = ImportCounts(skipped=len(parsed.rejected))
    errors = _rejected_errors(parsed, "Entry")
    for user in parsed.records:
        if not isinstance(user, SourceUser):
            continue
        try:
            outcome = upsert_user(gateway, user)
            gateway.commit()
        except Exception as exc:  # noqa: BLE001
            gateway.rollback()
            counts.skipped += 1
            errors.append(f"User {user.id}: {exc}")
            logger.warning("Zendesk user import skipped user %s: %s", user.id, exc)
            continue
        if outcome == "created":
            counts.imported += 1
        else:
            counts.updated += 1

    logger.info(
        "Zendesk user import (%s): imported=%d updated=%d skipped=%d",
        parsed.mode,
        counts.imported,
        counts.updated,
        counts.skipped,
    )
    return ImportReport(
        imported=counts.imported,
        updated=counts.updated,
        skipped=counts.skipped,
        errors=_bounded(errors),
    )


def import_field_catalog(gateway: ImportGateway, content: bytes | str) -> ImportReport:
    parsed = parse_field_catalog(content)
    counts = ImportCounts(skipped=len(parsed.rejected))
    errors = _rejected_errors(parsed, "Line")
    for row in parsed.records:
        if not isinstance(row, SourceFieldRow):
            continue
        try:
            outcome = apply_field_row(gateway, row)
            gateway.commit()
        except Exception as exc:  # noqa: BLE001
            gateway.rollback()
            counts.skipped += 1
            errors.append(f"Line {row.line_number}: {exc}")
            logger.exception("Zendesk field catalog row %s failed", row.line_number)
            continue
        if outcome == "created":
            counts.imported += 1
        else:
            counts.updated += 1

    logger.info(
        "Zendesk field catalog import: created=%d updated=%d skipped=%d",
        counts.imported,
        counts.updated,
        counts.skipped,
    )
    return ImportReport(
        imported=counts.imported,
        updated=counts.updated,
        skipped=counts.skipped,
        errors=_bounded(errors),
    )


def reset_ticket_sequence(gateway: ImportGateway) -> TicketSequenceResult:
    next_number = gateway.reset_ticket_sequence()
    gateway.commit()
    logger.info("Ticket number sequence realigned; next number is %d", next_number)
    return TicketSequenceResult(next_number=next_number)
