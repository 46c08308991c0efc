"""Remove data written by Zendesk imports.

Deletes form responses, comments and tickets that came from Zendesk, the USER-role
accounts created by imports, and field placeholders that were never promoted.
Dry run unless ``--apply`` is given.

    python scripts/cleanup_import_data.py
    python scripts/cleanup_import_data.py --apply
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from sqlalchemy import delete, func, select, union
from sqlalchemy.orm import Session

BASE_DIR = Path(__file__).resolve().parents[1]
sys.path.append(str(BASE_DIR))

from app.core.config import settings  # noqa: E402
from app.core.logging import setup_logging  # noqa: E402
from app.db.session import session_scope  # noqa: E402
from app.integrations.zendesk.mapper import (  # noqa: E402
    IMPORT_EXTERNAL_ID_PREFIX,
    PLACEHOLDER_LABEL_PREFIX,
    ZENDESK_SOURCE,
)
from app.models.enums import UserRole  # noqa: E402
from app.models.form_field import FormFieldDefinition, FormResponse  # noqa: E402
from app.models.ticket import Ticket, TicketComment  # noqa: E402
from app.models.user import User  # noqa: E402


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Remove data created by Zendesk imports")
    parser.add_argument("--apply", action="store_true", help="Actually delete the rows")
    return parser.parse_args()


def _count(db: Session, statement) -> int:
    return int(db.execute(select(func.count()).select_from(statement.subquery())).scalar() or 0)


def cleanup(db: Session, *, apply: bool) -> dict[str, int]:
    imported_tickets = select(Ticket.id).where(Ticket.external_source == ZENDESK_SOURCE)
    imported_users = select(User.id).where(
        User.external_id.startswith(IMPORT_EXTERNAL_ID_PREFIX),
        User.role == UserRole.user,
    )
    # Users still referenced by tickets that survive the cleanup are kept.
    surviving = Ticket.external_source.is_distinct_from(ZENDESK_SOURCE)
    referenced_users = union(
        select(Ticket.requester_id).where(surviving),
        select(Ticket.assignee_id).where(surviving, Ticket.assignee_id.is_not(None)),
        select(TicketComment.author_id).where(TicketComment.ticket_id.not_in(imported_tickets)),
    )
    removable_users = imported_users.where(User.id.not_in(referenced_users))
    placeholders = select(FormFieldDefinition.id).where(
        FormFieldDefinition.label.startswith(PLACEHOLDER_LABEL_PREFIX)
    )
    referenced_fields = select(FormResponse.field_id).where(FormResponse.ticket_id.not_in(imported_tickets))
    removable_fields = placeholders.where(FormFieldDefinition.id.not_in(referenced_fields))

    plan = [
        ("form_responses", FormResponse, select(FormResponse.id).where(FormResponse.ticket_id.in_(imported_tickets))),
        ("comments", TicketComment, select(TicketComment.id).where(TicketComment.ticket_id.in_(imported_tickets))),
        ("tickets", Ticket, imported_tickets),
        ("users", User, removable_users),
        ("field_placeholders", FormFieldDefinition, removable_fields),
    ]

    counts: dict[str, int] = {}
    for name, model, ids in plan:
        counts[name] = _count(db, ids)
        if apply and counts[name]:
            db.execute(
                delete(model).where(model.id.in_(ids)),
                execution_options={"synchronize_session": False},
            )
    if apply:
        db.commit()
    return counts


def main() -> int:
    args = parse_args()
    setup_logging(settings.LOG_LEVEL)

    with session_scope() as db:
        counts = cleanup(db, apply=args.apply)

    verb = "Deleted" if args.apply else "Would delete"
    for name, count in counts.items():
        print(f"{verb} {count} {name}")
    if not args.apply:
        print("Dry run only. Re-run with --apply to delete.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
