"""Run a Zendesk export import against the configured database.

Usage examples:

    python scripts/zendesk_import.py fields ticket-fields.csv
    python scripts/zendesk_import.py users users.json
    python scripts/zendesk_import.py tickets tickets.jsonl --admin-email admin@example.com --format jsonl
    python scripts/zendesk_import.py reset-sequence
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from sqlalchemy.orm import Session

BASE_DIR = Path(__file__).resolve().parents[1]
sys.path.append(str(BASE_DIR))

from app.core.config import settings  # noqa: E402
from app.core.exceptions import ImportFormatError  # noqa: E402
from app.core.logging import setup_logging  # noqa: E402
from app.db.session import session_scope  # noqa: E402
from app.integrations.zendesk.gateway import SqlAlchemyImportGateway  # noqa: E402
from app.integrations.zendesk.schemas import ExportFormat, ImportReport, TicketSequenceResult  # noqa: E402
from app.integrations.zendesk.service import (  # noqa: E402
    import_field_catalog,
    import_tickets,
    import_users,
    reset_ticket_sequence,
)
from app.models.enums import UserRole  # noqa: E402
from app.models.user import User  # noqa: E402


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Import Zendesk exports into the help desk")
    commands = parser.add_subparsers(dest="command", required=True)

    tickets = commands.add_parser("tickets", help="Import a ticket export (JSON or JSONL)")
    tickets.add_argument("file", type=Path)
    tickets.add_argument("--admin-email", required=True, help="Administrator owning unresolved authors")
    tickets.add_argument(
        "--format",
        choices=[item.value for item in ExportFormat],
        default=ExportFormat.json.value,
        help="jsonl skips the whole-document parse",
    )

    users = commands.add_parser("users", help="Import a user export (JSON or JSONL)")
    users.add_argument("file", type=Path)

    fields = commands.add_parser("fields", help="Import the ticket field catalog (CSV)")
    fields.add_argument("file", type=Path)

    commands.add_parser("reset-sequence", help="Realign the ticket number sequence after an import")
    return parser.parse_args()


def _read(path: Path, limit_bytes: int) -> bytes:
    content = path.read_bytes()
    if len(content) > limit_bytes:
        raise SystemExit(f"{path} is larger than the {limit_bytes} byte import limit")
    return content


def _run(args: argparse.Namespace, db: Session) -> ImportReport | TicketSequenceResult | None:
    gateway = SqlAlchemyImportGateway(db)
    if args.command == "tickets":
        admin = db.query(User).filter(User.email == args.admin_email.strip().lower()).first()
        if admin is None:
            return None
        if admin.role != UserRole.admin:
            raise SystemExit(f"{admin.display_name} is not an administrator")
        return import_tickets(
            gateway,
            _read(args.file, settings.IMPORT_MAX_JSON_BYTES),
            admin_id=admin.id,
            line_mode=args.format == ExportFormat.jsonl.value,
        )
    if args.command == "users":
        return import_users(gateway, _read(args.file, settings.IMPORT_MAX_JSON_BYTES))
    if args.command == "fields":
        return import_field_catalog(gateway, _read(args.file, settings.IMPORT_MAX_CSV_BYTES))
    return reset_ticket_sequence(gateway)


def main() -> int:
    args = parse_args()
    setup_logging(settings.LOG_LEVEL)

    try:
        with session_scope() as db:
            result = _run(args, db)
    except ImportFormatError as exc:
        print(json.dumps(exc.to_dict(), indent=2))
        return 1

    if result is None:
        print(f"No administrator found with email {args.admin_email}")
        return 1
    print(json.dumps(result.model_dump(exclude_none=True), indent=2))
    return 0 if not getattr(result, "errors", None) else 2


if __name__ == "__main__":
    raise SystemExit(main())
