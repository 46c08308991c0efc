"""Mapping utilities from Zendesk export payloads to typed source records and canonical values."""

from __future__ import annotations

import datetime as dt
import json
import logging
import re
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from app.core.sanitize import clean_email, clean_single_line
from app.integrations.zendesk.records import (
    SourceComment,
    SourceCustomFieldValue,
    SourceFieldRow,
    SourceTicket,
    SourceUser,
    SourceUserRef,
    as_source_id,
)
from app.models.enums import FieldType, TicketPriority, TicketStatus, UserRole

logger = logging.getLogger(__name__)

ZENDESK_SOURCE = "zendesk"
IMPORT_EXTERNAL_ID_PREFIX = "zendesk-import-"
PLACEHOLDER_LABEL_PREFIX = "Zendesk Field "
DEFAULT_SUBJECT = "Imported from Zendesk"
DEFAULT_COMMENT_BODY = "No content"
DEFAULT_FIRST_NAME = "Imported"
DEFAULT_LAST_NAME = "User"
DONE_SOURCE_STATUSES = {"solved", "closed"}

STATUS_MAP = {
    "new": TicketStatus.new,
    "open": TicketStatus.open,
    "pending": TicketStatus.pending,
    "hold": TicketStatus.on_hold,
    "solved": TicketStatus.solved,
    "closed": TicketStatus.solved,
}

PRIORITY_MAP = {
    "low": TicketPriority.low,
    "normal": TicketPriority.normal,
    "high": TicketPriority.high,
    "urgent": TicketPriority.urgent,
}

ROLE_MAP = {
    "admin": UserRole.admin,
    "agent": UserRole.agent,
    "end-user": UserRole.user,
}

FIELD_TYPE_MAP = {
    "checkbox": FieldType.checkbox,
    "text": FieldType.text,
    "numeric": FieldType.text,
    "multi-line": FieldType.textarea,
    "drop-down": FieldType.select,
}

# display name, type, numeric id, two trailing columns; each optionally quoted.
FIELD_ROW_RE = re.compile(r'^"?([^",]*)"?,\s*"?([^",]*)"?,\s*"?(\d+)"?,\s*"?([^",]*)"?,\s*"?([^",]*)"?$')


def synthetic_external_id(source_user_id: int) -> str:
    return f"{IMPORT_EXTERNAL_ID_PREFIX}{source_user_id}"


def placeholder_label(source_field_id: int) -> str:
    return f"{PLACEHOLDER_LABEL_PREFIX}{source_field_id}"


def parse_datetime(value: Any) -> dt.datetime | None:
    if isinstance(value, dt.datetime):
        return value if value.tzinfo else value.replace(tzinfo=dt.timezone.utc)
    if not isinstance(value, str):
        return None
    normalized = value.strip()
    if not normalized:
        return None
    for candidate in (normalized.replace("Z", "+00:00"), normalized):
        try:
            parsed = dt.datetime.fromisoformat(candidate)
        except ValueError:
            continue
        if parsed.tzinfo is None:
            return parsed.replace(tzinfo=dt.timezone.utc)
        return parsed.astimezone(dt.timezone.utc)
    for fmt in ("%Y-%m-%dT%H:%M:%S.%f%z", "%Y-%m-%dT%H:%M:%S%z", "%Y/%m/%d %H:%M:%S %z"):
        try:
            return dt.datetime.strptime(normalized, fmt).astimezone(dt.timezone.utc)
        except ValueError:
            continue
    logger.warning("Could not parse Zendesk datetime: %s", value)
    return None


def _optional_text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _require_id(value: Any, code: str) -> int:
    source_id = as_source_id(value)
    if source_id is None:
        raise ValueError(code)
    return source_id


def _optional_id(value: Any, code: str) -> int | None:
    if value is None or value == "":
        return None
    return _require_id(value, code)


def map_status(value: str | None) -> TicketStatus:
    name = (value or "").strip().lower()
    if name in STATUS_MAP:
        return STATUS_MAP[name]
    if name:
        logger.warning("Unknown Zendesk status '%s'; defaulting to NEW", name)
    return TicketStatus.new


def map_priority(value: str | None) -> TicketPriority:
    name = (value or "").strip().lower()
    if name in PRIORITY_MAP:
        return PRIORITY_MAP[name]
    if name:
        logger.warning("Unknown Zendesk priority '%s'; defaulting to NORMAL", name)
    return TicketPriority.normal


def map_role(value: str | None) -> UserRole:
    return ROLE_MAP.get((value or "").strip().lower(), UserRole.user)


def map_field_type(value: str | None) -> FieldType:
    return FIELD_TYPE_MAP.get((value or "").strip().lower(), FieldType.text)


def is_done_status(value: str | None) -> bool:
    return (value or "").strip().lower() in DONE_SOURCE_STATUSES


def split_name(name: str | None) -> tuple[str, str]:
    parts = clean_single_line(name).split(" ") if name else []
    parts = [part for part in parts if part]
    if not parts:
        return DEFAULT_FIRST_NAME, DEFAULT_LAST_NAME
    return parts[0], " ".join(parts[1:])


def timezone_label(iana_name: str | None, fallback: str | None = None, *, now: dt.datetime | None = None) -> str | None:
    """Render an IANA zone as a short offset label such as ``GMT+2`` or ``GMT+5:30``."""
    name = (iana_name or "").strip()
    if not name:
        return _optional_text(fallback)
    try:
        zone = ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        return name
    offset = (now or dt.datetime.now(dt.timezone.utc)).astimezone(zone).utcoffset()
    if offset is None:
        return name
    total_minutes = int(offset.total_seconds() // 60)
    if total_minutes == 0:
        return "GMT"
    sign = "+" if total_minutes > 0 else "-"
    hours, minutes = divmod(abs(total_minutes), 60)
    return f"GMT{sign}{hours}:{minutes:02d}" if minutes else f"GMT{sign}{hours}"


def flatten_field_value(value: Any) -> str | None:
    """Custom field values are stored as strings; empty, null and false values are dropped."""
    if value is None or value is False or value == "":
        return None
    if value is True:
        return "true"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (dict, list)):
        return json.dumps(value, separators=(",", ":"), ensure_ascii=False)
    return str(value)


def _map_user_ref(value: Any) -> SourceUserRef | None:
    if not isinstance(value, dict):
        return None
    source_id = as_source_id(value.get("id"))
    if source_id is None:
        return None
    return SourceUserRef(
        id=source_id,
        email=clean_email(value.get("email")) or None,
        name=_optional_text(value.get("name")),
    )


def _map_custom_fields(value: Any, ticket_id: int) -> tuple[SourceCustomFieldValue, ...]:
    if not isinstance(value, list):
        return ()
    fields: list[SourceCustomFieldValue] = []
    for item in value:
        field_id = as_source_id(item.get("id")) if isinstance(item, dict) else None
        if field_id is None:
            logger.warning("Ignoring custom field entry without id on Zendesk ticket %s", ticket_id)
            continue
        fields.append(SourceCustomFieldValue(field_id=field_id, value=item.get("value")))
    return tuple(fields)


def map_ticket(payload: Any) -> SourceTicket:
    if not isinstance(payload, dict):
        raise ValueError("ticket_not_an_object")
    ticket_id = _require_id(payload.get("id"), "missing_ticket_id")
    status = _optional_text(payload.get("status"))
    if status is None:
        raise ValueError("missing_ticket_status")
    comments = payload.get("comments")
    return SourceTicket(
        id=ticket_id,
        status=status,
        subject=_optional_text(payload.get("subject")),
        description=_optional_text(payload.get("description")),
        priority=_optional_text(payload.get("priority")),
        requester=_map_user_ref(payload.get("requester")),
        requester_id=as_source_id(payload.get("requester_id")),
        assignee=_map_user_ref(payload.get("assignee")),
        assignee_id=as_source_id(payload.get("assignee_id")),
        submitter=_map_user_ref(payload.get("submitter")),
        submitter_id=as_source_id(payload.get("submitter_id")),
        comments=tuple(comments) if isinstance(comments, list) else (),
        custom_fields=_map_custom_fields(payload.get("custom_fields"), ticket_id),
        created_at=parse_datetime(payload.get("created_at")),
        updated_at=parse_datetime(payload.get("updated_at")),
        solved_at=parse_datetime(payload.get("solved_at")),
    )


def map_comment(payload: Any) -> SourceComment:
    if not isinstance(payload, dict):
        raise ValueError("malformed_comment")
    body = _optional_text(payload.get("body"))
    public = payload.get("public")
    return SourceComment(
        id=as_source_id(payload.get("id")),
        author_id=_optional_id(payload.get("author_id"), "malformed_comment_author"),
        body=_optional_text(payload.get("html_body")) or body or DEFAULT_COMMENT_BODY,
        body_plain=_optional_text(payload.get("plain_body")) or body or DEFAULT_COMMENT_BODY,
        public=public if isinstance(public, bool) else None,
        created_at=parse_datetime(payload.get("created_at")),
    )


def map_user(payload: Any) -> SourceUser:
    if not isinstance(payload, dict):
        raise ValueError("user_not_an_object")
    return SourceUser(
        id=_require_id(payload.get("id"), "missing_user_id"),
        email=clean_email(payload.get("email")) or None,
        name=_optional_text(payload.get("name")),
        role=_optional_text(payload.get("role")),
        created_at=parse_datetime(payload.get("created_at")),
        last_login_at=parse_datetime(payload.get("last_login_at")),
        time_zone=_optional_text(payload.get("time_zone")),
        iana_time_zone=_optional_text(payload.get("iana_time_zone")),
    )


def map_field_row(line: str, line_number: int) -> SourceFieldRow:
    match = FIELD_ROW_RE.match(line.strip())
    if not match:
        raise ValueError("unexpected_column_shape")
    display_name, field_type, field_id = match.group(1, 2, 3)
    label = clean_single_line(display_name)
    if not label:
        raise ValueError("missing_display_name")
    return SourceFieldRow(
        display_name=label[:255],
        field_type=field_type.strip(),
        field_id=_require_id(field_id, "missing_field_id"),
        line_number=line_number,
    )
