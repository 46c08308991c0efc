"""Format detection for Zendesk export uploads.

Zendesk hands out the same data either as one JSON document (a bare array, an object
wrapping an array, or a single record) or as JSONL, one record per line, depending on
export size. ``parse_json_export`` accepts all of them:

1. Parse the whole buffer as JSON and unwrap it.
2. If that fails, parse line by line, keeping lines that decode and carry the record's
   identifying keys. Other lines are discarded.
3. If neither yields a record, raise ``EmptyOrUnparseableError``.

Field catalogs are CSV and go through ``parse_field_catalog`` instead.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Callable

from app.core.exceptions import EmptyOrUnparseableError, InvalidFormatError
from app.integrations.zendesk.mapper import map_field_row, map_ticket, map_user
from app.integrations.zendesk.records import ExportKind, SourceRecord

logger = logging.getLogger(__name__)

WRAPPER_KEYS: dict[ExportKind, str] = {
    ExportKind.tickets: "tickets",
    ExportKind.users: "users",
}

IDENTIFYING_KEYS: dict[ExportKind, tuple[str, ...]] = {
    ExportKind.tickets: ("id", "status"),
    ExportKind.users: ("id", "email"),
}

MAPPERS: dict[ExportKind, Callable[[Any], SourceRecord]] = {
    ExportKind.tickets: map_ticket,
    ExportKind.users: map_user,
}


@dataclass(frozen=True)
class ParseIssue:
    position: int
    reason: str


@dataclass(frozen=True)
class ParsedExport:
    kind: ExportKind
    mode: str
    records: tuple[SourceRecord, ...]
    rejected: tuple[ParseIssue, ...] = ()


def _decode(content: bytes | str) -> str:
    if isinstance(content, bytes):
        try:
            content = content.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            logger.warning("Export is not valid UTF-8 (first bad byte at %d); invalid bytes replaced", exc.start)
            content = content.decode("utf-8-sig", errors="replace")
    return content.strip()


def _looks_like_record(payload: Any, kind: ExportKind) -> bool:
    if not isinstance(payload, dict):
        return False
    return all(payload.get(key) for key in IDENTIFYING_KEYS[kind])


def _map_one(payload: Any, kind: ExportKind, position: int) -> SourceRecord | ParseIssue:
    try:
        return MAPPERS[kind](payload)
    except ValueError as exc:
        return ParseIssue(position=position, reason=str(exc))


def _collect(kind: ExportKind, mode: str, outcomes: list[SourceRecord | ParseIssue]) -> ParsedExport:
    records = tuple(item for item in outcomes if not isinstance(item, ParseIssue))
    rejected = tuple(item for item in outcomes if isinstance(item, ParseIssue))
    if rejected:
        logger.info("Zendesk %s export: %d of %d entries rejected", kind.value, len(rejected), len(outcomes))
    if not records:
        raise EmptyOrUnparseableError(
            f"Invalid Zendesk export format. Could not parse any {kind.value} from the file.",
            kind=kind.value,
        )
    return ParsedExport(kind=kind, mode=mode, records=records, rejected=rejected)


def _unwrap_document(document: Any, kind: ExportKind) -> list[Any]:
    if isinstance(document, list):
        return document
    if isinstance(document, dict):
        wrapped = document.get(WRAPPER_KEYS[kind])
        if isinstance(wrapped, list):
            return wrapped
        if _looks_like_record(document, kind):
            return [document]
    raise InvalidFormatError(kind=kind.value)


def _parse_lines(text: str, kind: ExportKind) -> ParsedExport:
    outcomes: list[SourceRecord | ParseIssue] = []
    discarded = 0
    for line_number, line in enumerate(text.splitlines(), start=1):
        if not line.strip():
            continue
        try:
            payload = json.loads(line)
        except json.JSONDecodeError:
            discarded += 1
            continue
        if not _looks_like_record(payload, kind):
            discarded += 1
            continue
        outcomes.append(_map_one(payload, kind, line_number))
    if discarded:
        logger.info("Zendesk %s export: discarded %d lines that are not records", kind.value, discarded)
    return _collect(kind, "lines", outcomes)


def parse_json_export(content: bytes | str, kind: ExportKind, *, line_mode: bool = False) -> ParsedExport:
    if kind not in MAPPERS:
        raise ValueError(f"unsupported_json_export_kind:{kind.value}")
    text = _decode(content)
    if not text:
        raise EmptyOrUnparseableError("The uploaded file is empty.", kind=kind.value)

    if not line_mode:
        try:
            document = json.loads(text)
        except json.JSONDecodeError:
            logger.debug("Zendesk %s export is not a single JSON document; trying JSONL", kind.value)
        else:
            elements = _unwrap_document(document, kind)
            outcomes = [_map_one(item, kind, index) for index, item in enumerate(elements, start=1)]
            return _collect(kind, "document", outcomes)

    return _parse_lines(text, kind)


def parse_field_catalog(content: bytes | str) -> ParsedExport:
    lines = [line for line in _decode(content).splitlines() if line.strip()]
    if len(lines) < 2:
        raise EmptyOrUnparseableError("CSV file is empty or has no data rows", kind=ExportKind.fields.value)

    records: list[SourceRecord] = []
    rejected: list[ParseIssue] = []
    # First line is the header row.
    for line_number, line in enumerate(lines[1:], start=2):
        try:
            records.append(map_field_row(line, line_number))
        except ValueError as exc:
            rejected.append(ParseIssue(position=line_number, reason=str(exc)))
    if rejected:
        logger.info("Zendesk field catalog: %d of %d rows skipped", len(rejected), len(lines) - 1)
    return ParsedExport(kind=ExportKind.fields, mode="csv", records=tuple(records), rejected=tuple(rejected))
