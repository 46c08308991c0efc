"""Zendesk export import endpoints (administrators only)."""

from __future__ import annotations

from pathlib import PurePath

from fastapi import APIRouter, Depends, File, Query, UploadFile
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.deps import require_admin
from app.core.exceptions import BadRequestError, PayloadTooLargeError
from app.core.rate_limit import rate_limit
from app.db.session import get_db
from app.integrations.zendesk.gateway import SqlAlchemyImportGateway
from app.integrations.zendesk.schemas import ExportFormat, ImportReport, TicketSequenceResult
from app.integrations.zendesk.service import (
    import_field_catalog,
    import_tickets,
    import_users,
    reset_ticket_sequence,
)
from app.models.user import User

router = APIRouter(dependencies=[Depends(rate_limit("import"))])

JSON_CONTENT_TYPES = {"application/json", "application/x-ndjson", "application/jsonl", "application/x-jsonlines"}
JSON_SUFFIXES = {".json", ".jsonl", ".ndjson"}
CSV_CONTENT_TYPES = {"text/csv", "application/csv", "application/vnd.ms-excel"}
CSV_SUFFIXES = {".csv"}


def _read_upload(
    file: UploadFile | None,
    *,
    content_types: set[str],
    suffixes: set[str],
    limit_bytes: int,
    expected: str,
) -> bytes:
    if file is None or not file.filename:
        raise BadRequestError("no_file_uploaded")
    content_type = (file.content_type or "").split(";")[0].strip().lower()
    suffix = PurePath(file.filename).suffix.lower()
    if content_type not in content_types and suffix not in suffixes:
        raise BadRequestError(f"only_{expected}_files_allowed", details={"content_type": content_type})
    content = file.file.read(limit_bytes + 1)
    if len(content) > limit_bytes:
        raise PayloadTooLargeError(limit_bytes=limit_bytes)
    return content


@router.post("/tickets", response_model=ImportReport, response_model_exclude_none=True)
def upload_tickets(
    file: UploadFile | None = File(default=None),
    export_format: ExportFormat = Query(default=ExportFormat.json, alias="format"),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
) -> ImportReport:
    content = _read_upload(
        file,
        content_types=JSON_CONTENT_TYPES,
        suffixes=JSON_SUFFIXES,
        limit_bytes=settings.IMPORT_MAX_JSON_BYTES,
        expected="json",
    )
    return import_tickets(
        SqlAlchemyImportGateway(db),
        content,
        admin_id=current_user.id,
        line_mode=export_format == ExportFormat.jsonl,
    )


@router.post("/users", response_model=ImportReport, response_model_exclude_none=True)
def upload_users(
    file: UploadFile | None = File(default=None),
    db: Session = Depends(get_db),
    _: User = Depends(require_admin),
) -> ImportReport:
    content = _read_upload(
        file,
        content_types=JSON_CONTENT_TYPES,
        suffixes=JSON_SUFFIXES,
        limit_bytes=settings.IMPORT_MAX_JSON_BYTES,
        expected="json",
    )
    return import_users(SqlAlchemyImportGateway(db), content)


@router.post("/fields", response_model=ImportReport, response_model_exclude_none=True)
def upload_field_catalog(
    file: UploadFile | None = File(default=None),
    db: Session = Depends(get_db),
    _: User = Depends(require_admin),
) -> ImportReport:
    content = _read_upload(
        file,
        content_types=CSV_CONTENT_TYPES,
        suffixes=CSV_SUFFIXES,
        limit_bytes=settings.IMPORT_MAX_CSV_BYTES,
        expected="csv",
    )
    return import_field_catalog(SqlAlchemyImportGateway(db), content)


@router.post("/reset-ticket-sequence", response_model=TicketSequenceResult)
def reset_sequence(
    db: Session = Depends(get_db),
    _: User = Depends(require_admin),
) -> TicketSequenceResult:
    return reset_ticket_sequence(SqlAlchemyImportGateway(db))
