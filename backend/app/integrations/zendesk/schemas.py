"""DTOs for Zendesk import endpoints."""

from __future__ import annotations

import enum

from pydantic import BaseModel, Field


class ExportFormat(str, enum.Enum):
    json = "json"
    jsonl = "jsonl"


class ImportReport(BaseModel):
    success: bool = True
    imported: int = 0
    duplicates: int | None = None
    updated: int | None = None
    skipped: int = 0
    users_created: int | None = None
    custom_fields_created: int | None = None
    form_responses_created: int | None = None
    form_responses_failed: int | None = None
    errors: list[str] | None = Field(default=None)


class TicketSequenceResult(BaseModel):
    next_number: int
