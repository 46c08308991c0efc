"""Custom-field reconciliation: Zendesk field ids -> field library definitions."""

from __future__ import annotations

import logging
from typing import Iterable
from uuid import UUID

from app.integrations.zendesk.gateway import ImportGateway
from app.integrations.zendesk.mapper import map_field_type, placeholder_label
from app.integrations.zendesk.records import ReconciliationResult, SourceFieldRow, SourceTicket
from app.models.enums import FieldType

logger = logging.getLogger(__name__)


def collect_field_ids(tickets: Iterable[SourceTicket]) -> list[int]:
    seen: dict[int, None] = {}
    for ticket in tickets:
        for value in ticket.custom_fields:
            seen.setdefault(value.field_id, None)
    return list(seen)


def reconcile_fields(gateway: ImportGateway, tickets: Iterable[SourceTicket]) -> ReconciliationResult:
    """Map every referenced field id, creating a placeholder when the catalog has not been imported yet."""
    mapping: dict[int, UUID] = {}
    created = 0
    for field_id in collect_field_ids(tickets):
        field = gateway.find_field_by_source_id(field_id)
        if field is None:
            field = gateway.create_field(
                label=placeholder_label(field_id),
                field_type=FieldType.text.value,
                required=False,
                source_field_id=field_id,
            )
            created += 1
            logger.info("Created placeholder field definition for Zendesk field %s", field_id)
        mapping[field_id] = field.id
    return ReconciliationResult.build(mapping, created=created)


def apply_field_row(gateway: ImportGateway, row: SourceFieldRow) -> str:
    """Enrich or create the definition for one catalog row. Returns ``created`` or ``updated``."""
    field_type = map_field_type(row.field_type).value

    existing = gateway.find_field_by_source_id(row.field_id)
    if existing is not None:
        gateway.update_field(existing, label=row.display_name, field_type=field_type)
        return "updated"

    # Promote in place so FormResponses already pointing at the placeholder stay valid.
    placeholder = gateway.find_field_by_label(placeholder_label(row.field_id))
    if placeholder is not None:
        gateway.update_field(
            placeholder,
            label=row.display_name,
            field_type=field_type,
            source_field_id=row.field_id,
        )
        return "updated"

    gateway.create_field(
        label=row.display_name,
        field_type=field_type,
        required=False,
        source_field_id=row.field_id,
    )
    return "created"
