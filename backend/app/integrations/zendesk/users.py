"""User reconciliation for ticket imports, and the standalone user-export upsert."""

from __future__ import annotations

import logging
from typing import Any, Iterable
from uuid import UUID

from app.integrations.zendesk.gateway import ImportGateway
from app.integrations.zendesk.mapper import map_role, split_name, synthetic_external_id, timezone_label
from app.integrations.zendesk.records import ReconciliationResult, SourceTicket, SourceUser, SourceUserRef
from app.models.enums import UserRole
from app.models.user import User

logger = logging.getLogger(__name__)


def collect_user_refs(tickets: Iterable[SourceTicket]) -> dict[int, SourceUserRef]:
    refs: dict[int, SourceUserRef] = {}
    for ticket in tickets:
        for ref in ticket.user_refs():
            known = refs.get(ref.id)
            refs[ref.id] = ref if known is None else known.merged_with(ref)
    return refs


def infer_agent_ids(tickets: Iterable[SourceTicket], *, include_submitters: bool = False) -> set[int]:
    """Assignees are agents. Optionally, so is anyone submitting a ticket on someone else's behalf."""
    agents: set[int] = set()
    for ticket in tickets:
        assignee_id = ticket.assignee_source_id
        if assignee_id is not None:
            agents.add(assignee_id)
        if include_submitters:
            submitter_id = ticket.submitter_source_id
            if submitter_id is not None and submitter_id != ticket.requester_source_id:
                agents.add(submitter_id)
    return agents


def _create_referenced_user(gateway: ImportGateway, ref: SourceUserRef, *, is_agent: bool) -> User:
    first_name, last_name = split_name(ref.name)
    return gateway.create_user(
        external_id=synthetic_external_id(ref.id),
        email=ref.email,
        first_name=first_name,
        last_name=last_name,
        role=UserRole.agent if is_agent else UserRole.user,
    )


def reconcile_users(
    gateway: ImportGateway,
    tickets: Iterable[SourceTicket],
    *,
    fallback_user_id: UUID,
    include_submitters: bool = False,
) -> ReconciliationResult:
    tickets = list(tickets)
    agent_ids = infer_agent_ids(tickets, include_submitters=include_submitters)

    mapping: dict[int, UUID] = {}
    fallbacks: set[int] = set()
    created = 0
    for source_id, ref in collect_user_refs(tickets).items():
        if ref.email:
            existing = gateway.find_user_by_email(ref.email)
            if existing is not None:
                mapping[source_id] = existing.id
                continue

        imported = gateway.find_user_by_external_id(synthetic_external_id(source_id))
        if imported is not None:
            mapping[source_id] = imported.id
            continue

        if ref.email:
            try:
                user = _create_referenced_user(gateway, ref, is_agent=source_id in agent_ids)
            except Exception as exc:  # noqa: BLE001
                logger.warning("Failed to create user for Zendesk id %s, using fallback: %s", source_id, exc)
            else:
                mapping[source_id] = user.id
                created += 1
                continue

        # Anonymous author: attribute to the importing administrator.
        mapping[source_id] = fallback_user_id
        fallbacks.add(source_id)

    if fallbacks:
        logger.info("%d Zendesk user ids fell back to the importing administrator", len(fallbacks))
    return ReconciliationResult.build(mapping, created=created, fallbacks=fallbacks)


def _fill_missing(user: User, candidate: dict[str, Any]) -> dict[str, Any]:
    return {
        key: value
        for key, value in candidate.items()
        if value is not None and not getattr(user, key, None)
    }


def upsert_user(gateway: ImportGateway, source: SourceUser) -> str:
    """Create the user, or fill in blank profile fields on an existing one. Never overwrites."""
    if not source.email:
        raise ValueError("No email address")

    first_name, last_name = split_name(source.name)
    profile = {
        "first_name": first_name,
        "last_name": last_name,
        "timezone": timezone_label(source.iana_time_zone, source.time_zone),
        "last_seen_at": source.last_login_at,
    }

    existing = gateway.find_user_by_email(source.email)
    if existing is None:
        existing = gateway.find_user_by_external_id(synthetic_external_id(source.id))
    if existing is not None:
        missing = _fill_missing(existing, profile)
        if missing:
            gateway.update_user(existing, **missing)
        return "updated"

    values: dict[str, Any] = {
        "external_id": synthetic_external_id(source.id),
        "email": source.email,
        "role": map_role(source.role),
        **profile,
    }
    if source.created_at is not None:
        values["created_at"] = source.created_at
    gateway.create_user(**values)
    return "created"
