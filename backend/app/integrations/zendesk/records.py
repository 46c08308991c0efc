"""Typed records read from Zendesk export files, plus reconciliation results."""

from __future__ import annotations

import datetime as dt
import enum
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, ClassVar, Iterator, Mapping
from uuid import UUID


class ExportKind(str, enum.Enum):
    tickets = "tickets"
    users = "users"
    fields = "fields"


def as_source_id(value: Any) -> int | None:
    """Zendesk ids are positive integers, sometimes serialized as strings."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value > 0 else None
    if isinstance(value, str) and value.strip().isdigit():
        parsed = int(value.strip())
        return parsed if parsed > 0 else None
    return None


@dataclass(frozen=True)
class SourceUserRef:
    """A user as referenced from inside a ticket: sometimes a full profile, often just an id."""

    id: int
    email: str | None = None
    name: str | None = None

    def merged_with(self, other: SourceUserRef) -> SourceUserRef:
        return SourceUserRef(
            id=self.id,
            email=self.email or other.email,
            name=self.name or other.name,
        )


@dataclass(frozen=True)
class SourceComment:
    id: int | None
    author_id: int | None
    body: str
    body_plain: str
    public: bool | None
    created_at: dt.datetime | None

    @property
    def is_internal(self) -> bool:
        return self.public is False


@dataclass(frozen=True)
class SourceCustomFieldValue:
    field_id: int
    value: Any


@dataclass(frozen=True)
class SourceTicket:
    kind: ClassVar[ExportKind] = ExportKind.tickets

    id: int
    status: str
    subject: str | None = None
    description: str | None = None
    priority: str | None = None
    requester: SourceUserRef | None = None
    requester_id: int | None = None
    assignee: SourceUserRef | None = None
    assignee_id: int | None = None
    submitter: SourceUserRef | None = None
    submitter_id: int | None = None
    # Kept raw: a malformed comment must fail its own ticket, not the whole file.
    comments: tuple[Any, ...] = ()
    custom_fields: tuple[SourceCustomFieldValue, ...] = ()
    created_at: dt.datetime | None = None
    updated_at: dt.datetime | None = None
    solved_at: dt.datetime | None = None

    @property
    def requester_source_id(self) -> int | None:
        return self.requester.id if self.requester else self.requester_id

    @property
    def assignee_source_id(self) -> int | None:
        return self.assignee.id if self.assignee else self.assignee_id

    @property
    def submitter_source_id(self) -> int | None:
        return self.submitter.id if self.submitter else self.submitter_id

    def user_refs(self) -> Iterator[SourceUserRef]:
        """Every user this ticket points at, comment authors included."""
        for embedded, bare_id in (
            (self.requester, self.requester_id),
            (self.assignee, self.assignee_id),
            (self.submitter, self.submitter_id),
        ):
            if embedded is not None:
                yield embedded
            elif bare_id is not None:
                yield SourceUserRef(id=bare_id)
        for comment in self.comments:
            if not isinstance(comment, dict):
                continue
            author_id = as_source_id(comment.get("author_id"))
            if author_id is not None:
                yield SourceUserRef(id=author_id)


@dataclass(frozen=True)
class SourceUser:
    kind: ClassVar[ExportKind] = ExportKind.users

    id: int
    email: str | None
    name: str | None = None
    role: str | None = None
    created_at: dt.datetime | None = None
    last_login_at: dt.datetime | None = None
    time_zone: str | None = None
    iana_time_zone: str | None = None


@dataclass(frozen=True)
class SourceFieldRow:
    kind: ClassVar[ExportKind] = ExportKind.fields

    display_name: str
    field_type: str
    field_id: int
    line_number: int


SourceRecord = SourceTicket | SourceUser | SourceFieldRow


@dataclass(frozen=True)
class ReconciliationResult:
    """Source id -> canonical id, plus how many canonical rows had to be created.

    ``fallbacks`` holds the source ids that could not be matched to a real identity
    and were pointed at the fallback record instead.
    """

    mapping: Mapping[int, UUID] = field(default_factory=lambda: MappingProxyType({}))
    created: int = 0
    fallbacks: frozenset[int] = frozenset()

    @classmethod
    def build(
        cls,
        mapping: Mapping[int, UUID],
        *,
        created: int = 0,
        fallbacks: set[int] | frozenset[int] = frozenset(),
    ) -> ReconciliationResult:
        return cls(mapping=MappingProxyType(dict(mapping)), created=created, fallbacks=frozenset(fallbacks))

    def get(self, source_id: int | None) -> UUID | None:
        if source_id is None:
            return None
        return self.mapping.get(source_id)

    def get_matched(self, source_id: int | None) -> UUID | None:
        """Like ``get`` but ignores ids that only resolved to the fallback."""
        if source_id is None or source_id in self.fallbacks:
            return None
        return self.mapping.get(source_id)
