"""Storage gateway used by the Zendesk import pipeline.

The reconcilers and the ticket importer only need create / find-by-key operations per
entity, so they talk to an ``ImportGateway`` instead of a ``Session``. Production code
uses ``SqlAlchemyImportGateway``; tests substitute an in-memory implementation.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol

from sqlalchemy import func, text
from sqlalchemy.orm import Session

from app.models.form_field import FormFieldDefinition, FormResponse
from app.models.ticket import TICKET_NUMBER_SEQUENCE, Ticket, TicketComment
from app.models.user import User

logger = logging.getLogger(__name__)


class ImportGateway(Protocol):
    def find_user_by_email(self, email: str) -> User | None: ...

    def find_user_by_external_id(self, external_id: str) -> User | None: ...

    def create_user(self, **values: Any) -> User: ...

    def update_user(self, user: User, **values: Any) -> User: ...

    def find_ticket_by_number(self, ticket_number: int) -> Ticket | None: ...

    def create_ticket(self, **values: Any) -> Ticket: ...

    def create_comment(self, **values: Any) -> TicketComment: ...

    def find_field_by_source_id(self, source_field_id: int) -> FormFieldDefinition | None: ...

    def find_field_by_label(self, label: str) -> FormFieldDefinition | None: ...

    def create_field(self, **values: Any) -> FormFieldDefinition: ...

    def update_field(self, field: FormFieldDefinition, **values: Any) -> FormFieldDefinition: ...

    def create_form_response(self, **values: Any) -> FormResponse: ...

    def reset_ticket_sequence(self) -> int: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...


class SqlAlchemyImportGateway:
    def __init__(self, db: Session) -> None:
        self.db = db

    def find_user_by_email(self, email: str) -> User | None:
        return self.db.query(User).filter(User.email == email).first()

    def find_user_by_external_id(self, external_id: str) -> User | None:
        return self.db.query(User).filter(User.external_id == external_id).first()

    def create_user(self, **values: Any) -> User:
        user = User(**values)
        # Savepoint: a rejected user (e.g. duplicate email) must not poison the session.
        with self.db.begin_nested():
            self.db.add(user)
        return user

    def update_user(self, user: User, **values: Any) -> User:
        for key, value in values.items():
            setattr(user, key, value)
        self.db.add(user)
        self.db.flush()
        return user

    def find_ticket_by_number(self, ticket_number: int) -> Ticket | None:
        return self.db.query(Ticket).filter(Ticket.ticket_number == ticket_number).first()

    def create_ticket(self, **values: Any) -> Ticket:
        ticket = Ticket(**values)
        self.db.add(ticket)
        self.db.flush()
        return ticket

    def create_comment(self, **values: Any) -> TicketComment:
        comment = TicketComment(**values)
        self.db.add(comment)
        self.db.flush()
        return comment

    def find_field_by_source_id(self, source_field_id: int) -> FormFieldDefinition | None:
        return (
            self.db.query(FormFieldDefinition)
            .filter(FormFieldDefinition.source_field_id == source_field_id)
            .first()
        )

    def find_field_by_label(self, label: str) -> FormFieldDefinition | None:
        return self.db.query(FormFieldDefinition).filter(FormFieldDefinition.label == label).first()

    def create_field(self, **values: Any) -> FormFieldDefinition:
        field = FormFieldDefinition(**values)
        self.db.add(field)
        self.db.flush()
        return field

    def update_field(self, field: FormFieldDefinition, **values: Any) -> FormFieldDefinition:
        for key, value in values.items():
            setattr(field, key, value)
        self.db.add(field)
        self.db.flush()
        return field

    def create_form_response(self, **values: Any) -> FormResponse:
        response = FormResponse(**values)
        with self.db.begin_nested():
            self.db.add(response)
        return response

    def reset_ticket_sequence(self) -> int:
        highest = self.db.query(func.max(Ticket.ticket_number)).scalar() or 0
        next_number = int(highest) + 1
        if self.db.get_bind().dialect.name == "postgresql":
            self.db.execute(
                text("SELECT setval(:sequence, :value, false)"),
                {"sequence": TICKET_NUMBER_SEQUENCE, "value": next_number},
            )
        else:
            logger.info("Ticket number sequence realignment skipped: dialect has no sequences")
        return next_number

    def commit(self) -> None:
        self.db.commit()

    def rollback(self) -> None:
        self.db.rollback()


def ticket_exists(gateway: ImportGateway, ticket_number: int) -> bool:
    return gateway.find_ticket_by_number(ticket_number) is not None