from __future__ import annotations

import copy
import sys
from pathlib import Path
from types import SimpleNamespace
from typing import Any, Callable, Iterator
from uuid import UUID, uuid4

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool


BASE_DIR = Path(__file__).resolve().parents[1]
if str(BASE_DIR) not in sys.path:
    sys.path.insert(0, str(BASE_DIR))

from app.db.base import Base  # noqa: E402
from app.models.enums import UserRole  # noqa: E402
from app.models.user import User  # noqa: E402
import app.models  # noqa: E402,F401


class InMemoryImportGateway:
    """Dict-backed stand-in for SqlAlchemyImportGateway.

    Enforces the unique keys and foreign keys the database would, and keeps a
    snapshot at every commit so ``rollback`` behaves like a transaction.
    """

    def __init__(self) -> None:
        self.state: dict[str, dict[UUID, SimpleNamespace]] = {
            "users": {},
            "tickets": {},
            "comments": {},
            "fields": {},
            "responses": {},
        }
        self._committed = copy.deepcopy(self.state)
        self.commits = 0
        self.rollbacks = 0
        self.fail_form_response: Callable[[dict[str, Any]], bool] | None = None

    @property
    def users(self) -> list[SimpleNamespace]:
        return list(self.state["users"].values())

    @property
    def tickets(self) -> list[SimpleNamespace]:
        return list(self.state["tickets"].values())

    @property
    def comments(self) -> list[SimpleNamespace]:
        return list(self.state["comments"].values())

    @property
    def fields(self) -> list[SimpleNamespace]:
        return list(self.state["fields"].values())

    @property
    def responses(self) -> list[SimpleNamespace]:
        return list(self.state["responses"].values())

    def _find(self, table: str, **criteria: Any) -> SimpleNamespace | None:
        for row in self.state[table].values():
            if all(getattr(row, key) == value for key, value in criteria.items()):
                return row
        return None

    def _unique(self, table: str, key: str, value: Any, *, ignore: UUID | None = None) -> None:
        if value is None:
            return
        existing = self._find(table, **{key: value})
        if existing is not None and existing.id != ignore:
            raise ValueError(f"duplicate {table}.{key}: {value}")

    def _exists(self, table: str, row_id: UUID | None) -> None:
        if row_id not in self.state[table]:
            raise ValueError(f"{table} row {row_id} does not exist")

    def _insert(self, table: str, defaults: dict[str, Any], values: dict[str, Any]) -> SimpleNamespace:
        row = SimpleNamespace(id=uuid4(), **{**defaults, **values})
        self.state[table][row.id] = row
        return row

    def find_user_by_email(self, email: str) -> SimpleNamespace | None:
        return self._find("users", email=email)

    def find_user_by_external_id(self, external_id: str) -> SimpleNamespace | None:
        return self._find("users", external_id=external_id)

    def create_user(self, **values: Any) -> SimpleNamespace:
        self._unique("users", "email", values.get("email"))
        self._unique("users", "external_id", values["external_id"])
        defaults = {
            "email": None,
            "first_name": None,
            "last_name": None,
            "role": UserRole.user,
            "timezone": None,
            "last_seen_at": None,
            "created_at": None,
        }
        return self._insert("users", defaults, values)

    def update_user(self, user: SimpleNamespace, **values: Any) -> SimpleNamespace:
        for key, value in values.items():
            setattr(user, key, value)
        return user

    def find_ticket_by_number(self, ticket_number: int) -> SimpleNamespace | None:
        return self._find("tickets", ticket_number=ticket_number)

    def create_ticket(self, **values: Any) -> SimpleNamespace:
        self._unique("tickets", "ticket_number", values["ticket_number"])
        self._exists("users", values["requester_id"])
        if values.get("assignee_id") is not None:
            self._exists("users", values["assignee_id"])
        return self._insert("tickets", {"assignee_id": None, "created_at": None, "updated_at": None}, values)

    def create_comment(self, **values: Any) -> SimpleNamespace:
        self._exists("tickets", values["ticket_id"])
        self._exists("users", values["author_id"])
        return self._insert("comments", {"created_at": None}, values)

    def find_field_by_source_id(self, source_field_id: int) -> SimpleNamespace | None:
        return self._find("fields", source_field_id=source_field_id)

    def find_field_by_label(self, label: str) -> SimpleNamespace | None:
        return self._find("fields", label=label)

    def create_field(self, **values: Any) -> SimpleNamespace:
        self._unique("fields", "source_field_id", values.get("source_field_id"))
        return self._insert("fields", {"source_field_id": None, "required": False}, values)

    def update_field(self, field: SimpleNamespace, **values: Any) -> SimpleNamespace:
        if "source_field_id" in values:
            self._unique("fields", "source_field_id", values["source_field_id"], ignore=field.id)
        for key, value in values.items():
            setattr(field, key, value)
        return field

    def create_form_response(self, **values: Any) -> SimpleNamespace:
        if self.fail_form_response is not None and self.fail_form_response(values):
            raise RuntimeError("form response rejected")
        self._exists("tickets", values["ticket_id"])
        self._exists("fields", values["field_id"])
        return self._insert("responses", {}, values)

    def reset_ticket_sequence(self) -> int:
        return max((ticket.ticket_number for ticket in self.tickets), default=0) + 1

    def commit(self) -> None:
        self._committed = copy.deepcopy(self.state)
        self.commits += 1

    def rollback(self) -> None:
        self.state = copy.deepcopy(self._committed)
        self.rollbacks += 1


@pytest.fixture()
def gateway() -> InMemoryImportGateway:
    return InMemoryImportGateway()


@pytest.fixture()
def admin(gateway: InMemoryImportGateway) -> SimpleNamespace:
    user = gateway.create_user(
        external_id="idp|admin",
        email="admin@example.com",
        first_name="Ada",
        last_name="Admin",
        role=UserRole.admin,
    )
    gateway.commit()
    return user


@pytest.fixture()
def db_session() -> Iterator[Session]:
    """SQLite in-memory database with working SAVEPOINTs and foreign keys."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, _record) -> None:  # noqa: ANN001
        # Let SQLAlchemy emit BEGIN itself so SAVEPOINT works with pysqlite.
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(connection) -> None:  # noqa: ANN001
        connection.exec_driver_sql("BEGIN")

    Base.metadata.create_all(engine)
    session = sessionmaker(bind=engine, autocommit=False, autoflush=False)()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture()
def db_admin(db_session: Session) -> User:
    user = User(
        external_id="idp|admin",
        email="admin@example.com",
        first_name="Ada",
        last_name="Admin",
        role=UserRole.admin,
    )
    db_session.add(user)
    db_session.commit()
    return user
