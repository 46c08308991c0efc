"""Shared enum values used by the database models and schemas."""

from __future__ import annotations

import enum


class UserRole(str, enum.Enum):
    user = "USER"
    agent = "AGENT"
    admin = "ADMIN"


class TicketStatus(str, enum.Enum):
    new = "NEW"
    open = "OPEN"
    pending = "PENDING"
    on_hold = "ON_HOLD"
    solved = "SOLVED"
    closed = "CLOSED"


class TicketPriority(str, enum.Enum):
    low = "LOW"
    normal = "NORMAL"
    high = "HIGH"
    urgent = "URGENT"


class TicketChannel(str, enum.Enum):
    email = "EMAIL"
    web = "WEB"
    api = "API"
    slack = "SLACK"
    internal = "INTERNAL"


class CommentChannel(str, enum.Enum):
    web = "WEB"
    email = "EMAIL"
    slack = "SLACK"
    api = "API"
    system = "SYSTEM"


class FieldType(str, enum.Enum):
    text = "text"
    textarea = "textarea"
    select = "select"
    checkbox = "checkbox"
