"""Ticket and comment models."""

from __future__ import annotations

import datetime as dt
from uuid import UUID, uuid4

from sqlalchemy import Boolean, DateTime, Enum, ForeignKey, Integer, Sequence, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base
from app.models.enums import CommentChannel, TicketChannel, TicketPriority, TicketStatus


def utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


TICKET_NUMBER_SEQUENCE = "tickets_ticket_number_seq"


class Ticket(Base):
    __tablename__ = "tickets"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    # Live tickets draw from the sequence; imported tickets keep their Zendesk id here.
    ticket_number: Mapped[int] = mapped_column(
        Integer,
        Sequence(TICKET_NUMBER_SEQUENCE),
        unique=True,
        index=True,
        nullable=False,
    )
    subject: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[TicketStatus] = mapped_column(
        Enum(TicketStatus, name="ticket_status", values_callable=lambda x: [e.value for e in x]),
        default=TicketStatus.new,
        nullable=False,
    )
    priority: Mapped[TicketPriority] = mapped_column(
        Enum(TicketPriority, name="ticket_priority", values_callable=lambda x: [e.value for e in x]),
        default=TicketPriority.normal,
        nullable=False,
    )
    channel: Mapped[TicketChannel] = mapped_column(
        Enum(TicketChannel, name="ticket_channel", values_callable=lambda x: [e.value for e in x]),
        default=TicketChannel.web,
        nullable=False,
    )
    requester_id: Mapped[UUID] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    assignee_id: Mapped[UUID | None] = mapped_column(ForeignKey("users.id"), nullable=True, index=True)
    external_source: Mapped[str | None] = mapped_column(String(32), nullable=True, index=True)
    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    solved_at: Mapped[dt.datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    comments: Mapped[list[TicketComment]] = relationship(
        "TicketComment",
        back_populates="ticket",
        cascade="all, delete-orphan",
        order_by="TicketComment.created_at",
    )


class TicketComment(Base):
    __tablename__ = "ticket_comments"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    ticket_id: Mapped[UUID] = mapped_column(ForeignKey("tickets.id", ondelete="CASCADE"), index=True)
    author_id: Mapped[UUID] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    body: Mapped[str] = mapped_column(Text, nullable=False)
    body_plain: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_internal: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_system: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    channel: Mapped[CommentChannel] = mapped_column(
        Enum(CommentChannel, name="comment_channel", values_callable=lambda x: [e.value for e in x]),
        default=CommentChannel.web,
        nullable=False,
    )
    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    ticket: Mapped[Ticket] = relationship("Ticket", back_populates="comments")
