"""Convenience imports for Alembic metadata discovery."""

from app.models.user import User
from app.models.ticket import Ticket, TicketComment
from app.models.form_field import FormFieldDefinition, FormResponse  # noqa: F401
