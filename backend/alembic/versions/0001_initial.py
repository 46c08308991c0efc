"""initial schema

Revision ID: 0001_initial
Revises: 
Create Date: 2026-10-18 09:30:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None

USER_ROLES = ("USER", "AGENT", "ADMIN")
TICKET_STATUSES = ("NEW", "OPEN", "PENDING", "ON_HOLD", "SOLVED", "CLOSED")
TICKET_PRIORITIES = ("LOW", "NORMAL", "HIGH", "URGENT")
TICKET_CHANNELS = ("EMAIL", "WEB", "API", "SLACK", "INTERNAL")
COMMENT_CHANNELS = ("WEB", "EMAIL", "SLACK", "API", "SYSTEM")


def upgrade() -> None:
    bind = op.get_bind()
    for values, name in (
        (USER_ROLES, "user_role"),
        (TICKET_STATUSES, "ticket_status"),
        (TICKET_PRIORITIES, "ticket_priority"),
        (TICKET_CHANNELS, "ticket_channel"),
        (COMMENT_CHANNELS, "comment_channel"),
    ):
        postgresql.ENUM(*values, name=name).create(bind, checkfirst=True)

    user_role_col = postgresql.ENUM(*USER_ROLES, name="user_role", create_type=False)
    ticket_status_col = postgresql.ENUM(*TICKET_STATUSES, name="ticket_status", create_type=False)
    ticket_priority_col = postgresql.ENUM(*TICKET_PRIORITIES, name="ticket_priority", create_type=False)
    ticket_channel_col = postgresql.ENUM(*TICKET_CHANNELS, name="ticket_channel", create_type=False)
    comment_channel_col = postgresql.ENUM(*COMMENT_CHANNELS, name="comment_channel", create_type=False)

    op.create_table(
        "users",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("external_id", sa.String(length=255), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("first_name", sa.String(length=255), nullable=True),
        sa.Column("last_name", sa.String(length=255), nullable=True),
        sa.Column("role", user_role_col, nullable=False),
        sa.Column("timezone", sa.String(length=64), nullable=True),
        sa.Column("last_seen_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index(op.f("ix_users_external_id"), "users", ["external_id"], unique=True)
    op.create_index(op.f("ix_users_email"), "users", ["email"], unique=True)

    op.execute(sa.schema.CreateSequence(sa.Sequence("tickets_ticket_number_seq")))
    op.create_table(
        "tickets",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column(
            "ticket_number",
            sa.Integer(),
            server_default=sa.text("nextval('tickets_ticket_number_seq')"),
            nullable=False,
        ),
        sa.Column("subject", sa.String(length=500), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("status", ticket_status_col, nullable=False),
        sa.Column("priority", ticket_priority_col, nullable=False),
        sa.Column("channel", ticket_channel_col, nullable=False),
        sa.Column("requester_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("assignee_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("external_source", sa.String(length=32), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("solved_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["requester_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["assignee_id"], ["users.id"]),
    )
    op.execute("ALTER SEQUENCE tickets_ticket_number_seq OWNED BY tickets.ticket_number")
    op.create_index(op.f("ix_tickets_ticket_number"), "tickets", ["ticket_number"], unique=True)
    op.create_index(op.f("ix_tickets_requester_id"), "tickets", ["requester_id"], unique=False)
    op.create_index(op.f("ix_tickets_assignee_id"), "tickets", ["assignee_id"], unique=False)
    op.create_index(op.f("ix_tickets_external_source"), "tickets", ["external_source"], unique=False)

    op.create_table(
        "ticket_comments",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("ticket_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("author_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("body", sa.Text(), nullable=False),
        sa.Column("body_plain", sa.Text(), nullable=True),
        sa.Column("is_internal", sa.Boolean(), nullable=False),
        sa.Column("is_system", sa.Boolean(), nullable=False),
        sa.Column("channel", comment_channel_col, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["ticket_id"], ["tickets.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["author_id"], ["users.id"]),
    )
    op.create_index(op.f("ix_ticket_comments_ticket_id"), "ticket_comments", ["ticket_id"], unique=False)
    op.create_index(op.f("ix_ticket_comments_author_id"), "ticket_comments", ["author_id"], unique=False)

    op.create_table(
        "form_field_library",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("label", sa.String(length=255), nullable=False),
        sa.Column("field_type", sa.String(length=50), nullable=False),
        sa.Column("required", sa.Boolean(), nullable=False),
        sa.Column("source_field_id", sa.BigInteger(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index(op.f("ix_form_field_library_label"), "form_field_library", ["label"], unique=False)
    op.create_index(op.f("ix_form_field_library_field_type"), "form_field_library", ["field_type"], unique=False)
    op.create_index(
        op.f("ix_form_field_library_source_field_id"), "form_field_library", ["source_field_id"], unique=True
    )

    op.create_table(
        "form_responses",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("ticket_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("field_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("value", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["ticket_id"], ["tickets.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["field_id"], ["form_field_library.id"], ondelete="RESTRICT"),
    )
    op.create_index(op.f("ix_form_responses_ticket_id"), "form_responses", ["ticket_id"], unique=False)
    op.create_index(op.f("ix_form_responses_field_id"), "form_responses", ["field_id"], unique=False)


def downgrade() -> None:
    op.drop_index(op.f("ix_form_responses_field_id"), table_name="form_responses")
    op.drop_index(op.f("ix_form_responses_ticket_id"), table_name="form_responses")
    op.drop_table("form_responses")
    op.drop_index(op.f("ix_form_field_library_source_field_id"), table_name="form_field_library")
    op.drop_index(op.f("ix_form_field_library_field_type"), table_name="form_field_library")
    op.drop_index(op.f("ix_form_field_library_label"), table_name="form_field_library")
    op.drop_table("form_field_library")
    op.drop_index(op.f("ix_ticket_comments_author_id"), table_name="ticket_comments")
    op.drop_index(op.f("ix_ticket_comments_ticket_id"), table_name="ticket_comments")
    op.drop_table("ticket_comments")
    op.drop_index(op.f("ix_tickets_external_source"), table_name="tickets")
    op.drop_index(op.f("ix_tickets_assignee_id"), table_name="tickets")
    op.drop_index(op.f("ix_tickets_requester_id"), table_name="tickets")
    op.drop_index(op.f("ix_tickets_ticket_number"), table_name="tickets")
    op.drop_table("tickets")
    op.drop_index(op.f("ix_users_email"), table_name="users")
    op.drop_index(op.f("ix_users_external_id"), table_name="users")
    op.drop_table("users")

    bind = op.get_bind()
    sa.Enum(*COMMENT_CHANNELS, name="comment_channel").drop(bind, checkfirst=True)
    sa.Enum(*TICKET_CHANNELS, name="ticket_channel").drop(bind, checkfirst=True)
    sa.Enum(*TICKET_PRIORITIES, name="ticket_priority").drop(bind, checkfirst=True)
    sa.Enum(*TICKET_STATUSES, name="ticket_status").drop(bind, checkfirst=True)
    sa.Enum(*USER_ROLES, name="user_role").drop(bind, checkfirst=True)
