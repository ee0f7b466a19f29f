"""initial_schema

Revision ID: 0001
Revises:
Create Date: 2026-10-18

Creates the tables for the event request workflow:
users, events, event_requests, request_status_history,
request_decision_history, system_settings.
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

REQUEST_STATUSES = (
    "pending_review", "review_accepted", "review_rejected", "review_rescheduled",
    "creator_confirmed", "creator_declined", "completed", "rejected", "cancelled", "expired",
)


def upgrade() -> None:
    # --- users ---
    op.create_table(
        "users",
        sa.Column("user_id", sa.String(36), primary_key=True),
        sa.Column("display_name", sa.String(100), nullable=False),
        sa.Column("role_label", sa.String(50), nullable=False, server_default=""),
        sa.Column("authority", sa.Integer, nullable=False, server_default="20"),
        sa.Column("capabilities", sa.JSON, nullable=False),
        sa.Column("coverage_location_ids", sa.JSON, nullable=False),
        sa.Column("organization_id", sa.String(36), nullable=True),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime, server_default=sa.func.now()),
    )
    op.create_index("ix_users_organization_id", "users", ["organization_id"])

    # --- events ---
    op.create_table(
        "events",
        sa.Column("event_id", sa.String(36), primary_key=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("category", sa.Enum("blood_drive", "training", "advocacy", name="eventcategory"), nullable=False),
        sa.Column("location_id", sa.String(36), nullable=True),
        sa.Column("organization_id", sa.String(36), nullable=True),
        sa.Column("coordinator_id", sa.String(36), nullable=True),
        sa.Column("start_date", sa.DateTime, nullable=False),
        sa.Column("end_date", sa.DateTime, nullable=False),
        sa.Column("target_donation", sa.Integer, nullable=True),
        sa.Column("staff", sa.JSON, nullable=False),
        sa.Column(
            "status",
            sa.Enum("pending", "completed", "rejected", "cancelled", name="eventstatus"),
            nullable=False,
            server_default="pending",
        ),
        sa.Column("created_at", sa.DateTime, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime, server_default=sa.func.now()),
    )
    op.create_index("ix_events_location_id", "events", ["location_id"])
    op.create_index("ix_events_coordinator_id", "events", ["coordinator_id"])
    op.create_index("ix_events_start_date", "events", ["start_date"])

    # --- event_requests ---
    op.create_table(
        "event_requests",
        sa.Column("request_id", sa.String(36), primary_key=True),
        sa.Column("event_id", sa.String(36), sa.ForeignKey("events.event_id"), nullable=False, unique=True),
        sa.Column("request_type", sa.String(50), nullable=False, server_default="eventRequest"),
        sa.Column("status", sa.Enum(*REQUEST_STATUSES, name="requeststatus"), nullable=False),
        sa.Column("requester_id", sa.String(36), nullable=False),
        sa.Column("requester", sa.JSON, nullable=False),
        sa.Column("reviewer_id", sa.String(36), nullable=True),
        sa.Column("reviewer", sa.JSON, nullable=True),
        sa.Column("coordinator_id", sa.String(36), nullable=True),
        sa.Column("location_id", sa.String(36), nullable=True),
        sa.Column("organization_id", sa.String(36), nullable=True),
        sa.Column("category", sa.String(30), nullable=False),
        sa.Column("reschedule_proposal", sa.JSON, nullable=True),
        sa.Column("creator_confirmation", sa.JSON, nullable=True),
        sa.Column("final_resolution", sa.JSON, nullable=True),
        sa.Column("decision_summary", sa.Text, nullable=True),
        sa.Column("revision_number", sa.Integer, nullable=False, server_default="1"),
        sa.Column("revision_supersedes", sa.JSON, nullable=False),
        sa.Column("expires_at", sa.DateTime, nullable=True),
        sa.Column("confirmation_due_at", sa.DateTime, nullable=True),
        sa.Column("confirmation_reminded_at", sa.DateTime, nullable=True),
        sa.Column("version", sa.Integer, nullable=False),
        sa.Column("created_at", sa.DateTime, nullable=False),
        sa.Column("updated_at", sa.DateTime, nullable=False),
    )
    op.create_index("ix_event_requests_status", "event_requests", ["status"])
    op.create_index("ix_event_requests_requester_id", "event_requests", ["requester_id"])
    op.create_index("ix_event_requests_reviewer_id", "event_requests", ["reviewer_id"])
    op.create_index("ix_event_requests_coordinator_id", "event_requests", ["coordinator_id"])
    op.create_index("ix_event_requests_expires_at", "event_requests", ["expires_at"])

    # --- request_status_history ---
    op.create_table(
        "request_status_history",
        sa.Column("entry_id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("request_id", sa.String(36), sa.ForeignKey("event_requests.request_id"), nullable=False),
        sa.Column("status", sa.Enum(*REQUEST_STATUSES, name="requeststatus", create_type=False), nullable=False),
        sa.Column("actor", sa.JSON, nullable=False),
        sa.Column("note", sa.Text, nullable=True),
        sa.Column("changed_at", sa.DateTime, nullable=False),
    )
    op.create_index("ix_request_status_history_request_id", "request_status_history", ["request_id"])

    # --- request_decision_history ---
    op.create_table(
        "request_decision_history",
        sa.Column("entry_id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("request_id", sa.String(36), sa.ForeignKey("event_requests.request_id"), nullable=False),
        sa.Column("decision_type", sa.String(30), nullable=False),
        sa.Column("actor", sa.JSON, nullable=False),
        sa.Column("actor_authority", sa.Integer, nullable=False),
        sa.Column("requester_authority", sa.Integer, nullable=False),
        sa.Column("permission_used", sa.String(50), nullable=True),
        sa.Column("notes", sa.Text, nullable=True),
        sa.Column(
            "result_status",
            sa.Enum(*REQUEST_STATUSES, name="requeststatus", create_type=False),
            nullable=False,
        ),
        sa.Column("payload", sa.JSON, nullable=True),
        sa.Column("decided_at", sa.DateTime, nullable=False),
    )
    op.create_index("ix_request_decision_history_request_id", "request_decision_history", ["request_id"])

    # --- system_settings ---
    op.create_table(
        "system_settings",
        sa.Column("settings_id", sa.Integer, primary_key=True),
        sa.Column("values", sa.JSON, nullable=False),
        sa.Column("updated_by", sa.String(36), nullable=True),
        sa.Column("updated_at", sa.DateTime, server_default=sa.func.now()),
    )


def downgrade() -> None:
    op.drop_table("system_settings")
    op.drop_table("request_decision_history")
    op.drop_table("request_status_history")
    op.drop_table("event_requests")
    op.drop_table("events")
    op.drop_table("users")
    sa.Enum(name="requeststatus").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="eventstatus").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="eventcategory").drop(op.get_bind(), checkfirst=True)
