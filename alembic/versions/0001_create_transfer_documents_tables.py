"""create transfer documents tables

Revision ID: 0001
Revises:
Create Date: 2026-10-19 12:00:00.000000

This migration:
1. Creates the issued_documents table (document record store)
2. Creates the transfer_requests table
3. Creates the notifications table

short_id and reference carry unique indexes; the application retries on
collision before inserting.
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    """Create the three tables and their indexes."""
    op.create_table(
        "issued_documents",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("short_id", sa.String(length=8), nullable=False),
        # Canonical student mapping covered by the digest
        sa.Column("student", sa.JSON(), nullable=False),
        sa.Column("issue_date", sa.Date(), nullable=False),
        sa.Column("origin_school", sa.String(length=200), nullable=False),
        sa.Column("origin_city", sa.String(length=100), nullable=False),
        sa.Column(
            "academic_track",
            sa.Enum("PRIMARY", "SECONDARY", name="academic_track"),
            nullable=False,
        ),
        sa.Column("digest", sa.String(length=64), nullable=False),
        sa.Column("issued_by", sa.String(length=100), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_issued_documents_short_id", "issued_documents", ["short_id"], unique=True
    )
    op.create_index(
        "ix_issued_documents_origin_school", "issued_documents", ["origin_school"]
    )

    op.create_table(
        "transfer_requests",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("reference", sa.String(length=8), nullable=False),
        sa.Column("origin_school", sa.String(length=200), nullable=False),
        sa.Column("destination_school", sa.String(length=200), nullable=False),
        sa.Column("requester_name", sa.String(length=200), nullable=False),
        sa.Column("class_name", sa.String(length=20), nullable=False),
        sa.Column("grade", sa.String(length=20), nullable=False),
        sa.Column("national_id", sa.String(length=30), nullable=False),
        sa.Column("reason", sa.Text(), nullable=False),
        sa.Column("request_date", sa.Date(), nullable=False),
        sa.Column(
            "status",
            sa.Enum("PENDING", "APPROVED", "REJECTED", name="transfer_request_status"),
            nullable=False,
        ),
        sa.Column("requested_by", sa.String(length=100), nullable=False),
        sa.Column("decided_by", sa.String(length=100), nullable=True),
        sa.Column("decided_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("decision_reason", sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_transfer_requests_reference", "transfer_requests", ["reference"], unique=True
    )
    op.create_index(
        "ix_transfer_requests_origin_school", "transfer_requests", ["origin_school"]
    )
    op.create_index(
        "ix_transfer_requests_requested_by", "transfer_requests", ["requested_by"]
    )
    op.create_index("ix_transfer_requests_status", "transfer_requests", ["status"])

    op.create_table(
        "notifications",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column(
            "notification_type",
            sa.Enum("REQUEST", "ISSUANCE", "APPROVAL", name="notification_type"),
            nullable=False,
        ),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("recipient", sa.String(length=200), nullable=False),
        sa.Column("sender", sa.String(length=200), nullable=False),
        sa.Column("document_short_id", sa.String(length=8), nullable=True),
        sa.Column("qr_payload", sa.String(length=100), nullable=True),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_notifications_recipient", "notifications", ["recipient"])


def downgrade() -> None:
    """Drop the tables (and enum types on PostgreSQL)."""
    op.drop_index("ix_notifications_recipient", table_name="notifications")
    op.drop_table("notifications")

    op.drop_index("ix_transfer_requests_status", table_name="transfer_requests")
    op.drop_index("ix_transfer_requests_requested_by", table_name="transfer_requests")
    op.drop_index("ix_transfer_requests_origin_school", table_name="transfer_requests")
    op.drop_index("ix_transfer_requests_reference", table_name="transfer_requests")
    op.drop_table("transfer_requests")

    op.drop_index("ix_issued_documents_origin_school", table_name="issued_documents")
    op.drop_index("ix_issued_documents_short_id", table_name="issued_documents")
    op.drop_table("issued_documents")

    if op.get_bind().dialect.name == "postgresql":
        op.execute("DROP TYPE IF EXISTS notification_type")
        op.execute("DROP TYPE IF EXISTS transfer_request_status")
        op.execute("DROP TYPE IF EXISTS academic_track")
