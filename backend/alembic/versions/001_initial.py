"""Initial schema: users, donation_requests, fundings, notifications.

notifications.created_at is indexed for the 30-day retention purge.
"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(128), nullable=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("avatar", sa.String(512), nullable=True),
        sa.Column("blood_group", sa.String(8), nullable=True),
        sa.Column("district", sa.String(64), nullable=True),
        sa.Column("upazila", sa.String(64), nullable=True),
        sa.Column("role", sa.String(16), nullable=False, server_default="donor"),
        sa.Column("status", sa.String(16), nullable=False, server_default="active"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_blood_group", "users", ["blood_group"], unique=False)
    op.create_index("ix_users_district", "users", ["district"], unique=False)

    op.create_table(
        "donation_requests",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("requester_name", sa.String(128), nullable=True),
        sa.Column("requester_email", sa.String(255), nullable=False),
        sa.Column("recipient_name", sa.String(128), nullable=True),
        sa.Column("recipient_district", sa.String(64), nullable=True),
        sa.Column("recipient_upazila", sa.String(64), nullable=True),
        sa.Column("hospital_name", sa.String(255), nullable=True),
        sa.Column("full_address", sa.String(512), nullable=True),
        sa.Column("blood_group", sa.String(8), nullable=True),
        sa.Column("donation_date", sa.Date(), nullable=False),
        sa.Column("donation_time", sa.String(32), nullable=True),
        sa.Column("request_message", sa.Text(), nullable=True),
        sa.Column("donation_status", sa.String(16), nullable=False, server_default="pending"),
        sa.Column("donor_name", sa.String(128), nullable=True),
        sa.Column("donor_email", sa.String(255), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_donation_requests_requester_email", "donation_requests", ["requester_email"], unique=False)
    op.create_index("ix_donation_requests_donation_date", "donation_requests", ["donation_date"], unique=False)
    op.create_index("ix_donation_requests_donation_status", "donation_requests", ["donation_status"], unique=False)

    op.create_table(
        "fundings",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(128), nullable=True),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("transaction_id", sa.String(128), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_fundings_email", "fundings", ["email"], unique=False)

    op.create_table(
        "notifications",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("link", sa.String(512), nullable=True),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_notifications_email", "notifications", ["email"], unique=False)
    op.create_index("ix_notifications_created_at", "notifications", ["created_at"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_notifications_created_at", table_name="notifications")
    op.drop_index("ix_notifications_email", table_name="notifications")
    op.drop_table("notifications")
    op.drop_index("ix_fundings_email", table_name="fundings")
    op.drop_table("fundings")
    op.drop_index("ix_donation_requests_donation_status", table_name="donation_requests")
    op.drop_index("ix_donation_requests_donation_date", table_name="donation_requests")
    op.drop_index("ix_donation_requests_requester_email", table_name="donation_requests")
    op.drop_table("donation_requests")
    op.drop_index("ix_users_district", table_name="users")
    op.drop_index("ix_users_blood_group", table_name="users")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
