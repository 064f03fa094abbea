"""System action log — system_logs and log_retention_policy.

Revision ID: 001
Revises: None
Create Date: 2026-10-17
"""
from __future__ import annotations

from typing import Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, tuple[str, ...], None] = None
depends_on: Union[str, tuple[str, ...], None] = None


def upgrade() -> None:
    # ── Append-only action trail ───────────────────────────────────────

    op.create_table(
        "system_logs",
        sa.Column("user_id", sa.String(100), nullable=False, comment="User ID or 'system'"),
        sa.Column("user_email", sa.String(255), nullable=False),
        sa.Column("user_name", sa.String(255), nullable=False, comment="Snapshot at time of action"),
        sa.Column("user_role", sa.String(50), nullable=False, comment="Role at time of action"),
        sa.Column("action_type", sa.String(20), nullable=False),
        sa.Column("resource_type", sa.String(50), nullable=False),
        sa.Column("resource_id", sa.String(100)),
        sa.Column("resource_name", sa.String(255)),
        sa.Column("http_method", sa.String(10), nullable=False),
        sa.Column("endpoint", sa.String(500), nullable=False),
        sa.Column("workflow_name", sa.String(200)),
        sa.Column("node_name", sa.String(200)),
        sa.Column("request_size", sa.Integer(), comment="Payload size in bytes"),
        sa.Column("status_code", sa.Integer(), nullable=False),
        sa.Column("success", sa.Boolean(), nullable=False),
        sa.Column("error_message", sa.Text()),
        sa.Column("execution_time_ms", sa.Integer()),
        sa.Column("ip_address", sa.String(64), nullable=False),
        sa.Column("user_agent", sa.String(500)),
        sa.Column("session_id", sa.String(100)),
        sa.Column("affected_users_count", sa.Integer(), nullable=False),
        sa.Column("changes_summary", postgresql.JSONB(astext_type=sa.Text())),
        sa.Column("compliance_flags", postgresql.JSONB(astext_type=sa.Text())),
        sa.Column("risk_level", sa.String(10), nullable=False),
        sa.Column("id", postgresql.UUID(as_uuid=True), server_default=sa.text("gen_random_uuid()"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_system_logs_user_id_created", "system_logs", ["user_id", "created_at"])
    op.create_index("idx_system_logs_resource_type_created", "system_logs", ["resource_type", "created_at"])
    op.create_index("idx_system_logs_action_type_created", "system_logs", ["action_type", "created_at"])
    op.create_index("idx_system_logs_created_at", "system_logs", ["created_at"])
    op.create_index("idx_system_logs_risk_level", "system_logs", ["risk_level", "created_at"])
    op.create_index("idx_system_logs_endpoint_method", "system_logs", ["endpoint", "http_method", "created_at"])
    op.create_index("idx_system_logs_success_created", "system_logs", ["success", "created_at"])

    # ── Retention policy (singleton) ───────────────────────────────────

    op.create_table(
        "log_retention_policy",
        sa.Column("retention_days", sa.Integer(), nullable=False),
        sa.Column("archive_days", sa.Integer(), nullable=False, comment="Entries older than this are deleted"),
        sa.Column("last_cleanup", sa.DateTime(timezone=True)),
        sa.Column("id", postgresql.UUID(as_uuid=True), server_default=sa.text("gen_random_uuid()"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )


def downgrade() -> None:
    op.drop_table("log_retention_policy")
    op.drop_index("idx_system_logs_success_created", table_name="system_logs")
    op.drop_index("idx_system_logs_endpoint_method", table_name="system_logs")
    op.drop_index("idx_system_logs_risk_level", table_name="system_logs")
    op.drop_index("idx_system_logs_created_at", table_name="system_logs")
    op.drop_index("idx_system_logs_action_type_created", table_name="system_logs")
    op.drop_index("idx_system_logs_resource_type_created", table_name="system_logs")
    op.drop_index("idx_system_logs_user_id_created", table_name="system_logs")
    op.drop_table("system_logs")
