"""Initial schema for MortiScope

Revision ID: 20261018_000000
Revises: None
Create Date: 2026-10-18 00:00:00.000000

Creates every table of the MortiScope server:
- Accounts (users, user_sessions)
- Cases and their audit trail (cases, case_audit_logs)
- Images and detections (uploads, detections)
- Analysis outcome and exports (analysis_results, exports)

Revision format: YYYYMMDD_HHMMSS_description

"""

from typing import Sequence, Union

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "20261018_000000"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id(name: str = "id", *args, **kwargs) -> sa.Column:
    return sa.Column(name, sa.String(32), *args, **kwargs)


def upgrade() -> None:
    """Create all tables."""

    op.create_table(
        "users",
        _id(nullable=False),
        sa.Column("name", sa.String(100), nullable=True),
        sa.Column("email", sa.String(254), nullable=False),
        sa.Column("password_hash", sa.String(), nullable=True),
        sa.Column("professional_title", sa.String(100), nullable=True),
        sa.Column("institution", sa.String(150), nullable=True),
        sa.Column("location_region", sa.String(), nullable=True),
        sa.Column("location_province", sa.String(), nullable=True),
        sa.Column("location_city", sa.String(), nullable=True),
        sa.Column("location_barangay", sa.String(), nullable=True),
        sa.Column("profile_image_url", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_users_email", "email", unique=True),
    )

    op.create_table(
        "user_sessions",
        _id(nullable=False),
        _id("user_id", sa.ForeignKey("users.id"), nullable=False),
        sa.Column("session_token", sa.String(), nullable=False),
        sa.Column("browser_name", sa.String(), nullable=False),
        sa.Column("browser_version", sa.String(), nullable=False),
        sa.Column("os_name", sa.String(), nullable=False),
        sa.Column("os_version", sa.String(), nullable=False),
        sa.Column("device_type", sa.String(), nullable=True),
        sa.Column("device_vendor", sa.String(), nullable=True),
        sa.Column("device_model", sa.String(), nullable=True),
        sa.Column("user_agent", sa.String(), nullable=False),
        sa.Column("ip_address", sa.String(), nullable=False),
        sa.Column("country", sa.String(), nullable=True),
        sa.Column("region", sa.String(), nullable=True),
        sa.Column("city", sa.String(), nullable=True),
        sa.Column("timezone", sa.String(), nullable=True),
        sa.Column("is_current_session", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("last_active_at", sa.DateTime(), nullable=False),
        sa.Column("expires_at", sa.DateTime(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_user_sessions_user_id", "user_id"),
        sa.Index("ix_user_sessions_session_token", "session_token", unique=True),
    )

    op.create_table(
        "cases",
        _id(nullable=False),
        _id("user_id", sa.ForeignKey("users.id"), nullable=False),
        sa.Column("case_name", sa.String(256), nullable=False),
        sa.Column("status", sa.String(16), nullable=False, server_default="draft"),
        sa.Column("temperature_celsius", sa.Float(), nullable=False),
        sa.Column("location_region", sa.String(), nullable=False),
        sa.Column("location_province", sa.String(), nullable=False),
        sa.Column("location_city", sa.String(), nullable=False),
        sa.Column("location_barangay", sa.String(), nullable=False),
        sa.Column("case_date", sa.DateTime(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("recalculation_needed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "case_name", name="uq_cases_user_id_case_name"),
        sa.Index("ix_cases_user_id", "user_id"),
        sa.Index("ix_cases_status", "status"),
        sa.Index("ix_cases_created_at", "created_at"),
    )

    op.create_table(
        "case_audit_logs",
        _id(nullable=False),
        _id("case_id", sa.ForeignKey("cases.id"), nullable=False),
        _id("user_id", sa.ForeignKey("users.id"), nullable=False),
        _id("batch_id", nullable=False),
        sa.Column("field", sa.String(), nullable=False),
        sa.Column("old_value", sa.Text(), nullable=True),
        sa.Column("new_value", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_case_audit_logs_case_id", "case_id"),
        sa.Index("ix_case_audit_logs_batch_id", "batch_id"),
        sa.Index("ix_case_audit_logs_created_at", "created_at"),
    )

    op.create_table(
        "uploads",
        _id(nullable=False),
        _id("case_id", sa.ForeignKey("cases.id"), nullable=True),
        _id("user_id", sa.ForeignKey("users.id"), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("key", sa.String(), nullable=False),
        sa.Column("url", sa.String(), nullable=False),
        sa.Column("size", sa.Integer(), nullable=False),
        sa.Column("type", sa.String(32), nullable=False),
        sa.Column("width", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("height", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_uploads_case_id", "case_id"),
        sa.Index("ix_uploads_user_id", "user_id"),
        sa.Index("ix_uploads_key", "key", unique=True),
        sa.Index("ix_uploads_created_at", "created_at"),
    )

    op.create_table(
        "detections",
        _id(nullable=False),
        _id("upload_id", sa.ForeignKey("uploads.id"), nullable=False),
        sa.Column("label", sa.String(32), nullable=False),
        sa.Column("original_label", sa.String(32), nullable=False),
        sa.Column("confidence", sa.Float(), nullable=True),
        sa.Column("original_confidence", sa.Float(), nullable=True),
        sa.Column("x_min", sa.Float(), nullable=False),
        sa.Column("y_min", sa.Float(), nullable=False),
        sa.Column("x_max", sa.Float(), nullable=False),
        sa.Column("y_max", sa.Float(), nullable=False),
        sa.Column("status", sa.String(32), nullable=False, server_default="model_generated"),
        _id("created_by_id", sa.ForeignKey("users.id"), nullable=True),
        _id("last_modified_by_id", sa.ForeignKey("users.id"), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.Column("deleted_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_detections_upload_id", "upload_id"),
        sa.Index("ix_detections_deleted_at", "deleted_at"),
    )

    op.create_table(
        "analysis_results",
        _id("case_id", sa.ForeignKey("cases.id"), nullable=False),
        sa.Column("status", sa.String(16), nullable=False, server_default="pending"),
        sa.Column("total_counts", sa.JSON(), nullable=True),
        sa.Column("oldest_stage_detected", sa.String(), nullable=True),
        sa.Column("pmi_source_image_key", sa.String(), nullable=True),
        sa.Column("pmi_days", sa.Float(), nullable=True),
        sa.Column("pmi_hours", sa.Float(), nullable=True),
        sa.Column("pmi_minutes", sa.Float(), nullable=True),
        sa.Column("stage_used_for_calculation", sa.String(), nullable=True),
        sa.Column("temperature_provided", sa.Float(), nullable=True),
        sa.Column("calculated_adh", sa.Float(), nullable=True),
        sa.Column("ldt_used", sa.Float(), nullable=True),
        sa.Column("explanation", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("case_id"),
    )

    op.create_table(
        "exports",
        _id(nullable=False),
        _id("user_id", sa.ForeignKey("users.id"), nullable=False),
        _id("case_id", sa.ForeignKey("cases.id"), nullable=True),
        _id("upload_id", sa.ForeignKey("uploads.id"), nullable=True),
        sa.Column("format", sa.String(32), nullable=False),
        sa.Column("status", sa.String(16), nullable=False, server_default="pending"),
        sa.Column("s3_key", sa.String(), nullable=True),
        sa.Column("failure_reason", sa.Text(), nullable=True),
        sa.Column("password_protected", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_exports_user_id", "user_id"),
        sa.Index("ix_exports_case_id", "case_id"),
        sa.Index("ix_exports_created_at", "created_at"),
    )


def downgrade() -> None:
    """Drop all tables created in upgrade."""
    op.drop_table("exports")
    op.drop_table("analysis_results")
    op.drop_table("detections")
    op.drop_table("uploads")
    op.drop_table("case_audit_logs")
    op.drop_table("cases")
    op.drop_table("user_sessions")
    op.drop_table("users")
