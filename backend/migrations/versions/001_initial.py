"""initial schema : recrutement TLS

Revision ID: 001_initial
Create Date: 19/10/2026
"""
from alembic import op
import sqlalchemy as sa

revision = '001_initial'
down_revision = None

# Enums stockés en VARCHAR(32) (native_enum=False côté modèles) :
# pas de CREATE TYPE, la liste de valeurs vit dans app.shared.enums.
ENUM_LEN = 32


def upgrade() -> None:
    op.create_table("users",
        sa.Column("id", sa.String(32), primary_key=True),
        sa.Column("email", sa.String, nullable=False, unique=True),
        sa.Column("name", sa.String, nullable=False),
        sa.Column("role", sa.String(ENUM_LEN), nullable=False, server_default="user"),
        sa.Column("is_active", sa.Boolean, default=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_role", "users", ["role"])

    op.create_table("project_items",
        sa.Column("id", sa.String(32), primary_key=True),
        sa.Column("type", sa.String(20), nullable=False, server_default="project"),
        sa.Column("title", sa.JSON, nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="active"),
        sa.Column("recruitment_form_id", sa.String(32), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_project_items_recruitment_form_id", "project_items", ["recruitment_form_id"])

    op.create_table("recruitment_forms",
        sa.Column("id", sa.String(32), primary_key=True),
        sa.Column("title", sa.JSON, nullable=False),
        sa.Column("description", sa.JSON, nullable=True),
        sa.Column("role", sa.String(ENUM_LEN), nullable=False),
        sa.Column("fields", sa.JSON, nullable=False),
        sa.Column("image", sa.String(500), nullable=True),
        sa.Column("project_item_id", sa.String(32), nullable=True),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("start_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("end_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("max_responses", sa.Integer, nullable=True),
        sa.Column("current_responses", sa.Integer, nullable=False, server_default="0"),
        sa.Column("email_notification", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("created_by", sa.String(32), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint("current_responses >= 0", name="ck_recruitment_forms_counter_positive"),
    )
    op.create_index("ix_recruitment_forms_role", "recruitment_forms", ["role"])
    op.create_index("ix_recruitment_forms_is_active", "recruitment_forms", ["is_active"])
    op.create_index("ix_recruitment_forms_project_item_id", "recruitment_forms", ["project_item_id"])
    op.create_index("ix_recruitment_forms_created_by", "recruitment_forms", ["created_by"])

    # form_ref sans FK : les orphelins sont détectés par l'audit
    op.create_table("recruitment_responses",
        sa.Column("id", sa.String(32), primary_key=True),
        sa.Column("form_ref", sa.String(32), nullable=False),
        sa.Column("project_item_ref", sa.String(32), nullable=True),
        sa.Column("role_applied", sa.String(ENUM_LEN), nullable=False),
        sa.Column("answers", sa.JSON, nullable=False),
        sa.Column("applicant_name", sa.String(100), nullable=False),
        sa.Column("applicant_email", sa.String, nullable=False),
        sa.Column("user_ref", sa.String(32), nullable=True),
        sa.Column("status", sa.String(ENUM_LEN), nullable=False, server_default="pending"),
        sa.Column("priority", sa.String(ENUM_LEN), nullable=False, server_default="medium"),
        sa.Column("rating", sa.Integer, nullable=True),
        sa.Column("review_notes", sa.String(1000), nullable=True),
        sa.Column("reviewed_by", sa.String(32), nullable=True),
        sa.Column("reviewed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("ip_address", sa.String(64), nullable=True),
        sa.Column("user_agent", sa.String(500), nullable=True),
        sa.Column("submitted_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_recruitment_responses_form_ref", "recruitment_responses", ["form_ref"])
    op.create_index("ix_recruitment_responses_project_item_ref", "recruitment_responses", ["project_item_ref"])
    op.create_index("ix_recruitment_responses_applicant_email", "recruitment_responses", ["applicant_email"])
    op.create_index("ix_recruitment_responses_user_ref", "recruitment_responses", ["user_ref"])
    op.create_index("ix_recruitment_responses_status", "recruitment_responses", ["status"])
    op.create_index("ix_recruitment_responses_submitted_at", "recruitment_responses", ["submitted_at"])

    op.create_table("notifications",
        sa.Column("id", sa.String(32), primary_key=True),
        sa.Column("user_ref", sa.String(32), nullable=False),
        sa.Column("title", sa.JSON, nullable=False),
        sa.Column("message", sa.JSON, nullable=False),
        sa.Column("type", sa.String(ENUM_LEN), nullable=False, server_default="info"),
        sa.Column("priority", sa.String(ENUM_LEN), nullable=False, server_default="medium"),
        sa.Column("action_url", sa.String, nullable=True),
        sa.Column("action_text", sa.JSON, nullable=True),
        sa.Column("tags", sa.JSON, nullable=False),
        sa.Column("is_read", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("created_by", sa.String(32), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_notifications_user_ref", "notifications", ["user_ref"])
    op.create_index("ix_notifications_created_at", "notifications", ["created_at"])


def downgrade() -> None:
    tables = [
        "notifications",
        "recruitment_responses",
        "recruitment_forms",
        "project_items",
        "users",
    ]
    for table in tables:
        op.drop_table(table)
