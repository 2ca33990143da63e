"""Initial schema: topics, content items, rotation counter, upload schedules

Revision ID: 3f2a9c4e1b7d
Revises:
Create Date: 2026-03-01 10:00:00.000000

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "3f2a9c4e1b7d"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()
        ),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()
        ),
    ]


def upgrade() -> None:
    # topics
    op.create_table(
        "topics",
        sa.Column("id", sa.UUID(), nullable=False),
        *_timestamps(),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default="true"),
        sa.Column("usage_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_used_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_topics")),
        sa.UniqueConstraint("name", name=op.f("uq_topics_name")),
    )
    op.create_index(op.f("ix_topics_id"), "topics", ["id"])
    op.create_index("idx_topic_active_created", "topics", ["is_active", "created_at"])

    # content_items
    op.create_table(
        "content_items",
        sa.Column("id", sa.UUID(), nullable=False),
        *_timestamps(),
        sa.Column("render_mode", sa.String(length=30), nullable=False),
        sa.Column("status", sa.String(length=30), nullable=False),
        sa.Column("title", sa.String(length=200), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("script", sa.Text(), nullable=True),
        sa.Column("script_word_count", sa.Integer(), nullable=True),
        sa.Column("validation_attempts", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("validation_passed", sa.Boolean(), nullable=True),
        sa.Column("validation_result", postgresql.JSON(astext_type=sa.Text()), nullable=True),
        sa.Column("topic_id", sa.UUID(), nullable=True),
        sa.Column("opening_hook", sa.String(length=50), nullable=True),
        sa.Column("color_scheme", sa.String(length=50), nullable=True),
        sa.Column("background_path", sa.String(length=500), nullable=True),
        sa.Column("image_prompts", postgresql.JSON(astext_type=sa.Text()), nullable=True),
        sa.Column("image_paths", postgresql.JSON(astext_type=sa.Text()), nullable=True),
        sa.Column("audio_path", sa.String(length=500), nullable=True),
        sa.Column("alignment_path", sa.String(length=500), nullable=True),
        sa.Column("audio_duration_ms", sa.Integer(), nullable=True),
        sa.Column("subtitle_path", sa.String(length=500), nullable=True),
        sa.Column("output_path", sa.String(length=500), nullable=True),
        sa.Column("thumbnail_path", sa.String(length=500), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("failed_step", sa.String(length=30), nullable=True),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("retry_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("auto_upload", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("upload_mode", sa.String(length=20), nullable=False, server_default="none"),
        sa.Column("upload_error", sa.Text(), nullable=True),
        sa.Column("uploaded", sa.Boolean(), nullable=False, server_default="false"),
        sa.ForeignKeyConstraint(
            ["topic_id"],
            ["topics.id"],
            name=op.f("fk_content_items_topic_id_topics"),
            ondelete="SET NULL",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_content_items")),
    )
    op.create_index(op.f("ix_content_items_id"), "content_items", ["id"])
    op.create_index(op.f("ix_content_items_status"), "content_items", ["status"])
    op.create_index(op.f("ix_content_items_topic_id"), "content_items", ["topic_id"])
    op.create_index("idx_content_item_status_created", "content_items", ["status", "created_at"])

    # rotation_counter
    op.create_table(
        "rotation_counter",
        sa.Column("id", sa.String(length=20), nullable=False),
        *_timestamps(),
        sa.Column("topic", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("music", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("overlay", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("color_scheme", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("opening_hook", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_topic_id", sa.UUID(), nullable=True),
        sa.ForeignKeyConstraint(
            ["last_topic_id"],
            ["topics.id"],
            name=op.f("fk_rotation_counter_last_topic_id_topics"),
            ondelete="SET NULL",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_rotation_counter")),
    )

    # publishing_settings
    op.create_table(
        "publishing_settings",
        sa.Column("id", sa.String(length=20), nullable=False),
        *_timestamps(),
        sa.Column("api_key", sa.String(length=200), nullable=True),
        sa.Column("workspace_id", sa.String(length=100), nullable=True),
        sa.Column("youtube_account_id", sa.String(length=100), nullable=True),
        sa.Column("tiktok_account_id", sa.String(length=100), nullable=True),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_publishing_settings")),
    )

    # upload_schedules
    op.create_table(
        "upload_schedules",
        sa.Column("id", sa.UUID(), nullable=False),
        *_timestamps(),
        sa.Column("content_item_id", sa.UUID(), nullable=False),
        sa.Column("platform_accounts", postgresql.JSON(astext_type=sa.Text()), nullable=False),
        sa.Column("scheduled_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("scheduled_slot", sa.Integer(), nullable=False),
        sa.Column("scheduled_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="scheduled"),
        sa.Column("progress", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("title", sa.String(length=200), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("tags", postgresql.JSON(astext_type=sa.Text()), nullable=True),
        sa.Column("platform_urls", postgresql.JSON(astext_type=sa.Text()), nullable=False),
        sa.Column("external_job_id", sa.String(length=100), nullable=True),
        sa.Column("external_post_id", sa.String(length=100), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(
            ["content_item_id"],
            ["content_items.id"],
            name=op.f("fk_upload_schedules_content_item_id_content_items"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_upload_schedules")),
    )
    op.create_index(op.f("ix_upload_schedules_id"), "upload_schedules", ["id"])
    op.create_index(
        op.f("ix_upload_schedules_content_item_id"),
        "upload_schedules",
        ["content_item_id"],
        unique=True,
    )
    op.create_index("idx_upload_schedule_status", "upload_schedules", ["status"])
    op.create_index("idx_upload_schedule_scheduled_at", "upload_schedules", ["scheduled_at"])
    # One reservation per grid slot; immediate uploads (slot -1) are exempt
    op.create_index(
        "uq_upload_schedule_slot",
        "upload_schedules",
        ["scheduled_date", "scheduled_slot"],
        unique=True,
        postgresql_where=sa.text("scheduled_slot >= 0"),
    )


def downgrade() -> None:
    op.drop_index("uq_upload_schedule_slot", table_name="upload_schedules")
    op.drop_index("idx_upload_schedule_scheduled_at", table_name="upload_schedules")
    op.drop_index("idx_upload_schedule_status", table_name="upload_schedules")
    op.drop_index(op.f("ix_upload_schedules_content_item_id"), table_name="upload_schedules")
    op.drop_index(op.f("ix_upload_schedules_id"), table_name="upload_schedules")
    op.drop_table("upload_schedules")

    op.drop_table("publishing_settings")
    op.drop_table("rotation_counter")

    op.drop_index("idx_content_item_status_created", table_name="content_items")
    op.drop_index(op.f("ix_content_items_topic_id"), table_name="content_items")
    op.drop_index(op.f("ix_content_items_status"), table_name="content_items")
    op.drop_index(op.f("ix_content_items_id"), table_name="content_items")
    op.drop_table("content_items")

    op.drop_index("idx_topic_active_created", table_name="topics")
    op.drop_index(op.f("ix_topics_id"), table_name="topics")
    op.drop_table("topics")
