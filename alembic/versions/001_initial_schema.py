"""Initial schema - profiles, messaging, care team, posts and jobs.

Revision ID: 001
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""

from typing import Sequence, Union

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id() -> sa.Column:
    return sa.Column(
        "id", postgresql.UUID(), server_default=sa.text("gen_random_uuid()"), nullable=False
    )


def _timestamp(name: str, nullable: bool = False) -> sa.Column:
    return sa.Column(
        name,
        postgresql.TIMESTAMP(timezone=True),
        server_default=None if nullable else sa.text("NOW()"),
        nullable=nullable,
    )


def _profile_fk(name: str) -> sa.Column:
    return sa.Column(
        name,
        postgresql.UUID(),
        sa.ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
    )


def upgrade() -> None:
    """Upgrade database schema."""
    op.execute('CREATE EXTENSION IF NOT EXISTS "pgcrypto"')

    op.create_table(
        "profiles",
        _id(),
        sa.Column("firebase_uid", sa.Text(), nullable=False),
        sa.Column("email", sa.Text(), nullable=False),
        sa.Column("full_name", sa.Text(), nullable=True),
        sa.Column("headline", sa.Text(), nullable=True),
        sa.Column("bio", sa.Text(), nullable=True),
        sa.Column("user_type", sa.Text(), server_default="professional", nullable=False),
        sa.Column("location", sa.Text(), nullable=True),
        sa.Column("phone_number", sa.Text(), nullable=True),
        sa.Column("profile_photo", sa.Text(), nullable=True),
        sa.Column("cover_photo", sa.Text(), nullable=True),
        sa.Column("license_number", sa.Text(), nullable=True),
        sa.Column("specialization", sa.Text(), nullable=True),
        sa.Column("qualification", sa.Text(), nullable=True),
        sa.Column("years_of_experience", sa.Integer(), nullable=True),
        sa.Column("skills", postgresql.JSONB(), server_default=sa.text("'[]'::jsonb"), nullable=False),
        sa.Column(
            "experience", postgresql.JSONB(), server_default=sa.text("'[]'::jsonb"), nullable=False
        ),
        sa.Column(
            "education", postgresql.JSONB(), server_default=sa.text("'[]'::jsonb"), nullable=False
        ),
        sa.Column("account_status", sa.Text(), server_default="active", nullable=False),
        _timestamp("deactivated_at", nullable=True),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        _timestamp("last_login_at", nullable=True),
        sa.CheckConstraint(
            "account_status IN ('active', 'deactivated', 'deleted')",
            name="profiles_account_status_check",
        ),
        sa.CheckConstraint(
            "user_type IN ('professional', 'employer', 'student')",
            name="profiles_user_type_check",
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("firebase_uid"),
    )
    op.create_index("ix_profiles_firebase_uid", "profiles", ["firebase_uid"])
    op.create_index("ix_profiles_email", "profiles", ["email"])

    op.create_table(
        "profile_views",
        _id(),
        _profile_fk("profile_id"),
        _profile_fk("viewer_id"),
        _timestamp("viewed_at"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_profile_views_profile", "profile_views", ["profile_id"])

    op.create_table(
        "conversations",
        _id(),
        _profile_fk("user1_id"),
        _profile_fk("user2_id"),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.CheckConstraint("user1_id < user2_id", name="conversations_canonical_pair_check"),
        sa.UniqueConstraint("user1_id", "user2_id", name="unique_conversation_pair"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_conversations_user2", "conversations", ["user2_id"])
    op.create_index("idx_conversations_updated_at", "conversations", ["updated_at"])

    op.create_table(
        "messages",
        _id(),
        sa.Column(
            "conversation_id",
            postgresql.UUID(),
            sa.ForeignKey("conversations.id", ondelete="CASCADE"),
            nullable=False,
        ),
        _profile_fk("sender_id"),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("is_read", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        _timestamp("created_at"),
        sa.CheckConstraint("length(btrim(content)) > 0", name="messages_content_not_blank"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "idx_messages_conversation_created", "messages", ["conversation_id", "created_at"]
    )
    op.create_index(
        "idx_messages_unread",
        "messages",
        ["conversation_id", "sender_id"],
        postgresql_where=sa.text("is_read = false"),
    )

    op.create_table(
        "care_team",
        _id(),
        _profile_fk("requester_id"),
        _profile_fk("receiver_id"),
        sa.Column("status", sa.Text(), server_default="pending", nullable=False),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.CheckConstraint("status IN ('pending', 'accepted')", name="care_team_status_check"),
        sa.CheckConstraint("requester_id <> receiver_id", name="care_team_not_self_check"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_care_team_receiver_status", "care_team", ["receiver_id", "status"])
    op.execute(
        "CREATE UNIQUE INDEX unique_care_team_pair ON care_team "
        "(LEAST(requester_id, receiver_id), GREATEST(requester_id, receiver_id))"
    )

    op.create_table(
        "posts",
        _id(),
        _profile_fk("user_id"),
        sa.Column("content", sa.Text(), nullable=False),
        _timestamp("created_at"),
        sa.CheckConstraint("char_length(content) <= 3000", name="posts_content_length_check"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_posts_created_at", "posts", ["created_at"])

    op.create_table(
        "likes",
        _id(),
        _profile_fk("user_id"),
        sa.Column(
            "post_id",
            postgresql.UUID(),
            sa.ForeignKey("posts.id", ondelete="CASCADE"),
            nullable=False,
        ),
        _timestamp("created_at"),
        sa.UniqueConstraint("user_id", "post_id", name="unique_like_user_post"),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "comments",
        _id(),
        _profile_fk("user_id"),
        sa.Column(
            "post_id",
            postgresql.UUID(),
            sa.ForeignKey("posts.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("content", sa.Text(), nullable=False),
        _timestamp("created_at"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_comments_post_created", "comments", ["post_id", "created_at"])

    op.create_table(
        "jobs",
        _id(),
        _profile_fk("employer_id"),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("company", sa.Text(), nullable=False),
        sa.Column("location", sa.Text(), nullable=False),
        sa.Column("job_type", sa.Text(), server_default="full_time", nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("requirements", sa.Text(), nullable=True),
        sa.Column("salary_range", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        _timestamp("created_at"),
        sa.CheckConstraint(
            "job_type IN ('full_time', 'part_time', 'contract', 'locum', 'internship')",
            name="jobs_job_type_check",
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_jobs_employer", "jobs", ["employer_id"])
    op.create_index("idx_jobs_created_at", "jobs", ["created_at"])

    op.create_table(
        "job_applications",
        _id(),
        sa.Column(
            "job_id",
            postgresql.UUID(),
            sa.ForeignKey("jobs.id", ondelete="CASCADE"),
            nullable=False,
        ),
        _profile_fk("applicant_id"),
        sa.Column("license_number", sa.Text(), nullable=False),
        sa.Column("specialization", sa.Text(), nullable=False),
        sa.Column("years_of_experience", sa.Integer(), nullable=False),
        sa.Column("highest_qualification", sa.Text(), nullable=False),
        sa.Column("current_workplace", sa.Text(), nullable=True),
        sa.Column("expected_salary", sa.Text(), nullable=True),
        sa.Column("available_from", sa.Date(), nullable=True),
        sa.Column("phone_number", sa.Text(), nullable=True),
        sa.Column("cover_letter", sa.Text(), nullable=True),
        sa.Column("resume_path", sa.Text(), nullable=True),
        sa.Column("status", sa.Text(), server_default="pending", nullable=False),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.CheckConstraint(
            "status IN ('pending', 'reviewed', 'shortlisted', 'accepted', 'rejected')",
            name="job_applications_status_check",
        ),
        sa.CheckConstraint("years_of_experience >= 0", name="job_applications_experience_check"),
        sa.UniqueConstraint("job_id", "applicant_id", name="unique_application_per_job"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_job_applications_applicant", "job_applications", ["applicant_id"])


def downgrade() -> None:
    """Downgrade database schema."""
    op.drop_table("job_applications")
    op.drop_table("jobs")
    op.drop_table("comments")
    op.drop_table("likes")
    op.drop_table("posts")
    op.drop_table("care_team")
    op.drop_table("messages")
    op.drop_table("conversations")
    op.drop_table("profile_views")
    op.drop_table("profiles")
