"""Profile and profile-view models using SQLAlchemy Core."""

from sqlalchemy import (
    CheckConstraint,
    Column,
    ForeignKey,
    Index,
    Integer,
    Table,
    Text,
    text,
)
from sqlalchemy.dialects.postgresql import JSONB, TIMESTAMP, UUID

from healthnet.models.base import metadata

profiles = Table(
    "profiles",
    metadata,
    # The profile id is the user id
    Column("id", UUID(as_uuid=True), primary_key=True, server_default=text("gen_random_uuid()")),
    # Firebase identity (SOURCE OF TRUTH)
    Column("firebase_uid", Text, nullable=False, unique=True, index=True),
    Column("email", Text, nullable=False, index=True),
    # Public identity
    Column("full_name", Text),
    Column("headline", Text),
    Column("bio", Text),
    Column("user_type", Text, nullable=False, server_default=text("'professional'")),
    Column("location", Text),
    Column("phone_number", Text),
    Column("profile_photo", Text),
    Column("cover_photo", Text),
    # Professional credentials
    Column("license_number", Text),
    Column("specialization", Text),
    Column("qualification", Text),
    Column("years_of_experience", Integer),
    # Semi-structured lists
    Column("skills", JSONB, nullable=False, server_default=text("'[]'::jsonb")),
    Column("experience", JSONB, nullable=False, server_default=text("'[]'::jsonb")),
    Column("education", JSONB, nullable=False, server_default=text("'[]'::jsonb")),
    # Account state
    Column("account_status", Text, nullable=False, server_default=text("'active'")),
    Column("deactivated_at", TIMESTAMP(timezone=True)),
    # Audit
    Column("created_at", TIMESTAMP(timezone=True), nullable=False, server_default=text("NOW()")),
    Column("updated_at", TIMESTAMP(timezone=True), nullable=False, server_default=text("NOW()")),
    Column("last_login_at", TIMESTAMP(timezone=True)),
    CheckConstraint(
        "account_status IN ('active', 'deactivated', 'deleted')",
        name="profiles_account_status_check",
    ),
    CheckConstraint(
        "user_type IN ('professional', 'employer', 'student')",
        name="profiles_user_type_check",
    ),
)

profile_views = Table(
    "profile_views",
    metadata,
    Column("id", UUID(as_uuid=True), primary_key=True, server_default=text("gen_random_uuid()")),
    Column(
        "profile_id",
        UUID(as_uuid=True),
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column(
        "viewer_id",
        UUID(as_uuid=True),
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("viewed_at", TIMESTAMP(timezone=True), nullable=False, server_default=text("NOW()")),
    Index("idx_profile_views_profile", "profile_id"),
)
