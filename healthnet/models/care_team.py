"""Care Team connection model."""

from sqlalchemy import (
    CheckConstraint,
    Column,
    ForeignKey,
    Index,
    Table,
    Text,
    func,
    text,
)
from sqlalchemy.dialects.postgresql import TIMESTAMP, UUID

from healthnet.models.base import metadata

care_team = Table(
    "care_team",
    metadata,
    Column("id", UUID(as_uuid=True), primary_key=True, server_default=text("gen_random_uuid()")),
    Column(
        "requester_id",
        UUID(as_uuid=True),
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column(
        "receiver_id",
        UUID(as_uuid=True),
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("status", Text, nullable=False, server_default=text("'pending'")),
    Column("created_at", TIMESTAMP(timezone=True), nullable=False, server_default=text("NOW()")),
    Column("updated_at", TIMESTAMP(timezone=True), nullable=False, server_default=text("NOW()")),
    CheckConstraint("status IN ('pending', 'accepted')", name="care_team_status_check"),
    CheckConstraint("requester_id <> receiver_id", name="care_team_not_self_check"),
    Index("idx_care_team_receiver_status", "receiver_id", "status"),
)

# One relation per unordered pair, whichever side asked first
Index(
    "unique_care_team_pair",
    func.least(care_team.c.requester_id, care_team.c.receiver_id),
    func.greatest(care_team.c.requester_id, care_team.c.receiver_id),
    unique=True,
)
