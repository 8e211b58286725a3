"""Job posting and job application models."""

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    ForeignKey,
    Index,
    Integer,
    Table,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.dialects.postgresql import TIMESTAMP, UUID

from healthnet.models.base import metadata

jobs = Table(
    "jobs",
    metadata,
    Column("id", UUID(as_uuid=True), primary_key=True, server_default=text("gen_random_uuid()")),
    Column(
        "employer_id",
        UUID(as_uuid=True),
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("title", Text, nullable=False),
    Column("company", Text, nullable=False),
    Column("location", Text, nullable=False),
    Column("job_type", Text, nullable=False, server_default=text("'full_time'")),
    Column("description", Text, nullable=False),
    Column("requirements", Text),
    Column("salary_range", Text),
    Column("is_active", Boolean, nullable=False, server_default=text("true")),
    Column("created_at", TIMESTAMP(timezone=True), nullable=False, server_default=text("NOW()")),
    CheckConstraint(
        "job_type IN ('full_time', 'part_time', 'contract', 'locum', 'internship')",
        name="jobs_job_type_check",
    ),
    Index("idx_jobs_employer", "employer_id"),
    Index("idx_jobs_created_at", "created_at"),
)

job_applications = Table(
    "job_applications",
    metadata,
    Column("id", UUID(as_uuid=True), primary_key=True, server_default=text("gen_random_uuid()")),
    Column(
        "job_id",
        UUID(as_uuid=True),
        ForeignKey("jobs.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column(
        "applicant_id",
        UUID(as_uuid=True),
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
    ),
    # Professional details
    Column("license_number", Text, nullable=False),
    Column("specialization", Text, nullable=False),
    Column("years_of_experience", Integer, nullable=False),
    Column("highest_qualification", Text, nullable=False),
    Column("current_workplace", Text),
    Column("expected_salary", Text),
    Column("available_from", Date),
    Column("phone_number", Text),
    Column("cover_letter", Text),
    Column("resume_path", Text),
    Column("status", Text, nullable=False, server_default=text("'pending'")),
    Column("created_at", TIMESTAMP(timezone=True), nullable=False, server_default=text("NOW()")),
    Column("updated_at", TIMESTAMP(timezone=True), nullable=False, server_default=text("NOW()")),
    CheckConstraint(
        "status IN ('pending', 'reviewed', 'shortlisted', 'accepted', 'rejected')",
        name="job_applications_status_check",
    ),
    CheckConstraint("years_of_experience >= 0", name="job_applications_experience_check"),
    UniqueConstraint("job_id", "applicant_id", name="unique_application_per_job"),
    Index("idx_job_applications_applicant", "applicant_id"),
)
