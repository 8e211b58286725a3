"""Job and job application schemas for request/response validation."""

from datetime import date, datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from healthnet.schemas.profiles import ProfileSummary


class JobType(str, Enum):
    """Job type enumeration."""

    FULL_TIME = "full_time"
    PART_TIME = "part_time"
    CONTRACT = "contract"
    LOCUM = "locum"
    INTERNSHIP = "internship"


class ApplicationStatus(str, Enum):
    """Job application status enumeration."""

    PENDING = "pending"
    REVIEWED = "reviewed"
    SHORTLISTED = "shortlisted"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class JobCreate(BaseModel):
    """Schema for posting a job."""

    title: str = Field(..., min_length=1, max_length=200)
    company: str = Field(..., min_length=1, max_length=200)
    location: str = Field(..., min_length=1, max_length=200)
    job_type: JobType = JobType.FULL_TIME
    description: str = Field(..., min_length=1, max_length=10000)
    requirements: str | None = Field(None, max_length=5000)
    salary_range: str | None = Field(None, max_length=100)

    @field_validator("title", "company", "location", "description")
    @classmethod
    def strip_required(cls, v: str) -> str:
        """Required text fields must not be blank."""
        trimmed = v.strip()
        if not trimmed:
            raise ValueError("This field is required")
        return trimmed


class JobResponse(BaseModel):
    """A job posting with the employer's display identity."""

    id: UUID
    employer_id: UUID
    title: str
    company: str
    location: str
    job_type: JobType
    description: str
    requirements: str | None = None
    salary_range: str | None = None
    is_active: bool
    created_at: datetime
    employer: ProfileSummary | None = None
    has_applied: bool = False


class JobListResponse(BaseModel):
    """Schema for paginated job list."""

    items: list[JobResponse]
    total: int
    page: int
    page_size: int


class JobSummary(BaseModel):
    """Job fields joined into an application."""

    id: UUID
    title: str
    company: str
    location: str
    employer_id: UUID


class JobApplicationCreate(BaseModel):
    """Schema for applying to a job."""

    license_number: str = Field(..., max_length=100, description="License/registration number")
    specialization: str = Field(..., max_length=200)
    years_of_experience: int = Field(..., ge=0, le=80)
    highest_qualification: str = Field(..., max_length=200)
    current_workplace: str | None = Field(None, max_length=200)
    expected_salary: str | None = Field(None, max_length=100)
    available_from: date | None = None
    phone_number: str | None = Field(None, max_length=20)
    cover_letter: str | None = Field(None, max_length=5000)

    @field_validator("license_number", "specialization", "highest_qualification")
    @classmethod
    def require_text(cls, v: str) -> str:
        """Required professional fields must not be blank."""
        trimmed = v.strip()
        if not trimmed:
            raise ValueError("This field is required")
        return trimmed

    @field_validator("phone_number")
    @classmethod
    def validate_phone(cls, v: str | None) -> str | None:
        """Validate phone number format."""
        if v is None:
            return v
        cleaned = (
            v.replace("-", "").replace(" ", "").replace("(", "").replace(")", "").replace("+", "")
        )
        if not cleaned.isdigit():
            raise ValueError("Phone number must contain only digits and separators")
        if len(cleaned) < 7:
            raise ValueError("Phone number must have at least 7 digits")
        return v


class JobApplicationStatusUpdate(BaseModel):
    """Schema for an employer changing an application's status."""

    status: ApplicationStatus


class JobApplicationResponse(BaseModel):
    """A job application with joined job and applicant."""

    id: UUID
    job_id: UUID
    applicant_id: UUID
    license_number: str
    specialization: str
    years_of_experience: int
    highest_qualification: str
    current_workplace: str | None = None
    expected_salary: str | None = None
    available_from: date | None = None
    phone_number: str | None = None
    cover_letter: str | None = None
    has_resume: bool = False
    status: ApplicationStatus
    created_at: datetime
    updated_at: datetime
    job: JobSummary | None = None
    applicant: ProfileSummary | None = None


class ResumeUrlResponse(BaseModel):
    """Temporary URL for downloading an applicant's resume."""

    url: str
    expires_in: int
