"""Job board service: postings, applications and status transitions."""

from datetime import UTC, datetime
from pathlib import PurePosixPath
from uuid import UUID

import structlog
from sqlalchemy import and_, exists, func, or_, select, update
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from healthnet.config import settings
from healthnet.core.exceptions import (
    BadRequestException,
    ConflictException,
    ForbiddenException,
    NotFoundException,
    PayloadTooLargeException,
)
from healthnet.models.jobs import job_applications, jobs
from healthnet.models.profiles import profiles
from healthnet.schemas.jobs import (
    ApplicationStatus,
    JobApplicationCreate,
    JobApplicationResponse,
    JobCreate,
    JobListResponse,
    JobResponse,
    JobSummary,
    JobType,
    ResumeUrlResponse,
)
from healthnet.services.joins import profile_summary, profile_summary_columns, strip_prefixed
from healthnet.services.storage_service import StorageService

logger = structlog.get_logger(__name__)

RESUME_TYPES = {
    "application/pdf": ".pdf",
    "application/msword": ".doc",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": ".docx",
}


class JobService:
    """Service for job postings and applications."""

    def __init__(self, db: AsyncSession, storage: StorageService | None = None):
        """Initialize service with database session and optional object storage."""
        self.db = db
        self.storage = storage

    # Jobs

    def _job_query(self, viewer_id: UUID):
        has_applied = exists().where(
            job_applications.c.job_id == jobs.c.id,
            job_applications.c.applicant_id == viewer_id,
        )
        return select(
            jobs,
            has_applied.label("has_applied"),
            *profile_summary_columns(profiles, "employer"),
        ).select_from(jobs.join(profiles, profiles.c.id == jobs.c.employer_id))

    @staticmethod
    def _to_job(row) -> JobResponse:
        return JobResponse(
            **strip_prefixed(row._mapping, "employer"),
            employer=profile_summary(row._mapping, "employer"),
        )

    async def list_jobs(
        self,
        viewer_id: UUID,
        search: str | None = None,
        job_type: JobType | None = None,
        page: int = 1,
        page_size: int = 20,
    ) -> JobListResponse:
        """List active jobs, newest first, with optional text search and type filter."""
        conditions = [jobs.c.is_active.is_(True)]
        if search:
            pattern = f"%{search.strip()}%"
            conditions.append(
                or_(
                    jobs.c.title.ilike(pattern),
                    jobs.c.company.ilike(pattern),
                    jobs.c.location.ilike(pattern),
                )
            )
        if job_type:
            conditions.append(jobs.c.job_type == job_type.value)

        total = await self.db.scalar(select(func.count()).select_from(jobs).where(and_(*conditions)))

        query = (
            self._job_query(viewer_id)
            .where(and_(*conditions))
            .order_by(jobs.c.created_at.desc(), jobs.c.id)
            .limit(page_size)
            .offset((page - 1) * page_size)
        )
        result = await self.db.execute(query)

        return JobListResponse(
            items=[self._to_job(row) for row in result],
            total=total or 0,
            page=page,
            page_size=page_size,
        )

    async def create_job(self, employer_id: UUID, data: JobCreate) -> JobResponse:
        """Post a job as the current user."""
        values = data.model_dump()
        values["job_type"] = data.job_type.value
        result = await self.db.execute(
            jobs.insert().values(employer_id=employer_id, **values).returning(jobs.c.id)
        )
        job_id = result.scalar_one()
        await self.db.commit()
        logger.info("job_posted", job_id=str(job_id), employer_id=str(employer_id))
        return await self.get_job(job_id, employer_id)

    async def get_job(self, job_id: UUID, viewer_id: UUID) -> JobResponse:
        """Get a job, flagging whether the viewer has already applied."""
        row = (await self.db.execute(self._job_query(viewer_id).where(jobs.c.id == job_id))).first()
        if row is None:
            raise NotFoundException("Job not found")
        return self._to_job(row)

    # Applications

    def _application_query(self):
        return select(
            job_applications,
            jobs.c.title.label("job__title"),
            jobs.c.company.label("job__company"),
            jobs.c.location.label("job__location"),
            jobs.c.employer_id.label("job__employer_id"),
            *profile_summary_columns(profiles, "applicant"),
        ).select_from(
            job_applications.join(jobs, jobs.c.id == job_applications.c.job_id).join(
                profiles, profiles.c.id == job_applications.c.applicant_id
            )
        )

    @staticmethod
    def _to_application(row) -> JobApplicationResponse:
        mapping = row._mapping
        fields = strip_prefixed(mapping, "job", "applicant")
        fields["has_resume"] = fields.pop("resume_path") is not None
        return JobApplicationResponse(
            **fields,
            job=JobSummary(
                id=mapping["job_id"],
                title=mapping["job__title"],
                company=mapping["job__company"],
                location=mapping["job__location"],
                employer_id=mapping["job__employer_id"],
            ),
            applicant=profile_summary(mapping, "applicant"),
        )

    async def apply(
        self, job_id: UUID, applicant_id: UUID, data: JobApplicationCreate
    ) -> JobApplicationResponse:
        """
        Apply to a job.

        Raises:
            NotFoundException: If the job does not exist or is closed
            BadRequestException: If the applicant posted the job
            ConflictException: If the applicant already applied
        """
        row = (
            await self.db.execute(
                select(jobs.c.employer_id, jobs.c.is_active).where(jobs.c.id == job_id)
            )
        ).first()
        if row is None or not row.is_active:
            raise NotFoundException("Job not found")
        if row.employer_id == applicant_id:
            raise BadRequestException("You cannot apply to your own job posting")

        stmt = (
            insert(job_applications)
            .values(
                job_id=job_id,
                applicant_id=applicant_id,
                status=ApplicationStatus.PENDING.value,
                **data.model_dump(),
            )
            .on_conflict_do_nothing(constraint="unique_application_per_job")
            .returning(job_applications.c.id)
        )
        application_id = (await self.db.execute(stmt)).scalar_one_or_none()
        await self.db.commit()

        if application_id is None:
            raise ConflictException("You have already applied to this job")

        logger.info(
            "job_application_submitted",
            application_id=str(application_id),
            job_id=str(job_id),
        )
        return await self._get_application_row(application_id)

    async def _get_application_row(self, application_id: UUID) -> JobApplicationResponse:
        row = (
            await self.db.execute(
                self._application_query().where(job_applications.c.id == application_id)
            )
        ).first()
        if row is None:
            raise NotFoundException("Application not found")
        return self._to_application(row)

    async def list_sent(self, applicant_id: UUID) -> list[JobApplicationResponse]:
        """Applications the user submitted, newest first."""
        query = (
            self._application_query()
            .where(job_applications.c.applicant_id == applicant_id)
            .order_by(job_applications.c.created_at.desc())
        )
        result = await self.db.execute(query)
        return [self._to_application(row) for row in result]

    async def list_received(self, employer_id: UUID) -> list[JobApplicationResponse]:
        """Applications to the user's job postings, newest first."""
        query = (
            self._application_query()
            .where(jobs.c.employer_id == employer_id)
            .order_by(job_applications.c.created_at.desc())
        )
        result = await self.db.execute(query)
        return [self._to_application(row) for row in result]

    async def get_application(self, application_id: UUID, user_id: UUID) -> JobApplicationResponse:
        """Get an application; visible to the job's employer and to the applicant."""
        application = await self._get_application_row(application_id)
        if user_id not in (application.job.employer_id, application.applicant_id):
            raise ForbiddenException("You don't have permission to view this application")
        return application

    async def update_status(
        self, application_id: UUID, employer_id: UUID, new_status: ApplicationStatus
    ) -> JobApplicationResponse:
        """Change an application's status; only the job's employer may do so."""
        application = await self._get_application_row(application_id)
        if application.job.employer_id != employer_id:
            raise ForbiddenException("Only the employer can update this application")

        await self.db.execute(
            update(job_applications)
            .where(job_applications.c.id == application_id)
            .values(status=new_status.value, updated_at=datetime.now(UTC))
        )
        await self.db.commit()

        logger.info(
            "job_application_status_updated",
            application_id=str(application_id),
            old_status=application.status.value,
            new_status=new_status.value,
        )
        return await self._get_application_row(application_id)

    # Resumes

    def _require_storage(self) -> StorageService:
        if self.storage is None:
            raise RuntimeError("JobService was created without storage")
        return self.storage

    async def attach_resume(
        self,
        application_id: UUID,
        applicant_id: UUID,
        filename: str,
        content_type: str | None,
        data: bytes,
    ) -> JobApplicationResponse:
        """
        Upload the applicant's resume for an application.

        Only PDF and Word documents up to the configured size are accepted.
        """
        application = await self._get_application_row(application_id)
        if application.applicant_id != applicant_id:
            raise ForbiddenException("Only the applicant can upload a resume")

        extension = RESUME_TYPES.get(content_type or "")
        if extension is None:
            raise BadRequestException("Resume must be a PDF or Word document")
        if not data:
            raise BadRequestException("Resume file is empty")
        if len(data) > settings.resume_max_bytes:
            limit_mb = settings.resume_max_bytes // (1024 * 1024)
            raise PayloadTooLargeException(f"Resume must be smaller than {limit_mb}MB")

        path = str(PurePosixPath("resumes") / str(applicant_id) / f"{application_id}{extension}")
        self._require_storage().upload(path, data)

        await self.db.execute(
            update(job_applications)
            .where(job_applications.c.id == application_id)
            .values(resume_path=path, updated_at=datetime.now(UTC))
        )
        await self.db.commit()

        logger.info("resume_uploaded", application_id=str(application_id), filename=filename)
        return await self._get_application_row(application_id)

    async def resume_url(self, application_id: UUID, user_id: UUID) -> ResumeUrlResponse:
        """Create a temporary download link for an application's resume."""
        await self.get_application(application_id, user_id)
        path = await self.db.scalar(
            select(job_applications.c.resume_path).where(job_applications.c.id == application_id)
        )
        if path is None:
            raise NotFoundException("No resume attached to this application")

        ttl = settings.resume_url_ttl_seconds
        return ResumeUrlResponse(
            url=self._require_storage().create_signed_url(path, ttl),
            expires_in=ttl,
        )
