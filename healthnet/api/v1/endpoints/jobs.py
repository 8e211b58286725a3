"""Job board endpoints."""

from uuid import UUID

from fastapi import APIRouter, File, Query, UploadFile, status

from healthnet.dependencies import ActiveUserId, DatabaseSession, Storage
from healthnet.schemas.jobs import (
    JobApplicationCreate,
    JobApplicationResponse,
    JobApplicationStatusUpdate,
    JobCreate,
    JobListResponse,
    JobResponse,
    JobType,
    ResumeUrlResponse,
)
from healthnet.services.job_service import JobService

router = APIRouter()


@router.get("/jobs", response_model=JobListResponse, tags=["Jobs"], summary="List jobs")
async def list_jobs(
    user_id: ActiveUserId,
    db: DatabaseSession,
    search: str | None = Query(None, max_length=100, description="Title, company or location"),
    job_type: JobType | None = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
) -> JobListResponse:
    """
    List open jobs with pagination.

    Args:
        search: Case-insensitive match on title, company or location
        job_type: Filter by employment type
        page: Page number (1-indexed)
        page_size: Number of items per page
    """
    return await JobService(db).list_jobs(user_id, search, job_type, page, page_size)


@router.post(
    "/jobs",
    response_model=JobResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["Jobs"],
    summary="Post a job",
)
async def create_job(data: JobCreate, user_id: ActiveUserId, db: DatabaseSession) -> JobResponse:
    return await JobService(db).create_job(user_id, data)


@router.get("/jobs/{job_id}", response_model=JobResponse, tags=["Jobs"], summary="Get job")
async def get_job(job_id: UUID, user_id: ActiveUserId, db: DatabaseSession) -> JobResponse:
    return await JobService(db).get_job(job_id, user_id)


@router.post(
    "/jobs/{job_id}/applications",
    response_model=JobApplicationResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["Jobs"],
    summary="Apply to a job",
)
async def apply_to_job(
    job_id: UUID,
    data: JobApplicationCreate,
    user_id: ActiveUserId,
    db: DatabaseSession,
) -> JobApplicationResponse:
    """
    Submit an application.

    License number, specialization, years of experience and highest
    qualification are required; the request is rejected before anything is
    stored when one is missing.
    """
    return await JobService(db).apply(job_id, user_id, data)


@router.get(
    "/applications/sent",
    response_model=list[JobApplicationResponse],
    tags=["Applications"],
    summary="Applications I sent",
)
async def list_sent_applications(
    user_id: ActiveUserId,
    db: DatabaseSession,
) -> list[JobApplicationResponse]:
    return await JobService(db).list_sent(user_id)


@router.get(
    "/applications/received",
    response_model=list[JobApplicationResponse],
    tags=["Applications"],
    summary="Applications to my jobs",
)
async def list_received_applications(
    user_id: ActiveUserId,
    db: DatabaseSession,
) -> list[JobApplicationResponse]:
    return await JobService(db).list_received(user_id)


@router.get(
    "/applications/{application_id}",
    response_model=JobApplicationResponse,
    tags=["Applications"],
    summary="Get application",
)
async def get_application(
    application_id: UUID,
    user_id: ActiveUserId,
    db: DatabaseSession,
) -> JobApplicationResponse:
    """Visible to the applicant and to the employer who posted the job."""
    return await JobService(db).get_application(application_id, user_id)


@router.patch(
    "/applications/{application_id}/status",
    response_model=JobApplicationResponse,
    tags=["Applications"],
    summary="Update application status",
)
async def update_application_status(
    application_id: UUID,
    data: JobApplicationStatusUpdate,
    user_id: ActiveUserId,
    db: DatabaseSession,
) -> JobApplicationResponse:
    """Employer-only status transition; the applicant sees it in their sent list."""
    return await JobService(db).update_status(application_id, user_id, data.status)


@router.post(
    "/applications/{application_id}/resume",
    response_model=JobApplicationResponse,
    tags=["Applications"],
    summary="Upload resume",
)
async def upload_resume(
    application_id: UUID,
    user_id: ActiveUserId,
    db: DatabaseSession,
    storage: Storage,
    file: UploadFile = File(...),
) -> JobApplicationResponse:
    """Attach a PDF or Word resume to one of the current user's applications."""
    data = await file.read()
    return await JobService(db, storage).attach_resume(
        application_id, user_id, file.filename or "resume", file.content_type, data
    )


@router.get(
    "/applications/{application_id}/resume-url",
    response_model=ResumeUrlResponse,
    tags=["Applications"],
    summary="Temporary resume link",
)
async def get_resume_url(
    application_id: UUID,
    user_id: ActiveUserId,
    db: DatabaseSession,
    storage: Storage,
) -> ResumeUrlResponse:
    """Time-limited download link for the attached resume."""
    return await JobService(db, storage).resume_url(application_id, user_id)
