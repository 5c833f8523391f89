# routers/jobs.py
import logging
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from core.clock import get_now
from core.database import get_db
from core.security import get_completed_profile, get_optional_profile
from models.job_posting import JobPosting
from models.profile import Profile
from schemas.job import (
    Applicant,
    ApplyJobResponse,
    JobPostingDetail,
    JobPostingForm,
    JobPostingRead,
    SaveJobResponse,
)
from services import jobs as job_service

router = APIRouter(prefix="/findwork", tags=["jobs"])
logger = logging.getLogger("uvicorn.error")


def require_business(current: Profile = Depends(get_completed_profile)) -> Profile:
    if not current.is_business:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only business owners can post jobs",
        )
    return current


def require_creator(current: Profile = Depends(get_completed_profile)) -> Profile:
    if not current.is_creator:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only content creators can save or apply to jobs",
        )
    return current


async def _job_or_404(db: AsyncSession, slug: str) -> JobPosting:
    job = await job_service.get_job_by_slug(db, slug)
    if not job:
        raise HTTPException(status_code=404, detail="Job not found")
    return job


async def _owned_job(db: AsyncSession, slug: str, current: Profile) -> JobPosting:
    job = await _job_or_404(db, slug)
    if job.profile_id != current.id:
        raise HTTPException(status_code=403, detail="You can only manage your own job postings")
    return job


@router.get(
    "",
    response_model=List[JobPostingRead],
    summary="Job board, newest first",
)
async def list_jobs(
    country: Optional[str] = Query(None, description="Owner country"),
    q: Optional[str] = Query(None, description="Title, description, owner name or location"),
    saved_only: bool = Query(False),
    mine_only: bool = Query(False),
    db: AsyncSession = Depends(get_db),
    current: Optional[Profile] = Depends(get_optional_profile),
    now: datetime = Depends(get_now),
) -> List[JobPostingRead]:
    try:
        jobs = await job_service.list_jobs(db)
        saved_ids = set()
        if current is not None and current.is_creator:
            saved_ids = await job_service.saved_job_ids(db, current.id)
    except SQLAlchemyError as exc:
        logger.exception("Error fetching jobs: %s", exc)
        raise HTTPException(status_code=500, detail="Failed to load jobs") from exc

    owner_id = None
    if mine_only:
        if current is None or not current.is_business:
            return []
        owner_id = current.id
    if saved_only and (current is None or not current.is_creator):
        return []

    return job_service.filter_jobs(
        (job_service.to_job_read(job, now, saved_ids) for job in jobs),
        country=country,
        query=q,
        saved_only=saved_only,
        owner_id=owner_id,
    )


@router.post(
    "",
    response_model=JobPostingRead,
    status_code=status.HTTP_201_CREATED,
    summary="Post a job",
)
async def create_job(
    form: JobPostingForm,
    db: AsyncSession = Depends(get_db),
    current: Profile = Depends(require_business),
    now: datetime = Depends(get_now),
) -> JobPostingRead:
    try:
        job = await job_service.create_job(db, current, form, now)
    except ValueError as ve:
        raise HTTPException(status_code=400, detail=str(ve))
    except (SQLAlchemyError, RuntimeError) as exc:
        await db.rollback()
        logger.exception("Error creating job posting: %s", exc)
        raise HTTPException(status_code=500, detail="Failed to create job posting") from exc
    logger.info("Job %s posted by %s", job.slug, current.id)
    return job_service.to_job_read(job, now)


@router.get(
    "/{slug}",
    response_model=JobPostingDetail,
    summary="Job detail",
)
async def read_job(
    slug: str,
    db: AsyncSession = Depends(get_db),
    current: Optional[Profile] = Depends(get_optional_profile),
    now: datetime = Depends(get_now),
) -> JobPostingDetail:
    job = await _job_or_404(db, slug)
    detail = JobPostingDetail(**job_service.to_job_read(job, now).model_dump())
    if current is None:
        return detail

    if current.is_creator:
        detail.is_saved = await job_service.is_saved(db, current.id, job.id)
        detail.is_applied = await job_service.is_applied(db, current.id, job.id)
    if job.profile_id == current.id:
        detail.is_owner = True
        detail.applicants = await job_service.list_applicants(db, job.id)
    return detail


@router.put(
    "/{slug}",
    response_model=JobPostingRead,
    summary="Edit my job posting",
)
async def update_job(
    slug: str,
    form: JobPostingForm,
    db: AsyncSession = Depends(get_db),
    current: Profile = Depends(require_business),
    now: datetime = Depends(get_now),
) -> JobPostingRead:
    job = await _owned_job(db, slug, current)
    try:
        job = await job_service.update_job(db, job, form, now)
    except ValueError as ve:
        raise HTTPException(status_code=400, detail=str(ve))
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.exception("Error updating job posting: %s", exc)
        raise HTTPException(status_code=500, detail="Failed to update job posting") from exc
    return job_service.to_job_read(job, now)


@router.delete(
    "/{slug}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete my job posting",
)
async def delete_job(
    slug: str,
    db: AsyncSession = Depends(get_db),
    current: Profile = Depends(require_business),
):
    job = await _owned_job(db, slug, current)
    try:
        await job_service.delete_job(db, job)
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.exception("Error deleting job posting: %s", exc)
        raise HTTPException(status_code=500, detail="Failed to delete job posting") from exc
    logger.info("Job %s deleted by %s", slug, current.id)
    return


@router.post(
    "/{slug}/save",
    response_model=SaveJobResponse,
    summary="Bookmark a job",
)
async def save_job(
    slug: str,
    db: AsyncSession = Depends(get_db),
    current: Profile = Depends(require_creator),
) -> SaveJobResponse:
    job = await _job_or_404(db, slug)
    try:
        await job_service.save_job(db, current.id, job.id)
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.exception("Error saving job: %s", exc)
        raise HTTPException(status_code=500, detail="Failed to save job") from exc
    return SaveJobResponse(saved=True)


@router.delete(
    "/{slug}/save",
    response_model=SaveJobResponse,
    summary="Remove a bookmark",
)
async def unsave_job(
    slug: str,
    db: AsyncSession = Depends(get_db),
    current: Profile = Depends(require_creator),
) -> SaveJobResponse:
    job = await _job_or_404(db, slug)
    try:
        await job_service.unsave_job(db, current.id, job.id)
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.exception("Error unsaving job: %s", exc)
        raise HTTPException(status_code=500, detail="Failed to unsave job") from exc
    return SaveJobResponse(saved=False)


@router.post(
    "/{slug}/apply",
    response_model=ApplyJobResponse,
    summary="Apply / collaborate",
)
async def apply_to_job(
    slug: str,
    db: AsyncSession = Depends(get_db),
    current: Profile = Depends(require_creator),
    now: datetime = Depends(get_now),
) -> ApplyJobResponse:
    job = await _job_or_404(db, slug)
    try:
        await job_service.apply_to_job(db, current.id, job, now)
    except ValueError as ve:
        raise HTTPException(status_code=400, detail=str(ve))
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.exception("Error applying to job: %s", exc)
        raise HTTPException(status_code=500, detail="Failed to apply to job") from exc
    logger.info("%s applied to %s", current.id, slug)
    return ApplyJobResponse(applied=True)


@router.get(
    "/{slug}/applicants",
    response_model=List[Applicant],
    summary="Applicants of my job posting, newest first",
)
async def list_applicants(
    slug: str,
    db: AsyncSession = Depends(get_db),
    current: Profile = Depends(require_business),
) -> List[Applicant]:
    job = await _owned_job(db, slug, current)
    return await job_service.list_applicants(db, job.id)
