"""Job postings, bookmarks and applications."""
import logging
from datetime import datetime, time
from typing import Iterable, List, Optional, Set

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from core.id_generator import generate_slug
from models.job_application import JobApplication
from models.job_posting import JobPosting
from models.profile import Profile
from models.saved_job import SavedJob
from schemas.job import Applicant, JobPostingForm, JobPostingRead

logger = logging.getLogger(__name__)

END_OF_DAY = time(23, 59, 59)
SLUG_ATTEMPTS = 5


def deadline_at(deadline_date, deadline_time) -> Optional[datetime]:
    if deadline_date is None:
        return None
    return datetime.combine(deadline_date, deadline_time or END_OF_DAY)


def is_deadline_passed(job: JobPosting, now: datetime) -> bool:
    if not job.has_deadline:
        return False
    deadline = deadline_at(job.deadline_date, job.deadline_time)
    return deadline is not None and now > deadline


def validate_job_form(form: JobPostingForm, now: datetime) -> JobPostingForm:
    """Raises ValueError with a user-facing message; returns the cleaned form."""
    title = form.title.strip()
    description = form.description.strip()
    if not title:
        raise ValueError("Job title is required")
    if not description:
        raise ValueError("Job description is required")
    if form.has_deadline:
        if not form.deadline_date:
            raise ValueError("Deadline date is required")
        if deadline_at(form.deadline_date, form.deadline_time) < now:
            raise ValueError("Deadline cannot be in the past")
        return JobPostingForm(
            title=title,
            description=description,
            has_deadline=True,
            deadline_date=form.deadline_date,
            deadline_time=form.deadline_time,
        )
    return JobPostingForm(title=title, description=description, has_deadline=False)


def to_job_read(job: JobPosting, now: datetime, saved_ids: Optional[Set[int]] = None) -> JobPostingRead:
    read = JobPostingRead.model_validate(job)
    read.is_saved = bool(saved_ids) and job.id in saved_ids
    read.deadline_passed = is_deadline_passed(job, now)
    return read


def filter_jobs(
    jobs: Iterable[JobPostingRead],
    *,
    country: Optional[str] = None,
    query: Optional[str] = None,
    saved_only: bool = False,
    owner_id: Optional[str] = None,
) -> List[JobPostingRead]:
    result = list(jobs)
    if saved_only:
        result = [j for j in result if j.is_saved]
    if owner_id:
        result = [j for j in result if j.profile_id == owner_id]
    if country:
        result = [j for j in result if j.owner_country == country]
    if query:
        q = query.lower()
        result = [
            j for j in result
            if q in j.title.lower()
            or q in j.description.lower()
            or q in (j.owner_city or "").lower()
            or q in (j.owner_country or "").lower()
            or q in f"{j.owner_first_name} {j.owner_last_name}".lower()
            or q in j.owner_username.lower()
        ]
    return result


async def saved_job_ids(db: AsyncSession, profile_id: str) -> Set[int]:
    result = await db.execute(
        select(SavedJob.job_posting_id).where(SavedJob.profile_id == profile_id)
    )
    return {row[0] for row in result.all()}


async def list_jobs(db: AsyncSession) -> List[JobPosting]:
    result = await db.execute(
        select(JobPosting).order_by(JobPosting.created_at.desc(), JobPosting.id.desc())
    )
    return list(result.scalars().all())


async def get_job_by_slug(db: AsyncSession, slug: str) -> Optional[JobPosting]:
    result = await db.execute(select(JobPosting).where(JobPosting.slug == slug))
    return result.scalar_one_or_none()


async def _unique_slug(db: AsyncSession, title: str) -> str:
    for _ in range(SLUG_ATTEMPTS):
        slug = generate_slug(title)
        if await get_job_by_slug(db, slug) is None:
            return slug
    raise RuntimeError("Could not generate a unique slug")


async def create_job(
    db: AsyncSession, owner: Profile, form: JobPostingForm, now: datetime
) -> JobPosting:
    cleaned = validate_job_form(form, now)
    job = JobPosting(
        profile_id=owner.id,
        title=cleaned.title,
        description=cleaned.description,
        has_deadline=cleaned.has_deadline,
        deadline_date=cleaned.deadline_date,
        deadline_time=cleaned.deadline_time,
        slug=await _unique_slug(db, cleaned.title),
        owner_username=owner.username,
        owner_first_name=owner.first_name or "",
        owner_last_name=owner.last_name or "",
        owner_city=owner.city,
        owner_country=owner.country,
        owner_profile_photo_url=owner.profile_photo_url,
    )
    db.add(job)
    await db.commit()
    await db.refresh(job)
    return job


async def update_job(
    db: AsyncSession, job: JobPosting, form: JobPostingForm, now: datetime
) -> JobPosting:
    cleaned = validate_job_form(form, now)
    job.title = cleaned.title
    job.description = cleaned.description
    job.has_deadline = cleaned.has_deadline
    job.deadline_date = cleaned.deadline_date
    job.deadline_time = cleaned.deadline_time
    await db.commit()
    await db.refresh(job)
    return job


async def delete_job(db: AsyncSession, job: JobPosting) -> None:
    await db.execute(delete(SavedJob).where(SavedJob.job_posting_id == job.id))
    await db.execute(delete(JobApplication).where(JobApplication.job_posting_id == job.id))
    await db.execute(delete(JobPosting).where(JobPosting.id == job.id))
    await db.commit()


async def is_saved(db: AsyncSession, profile_id: str, job_id: int) -> bool:
    result = await db.execute(
        select(SavedJob.id).where(
            SavedJob.profile_id == profile_id,
            SavedJob.job_posting_id == job_id,
        )
    )
    return result.first() is not None


async def is_applied(db: AsyncSession, profile_id: str, job_id: int) -> bool:
    result = await db.execute(
        select(JobApplication.id).where(
            JobApplication.profile_id == profile_id,
            JobApplication.job_posting_id == job_id,
        )
    )
    return result.first() is not None


async def save_job(db: AsyncSession, profile_id: str, job_id: int) -> None:
    if await is_saved(db, profile_id, job_id):
        return
    db.add(SavedJob(profile_id=profile_id, job_posting_id=job_id))
    await db.commit()


async def unsave_job(db: AsyncSession, profile_id: str, job_id: int) -> None:
    await db.execute(
        delete(SavedJob).where(
            SavedJob.profile_id == profile_id,
            SavedJob.job_posting_id == job_id,
        )
    )
    await db.commit()


async def apply_to_job(db: AsyncSession, profile_id: str, job: JobPosting, now: datetime) -> None:
    if await is_applied(db, profile_id, job.id):
        return
    if is_deadline_passed(job, now):
        raise ValueError("The deadline for this job has passed")
    db.add(JobApplication(profile_id=profile_id, job_posting_id=job.id))
    await db.commit()


async def list_applicants(db: AsyncSession, job_id: int) -> List[Applicant]:
    result = await db.execute(
        select(JobApplication, Profile)
        .join(Profile, Profile.id == JobApplication.profile_id)
        .where(JobApplication.job_posting_id == job_id)
        .order_by(JobApplication.created_at.desc(), JobApplication.id.desc())
    )
    return [
        Applicant(
            id=profile.id,
            username=profile.username or "Unknown",
            first_name=profile.first_name or "Unknown",
            last_name=profile.last_name or "User",
            profile_photo_url=profile.profile_photo_url,
            city=profile.city,
            country=profile.country,
            created_at=application.created_at,
        )
        for application, profile in result.all()
    ]
