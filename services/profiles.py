"""Profile setup, editing, owner-snapshot refresh and account deletion."""
import logging
import re
from typing import Optional

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from models.credential import PasswordCredential
from models.job_application import JobApplication
from models.job_posting import JobPosting
from models.profile import Profile
from models.saved_job import SavedJob
from models.travel_schedule import TravelSchedule
from schemas.profile import ProfileBasicUpdate, SocialLinksUpdate, VisibilityUpdate

logger = logging.getLogger(__name__)

USERNAME_RE = re.compile(r"^[a-z0-9_]{3,20}$")
URL_RE = re.compile(r"^(https?://)?([\w-]+\.)+[\w-]+(/[\w\- ./?%&=]*)?$")
BIO_MAX_LENGTH = 500

SNAPSHOT_FIELDS = ("username", "first_name", "last_name", "city", "country", "profile_photo_url")

SOCIAL_LABELS = {
    "youtube_url": "YouTube",
    "instagram_url": "Instagram",
    "tiktok_url": "TikTok",
}


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    cleaned = value.strip()
    return cleaned or None


def normalize_url(url: Optional[str]) -> Optional[str]:
    url = _clean(url)
    if url is None:
        return None
    return url if url.startswith("http") else f"https://{url}"


def is_valid_username(username: str) -> bool:
    return bool(USERNAME_RE.match(username or ""))


def validate_bio(bio: Optional[str]) -> None:
    if bio and len(bio) > BIO_MAX_LENGTH:
        raise ValueError("Bio must be less than 500 characters")


def validate_social_links(links: dict) -> None:
    for field, label in SOCIAL_LABELS.items():
        value = _clean(links.get(field))
        if value and not URL_RE.match(value):
            raise ValueError(f"Please enter a valid {label} URL")


async def is_username_taken(db: AsyncSession, username: str, exclude_id: Optional[str] = None) -> bool:
    stmt = select(Profile.id).where(Profile.username == username)
    if exclude_id is not None:
        stmt = stmt.where(Profile.id != exclude_id)
    result = await db.execute(stmt)
    return result.first() is not None


async def ensure_username_available(db: AsyncSession, username: str, profile_id: str) -> None:
    if await is_username_taken(db, username, exclude_id=profile_id):
        raise ValueError("Username is already taken")


async def refresh_owner_snapshots(db: AsyncSession, profile: Profile) -> None:
    """Rewrite the owner snapshot on every posting of a business owner."""
    await db.execute(
        update(JobPosting)
        .where(JobPosting.profile_id == profile.id)
        .values(
            owner_username=profile.username,
            owner_first_name=profile.first_name or "",
            owner_last_name=profile.last_name or "",
            owner_city=profile.city,
            owner_country=profile.country,
            owner_profile_photo_url=profile.profile_photo_url,
        )
    )


def _snapshot(profile: Profile) -> tuple:
    return tuple(getattr(profile, field) for field in SNAPSHOT_FIELDS)


async def _commit_profile(db: AsyncSession, profile: Profile, before: tuple) -> Profile:
    if profile.is_business and _snapshot(profile) != before:
        await refresh_owner_snapshots(db, profile)
    await db.commit()
    await db.refresh(profile)
    return profile


def validate_setup_fields(
    *,
    username: str,
    first_name: str,
    last_name: str,
    user_type: str,
    bio: Optional[str] = None,
    youtube_url: Optional[str] = None,
    instagram_url: Optional[str] = None,
    tiktok_url: Optional[str] = None,
    **_,
) -> tuple:
    """Store-free checks of the setup form. Returns the stripped names."""
    username = (username or "").strip()
    first_name = (first_name or "").strip()
    last_name = (last_name or "").strip()
    if not username or not first_name or not last_name:
        raise ValueError("Username, first name, and last name are required")
    if not is_valid_username(username):
        raise ValueError(
            "Username must be 3-20 characters and can only contain lowercase "
            "letters, numbers, and underscores"
        )
    if user_type not in ("content_creator", "business_owner"):
        raise ValueError("Invalid user type")
    if user_type == "content_creator":
        validate_bio(bio)
        validate_social_links({
            "youtube_url": youtube_url,
            "instagram_url": instagram_url,
            "tiktok_url": tiktok_url,
        })
    return username, first_name, last_name


async def complete_setup(
    db: AsyncSession,
    profile: Profile,
    *,
    username: str,
    first_name: str,
    last_name: str,
    user_type: str,
    phone_number: Optional[str] = None,
    city: Optional[str] = None,
    country: Optional[str] = None,
    bio: Optional[str] = None,
    youtube_url: Optional[str] = None,
    instagram_url: Optional[str] = None,
    tiktok_url: Optional[str] = None,
    is_public: bool = False,
    is_collaborated: bool = False,
    profile_photo_url: Optional[str] = None,
) -> Profile:
    """
    Profile setup wizard. Validates everything before touching the row, then
    fills it in and marks it completed. Creator-only fields are cleared for
    business owners. An empty username keeps the generated one.
    """
    username, first_name, last_name = validate_setup_fields(
        username=(username or "").strip() or profile.username,
        first_name=first_name,
        last_name=last_name,
        user_type=user_type,
        bio=bio,
        youtube_url=youtube_url,
        instagram_url=instagram_url,
        tiktok_url=tiktok_url,
    )
    is_creator = user_type == "content_creator"
    await ensure_username_available(db, username, profile.id)

    before = _snapshot(profile)
    profile.username = username
    profile.first_name = first_name
    profile.last_name = last_name
    profile.phone_number = _clean(phone_number)
    profile.city = _clean(city)
    profile.country = _clean(country)
    profile.user_type = user_type
    profile.youtube_url = normalize_url(youtube_url) if is_creator else None
    profile.instagram_url = normalize_url(instagram_url) if is_creator else None
    profile.tiktok_url = normalize_url(tiktok_url) if is_creator else None
    profile.bio = (_clean(bio) if is_creator else None)
    profile.is_public = bool(is_public) if is_creator else False
    profile.is_collaborated = bool(is_collaborated) if is_creator else False
    if profile_photo_url is not None:
        profile.profile_photo_url = profile_photo_url
    profile.is_profile_completed = True
    return await _commit_profile(db, profile, before)


async def update_basic_info(db: AsyncSession, profile: Profile, payload: ProfileBasicUpdate) -> Profile:
    first_name = _clean(payload.first_name)
    last_name = _clean(payload.last_name)
    if not first_name or not last_name:
        raise ValueError("First name and last name are required")
    if profile.is_creator:
        validate_bio(payload.bio)

    before = _snapshot(profile)
    profile.first_name = first_name
    profile.last_name = last_name
    profile.phone_number = _clean(payload.phone_number)
    profile.city = _clean(payload.city)
    profile.country = _clean(payload.country)
    if profile.is_creator:
        profile.bio = _clean(payload.bio)
    return await _commit_profile(db, profile, before)


async def update_social_links(db: AsyncSession, profile: Profile, payload: SocialLinksUpdate) -> Profile:
    if not profile.is_creator:
        raise PermissionError("Only content creators can update social media links")
    validate_social_links(payload.model_dump())
    profile.youtube_url = normalize_url(payload.youtube_url)
    profile.instagram_url = normalize_url(payload.instagram_url)
    profile.tiktok_url = normalize_url(payload.tiktok_url)
    await db.commit()
    await db.refresh(profile)
    return profile


async def update_visibility(db: AsyncSession, profile: Profile, payload: VisibilityUpdate) -> Profile:
    profile.is_public = payload.is_public
    profile.is_collaborated = payload.is_collaborated
    await db.commit()
    await db.refresh(profile)
    return profile


async def set_profile_photo(db: AsyncSession, profile: Profile, url: str) -> Profile:
    before = _snapshot(profile)
    profile.profile_photo_url = url
    return await _commit_profile(db, profile, before)


async def delete_profile_cascade(db: AsyncSession, profile_id: str) -> bool:
    """
    Delete a profile and everything that hangs off it. Returns False when
    there was no such profile.
    """
    owned_jobs = select(JobPosting.id).where(JobPosting.profile_id == profile_id)
    await db.execute(delete(SavedJob).where(SavedJob.job_posting_id.in_(owned_jobs)))
    await db.execute(delete(JobApplication).where(JobApplication.job_posting_id.in_(owned_jobs)))
    await db.execute(delete(SavedJob).where(SavedJob.profile_id == profile_id))
    await db.execute(delete(JobApplication).where(JobApplication.profile_id == profile_id))
    await db.execute(delete(JobPosting).where(JobPosting.profile_id == profile_id))
    await db.execute(delete(TravelSchedule).where(TravelSchedule.profile_id == profile_id))
    await db.execute(delete(PasswordCredential).where(PasswordCredential.id == profile_id))
    result = await db.execute(delete(Profile).where(Profile.id == profile_id))
    await db.commit()
    deleted = bool(result.rowcount)
    if deleted:
        logger.info("Deleted profile %s and its related rows", profile_id)
    return deleted
