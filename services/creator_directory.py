"""Public creator directory: trip annotations, filters and ordering."""
from datetime import date
from typing import Dict, Iterable, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from models.profile import Profile
from models.travel_schedule import TravelSchedule
from schemas.travel import CreatorDirectory, CreatorWithTravel
from services.travel import evaluate_visibility, is_traveling, list_schedules_in_window


def to_creator(profile: Profile) -> CreatorWithTravel:
    return CreatorWithTravel(
        id=profile.id,
        username=profile.username,
        first_name=profile.first_name or "",
        last_name=profile.last_name or "",
        profile_photo_url=profile.profile_photo_url,
        city=profile.city,
        country=profile.country,
        bio=profile.bio,
        instagram_url=profile.instagram_url,
        youtube_url=profile.youtube_url,
        tiktok_url=profile.tiktok_url,
        is_collaborated=profile.is_collaborated,
        is_public=profile.is_public,
        user_type=profile.user_type,
    )


def merge_travel(
    creators: Iterable[CreatorWithTravel],
    schedules: Iterable[TravelSchedule],
    today: date,
) -> List[CreatorWithTravel]:
    """
    Attach the first schedule (in iteration order) whose window covers today
    to each creator. Later overlapping trips of the same creator are ignored.
    """
    first_trip: Dict[str, TravelSchedule] = {}
    for schedule in schedules:
        if schedule.profile_id in first_trip:
            continue
        state = evaluate_visibility(schedule.start_date, schedule.end_date, today)
        if is_traveling(state):
            first_trip[schedule.profile_id] = schedule

    merged: List[CreatorWithTravel] = []
    for creator in creators:
        trip = first_trip.get(creator.id)
        if trip is None:
            merged.append(creator)
            continue
        state = evaluate_visibility(trip.start_date, trip.end_date, today)
        merged.append(creator.model_copy(update={
            "is_traveling": True,
            "travel_city": trip.city,
            "travel_country": trip.country,
            "travel_start_date": trip.start_date,
            "travel_end_date": trip.end_date,
            "travel_state": state.value,
        }))
    return merged


def _traveling_to(creator: CreatorWithTravel, country: str) -> bool:
    return creator.is_traveling and creator.travel_country == country


def filter_creators(
    creators: Iterable[CreatorWithTravel],
    country: Optional[str] = None,
    query: Optional[str] = None,
) -> List[CreatorWithTravel]:
    result = list(creators)
    if country:
        result = [c for c in result if c.country == country or _traveling_to(c, country)]
    if query:
        q = query.lower()
        result = [
            c for c in result
            if q in c.username.lower()
            or q in c.first_name.lower()
            or q in c.last_name.lower()
            or q in f"{c.first_name} {c.last_name}".lower()
            or q in (c.city or "").lower()
        ]
    return result


def sort_creators(
    creators: Iterable[CreatorWithTravel],
    country: Optional[str] = None,
) -> List[CreatorWithTravel]:
    """Travelers to the filtered country first, then username, case-insensitive."""
    if country:
        return sorted(
            creators,
            key=lambda c: (not _traveling_to(c, country), c.username.casefold()),
        )
    return sorted(creators, key=lambda c: c.username.casefold())


async def load_public_creators(db: AsyncSession) -> List[CreatorWithTravel]:
    result = await db.execute(
        select(Profile)
        .where(
            Profile.is_public.is_(True),
            Profile.user_type == "content_creator",
        )
        .order_by(Profile.username.asc())
    )
    return [to_creator(p) for p in result.scalars().all()]


async def build_directory(
    db: AsyncSession,
    today: date,
    country: Optional[str] = None,
    query: Optional[str] = None,
) -> CreatorDirectory:
    creators = await load_public_creators(db)
    schedules = await list_schedules_in_window(db, today)
    merged = merge_travel(creators, schedules, today)
    shown = sort_creators(filter_creators(merged, country, query), country)
    return CreatorDirectory(total=len(merged), count=len(shown), creators=shown)


async def get_public_creator(db: AsyncSession, username: str) -> Optional[Profile]:
    result = await db.execute(
        select(Profile).where(
            Profile.username == username,
            Profile.user_type == "content_creator",
        )
    )
    return result.scalar_one_or_none()


async def annotate_creator(db: AsyncSession, profile: Profile, today: date) -> CreatorWithTravel:
    result = await db.execute(
        select(TravelSchedule)
        .where(TravelSchedule.profile_id == profile.id)
        .order_by(TravelSchedule.start_date.asc(), TravelSchedule.id.asc())
    )
    return merge_travel([to_creator(profile)], result.scalars().all(), today)[0]
