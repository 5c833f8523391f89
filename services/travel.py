"""Travel schedules: visibility window, expiry sweep and the owner-scoped store."""
import enum
import logging
from datetime import date, timedelta
from typing import List, Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from models.profile import Profile
from models.travel_schedule import TravelSchedule
from schemas.travel import TravelScheduleForm, TravelScheduleRead

logger = logging.getLogger(__name__)

# A trip starts boosting the creator in search this many days before it begins
VISIBILITY_LEAD = timedelta(days=30)
# Rows are purged once end_date is more than this far in the past
EXPIRY_GRACE = timedelta(days=1)


class TravelState(str, enum.Enum):
    UPCOMING = "upcoming"
    VISIBLE = "visible"
    ACTIVE = "active"
    EXPIRED = "expired"


STATE_LABELS = {
    TravelState.UPCOMING: "Upcoming",
    TravelState.VISIBLE: "Visible in search",
    TravelState.ACTIVE: "Currently traveling",
    TravelState.EXPIRED: "Expired",
}


def evaluate_visibility(start_date: date, end_date: date, today: date) -> TravelState:
    """
    Classify a trip relative to today:

    upcoming  today < start - 30d
    visible   start - 30d <= today < start
    active    start <= today <= end
    expired   today > end
    """
    if today > end_date:
        return TravelState.EXPIRED
    if today >= start_date:
        return TravelState.ACTIVE
    if today >= start_date - VISIBILITY_LEAD:
        return TravelState.VISIBLE
    return TravelState.UPCOMING


def is_traveling(state: TravelState) -> bool:
    return state in (TravelState.VISIBLE, TravelState.ACTIVE)


def sweep_cutoff(today: date) -> date:
    return today - EXPIRY_GRACE


def validate_schedule_form(form: TravelScheduleForm, today: date) -> TravelScheduleForm:
    """Raises ValueError with a user-facing message; returns the cleaned form."""
    city = (form.city or "").strip()
    country = (form.country or "").strip()
    if not form.start_date or not form.end_date or not city or not country:
        raise ValueError("All fields are required")
    if form.start_date < today:
        raise ValueError("Start date cannot be in the past")
    if form.end_date < form.start_date:
        raise ValueError("End date must be after start date")
    return TravelScheduleForm(
        start_date=form.start_date,
        end_date=form.end_date,
        city=city,
        country=country,
    )


def to_schedule_read(schedule: TravelSchedule, today: date) -> TravelScheduleRead:
    state = evaluate_visibility(schedule.start_date, schedule.end_date, today)
    return TravelScheduleRead(
        id=schedule.id,
        profile_id=schedule.profile_id,
        start_date=schedule.start_date,
        end_date=schedule.end_date,
        city=schedule.city,
        country=schedule.country,
        state=state.value,
        state_label=STATE_LABELS[state],
        created_at=schedule.created_at,
        updated_at=schedule.updated_at,
    )


async def sweep_expired_schedules(
    db: AsyncSession,
    today: date,
    profile_id: Optional[str] = None,
) -> int:
    """
    Delete schedules whose end_date is before yesterday, optionally for one
    profile only. Idempotent; returns the number of rows removed.
    """
    stmt = delete(TravelSchedule).where(TravelSchedule.end_date < sweep_cutoff(today))
    if profile_id is not None:
        stmt = stmt.where(TravelSchedule.profile_id == profile_id)
    result = await db.execute(stmt)
    await db.commit()
    deleted = result.rowcount or 0
    if deleted:
        logger.info("Swept %s expired travel schedule(s) (profile=%s)", deleted, profile_id or "*")
    return deleted


async def sweep_quietly(db: AsyncSession, today: date, profile_id: Optional[str] = None) -> None:
    """Opportunistic sweep for page loads: a failure is logged, never raised."""
    try:
        await sweep_expired_schedules(db, today, profile_id)
    except Exception:  # noqa: BLE001
        await db.rollback()
        logger.exception("Error cleaning up expired schedules")


async def list_schedules(db: AsyncSession, profile_id: str) -> List[TravelSchedule]:
    result = await db.execute(
        select(TravelSchedule)
        .where(TravelSchedule.profile_id == profile_id)
        .order_by(TravelSchedule.start_date.asc())
    )
    return list(result.scalars().all())


async def list_schedules_in_window(db: AsyncSession, today: date) -> List[TravelSchedule]:
    """Schedules in the visible or active state today, earliest start first."""
    result = await db.execute(
        select(TravelSchedule)
        .where(
            TravelSchedule.start_date <= today + VISIBILITY_LEAD,
            TravelSchedule.end_date >= today,
        )
        .order_by(TravelSchedule.start_date.asc(), TravelSchedule.id.asc())
    )
    return list(result.scalars().all())


async def get_owned_schedule(
    db: AsyncSession, profile: Profile, schedule_id: int
) -> Optional[TravelSchedule]:
    result = await db.execute(
        select(TravelSchedule).where(
            TravelSchedule.id == schedule_id,
            TravelSchedule.profile_id == profile.id,
        )
    )
    return result.scalar_one_or_none()


async def create_schedule(
    db: AsyncSession, profile: Profile, form: TravelScheduleForm, today: date
) -> TravelSchedule:
    cleaned = validate_schedule_form(form, today)
    schedule = TravelSchedule(
        profile_id=profile.id,
        start_date=cleaned.start_date,
        end_date=cleaned.end_date,
        city=cleaned.city,
        country=cleaned.country,
    )
    db.add(schedule)
    await db.commit()
    await db.refresh(schedule)
    return schedule


async def update_schedule(
    db: AsyncSession,
    profile: Profile,
    schedule_id: int,
    form: TravelScheduleForm,
    today: date,
) -> Optional[TravelSchedule]:
    cleaned = validate_schedule_form(form, today)
    schedule = await get_owned_schedule(db, profile, schedule_id)
    if schedule is None:
        return None
    schedule.start_date = cleaned.start_date
    schedule.end_date = cleaned.end_date
    schedule.city = cleaned.city
    schedule.country = cleaned.country
    await db.commit()
    await db.refresh(schedule)
    return schedule


async def delete_schedule(db: AsyncSession, profile: Profile, schedule_id: int) -> bool:
    result = await db.execute(
        delete(TravelSchedule).where(
            TravelSchedule.id == schedule_id,
            TravelSchedule.profile_id == profile.id,
        )
    )
    await db.commit()
    return bool(result.rowcount)
