# routers/travel.py
import logging
from datetime import date
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Path, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from core.clock import get_today
from core.database import get_db
from core.security import get_completed_profile
from models.profile import Profile
from schemas.travel import TravelScheduleForm, TravelScheduleRead
from services import travel as travel_service

router = APIRouter(prefix="/travel", tags=["travel"])
logger = logging.getLogger("uvicorn.error")


def require_creator(current: Profile = Depends(get_completed_profile)) -> Profile:
    if not current.is_creator:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only content creators can manage travel schedules",
        )
    return current


@router.get(
    "",
    response_model=List[TravelScheduleRead],
    summary="My travel schedules (expired ones are swept first)",
)
async def list_my_schedules(
    db: AsyncSession = Depends(get_db),
    current: Profile = Depends(require_creator),
    today: date = Depends(get_today),
) -> List[TravelScheduleRead]:
    await travel_service.sweep_quietly(db, today, profile_id=current.id)
    try:
        schedules = await travel_service.list_schedules(db, current.id)
    except SQLAlchemyError as exc:
        logger.exception("Error fetching travel schedules: %s", exc)
        raise HTTPException(status_code=500, detail="Failed to load travel schedules") from exc
    return [travel_service.to_schedule_read(s, today) for s in schedules]


@router.post(
    "",
    response_model=TravelScheduleRead,
    status_code=status.HTTP_201_CREATED,
    summary="Add a trip",
)
async def create_schedule(
    form: TravelScheduleForm,
    db: AsyncSession = Depends(get_db),
    current: Profile = Depends(require_creator),
    today: date = Depends(get_today),
) -> TravelScheduleRead:
    try:
        schedule = await travel_service.create_schedule(db, current, form, today)
    except ValueError as ve:
        raise HTTPException(status_code=400, detail=str(ve))
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.exception("Error creating travel schedule: %s", exc)
        raise HTTPException(status_code=500, detail="Failed to create travel schedule") from exc
    return travel_service.to_schedule_read(schedule, today)


@router.put(
    "/{schedule_id}",
    response_model=TravelScheduleRead,
    summary="Edit one of my trips",
)
async def update_schedule(
    form: TravelScheduleForm,
    schedule_id: int = Path(..., description="Travel schedule ID"),
    db: AsyncSession = Depends(get_db),
    current: Profile = Depends(require_creator),
    today: date = Depends(get_today),
) -> TravelScheduleRead:
    try:
        schedule = await travel_service.update_schedule(db, current, schedule_id, form, today)
    except ValueError as ve:
        raise HTTPException(status_code=400, detail=str(ve))
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.exception("Error updating travel schedule: %s", exc)
        raise HTTPException(status_code=500, detail="Failed to update travel schedule") from exc
    if schedule is None:
        raise HTTPException(status_code=404, detail="Travel schedule not found")
    return travel_service.to_schedule_read(schedule, today)


@router.delete(
    "/{schedule_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete one of my trips",
)
async def delete_schedule(
    schedule_id: int = Path(..., description="Travel schedule ID"),
    db: AsyncSession = Depends(get_db),
    current: Profile = Depends(require_creator),
):
    try:
        deleted = await travel_service.delete_schedule(db, current, schedule_id)
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.exception("Error deleting travel schedule: %s", exc)
        raise HTTPException(status_code=500, detail="Failed to delete travel schedule") from exc
    if not deleted:
        raise HTTPException(status_code=404, detail="Travel schedule not found")
    return
