import logging
from datetime import date

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from core.clock import get_today
from core.config import settings
from core.database import get_db
from schemas.travel import SweepRequest, SweepResponse
from services.travel import sweep_expired_schedules

router = APIRouter(prefix="/admin", tags=["Admin"])
logger = logging.getLogger("uvicorn.error")


@router.post(
    "/sweep-travel",
    response_model=SweepResponse,
    summary="Delete travel schedules that ended before yesterday",
)
async def sweep_travel(
    payload: SweepRequest,
    db: AsyncSession = Depends(get_db),
    today: date = Depends(get_today),
) -> SweepResponse:
    if not settings.ADMIN_PASSWORD:
        logger.warning("Sweep requested but ADMIN_PASSWORD is not configured")
        raise HTTPException(status_code=503, detail="Admin password not configured")

    if payload.password != settings.ADMIN_PASSWORD:
        raise HTTPException(status_code=403, detail="Wrong password")

    try:
        deleted = await sweep_expired_schedules(db, today)
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.exception("Travel sweep failed: %s", exc)
        raise HTTPException(status_code=500, detail="Failed to cleanup expired schedules") from exc

    return SweepResponse(deleted=deleted)
