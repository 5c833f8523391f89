# routers/creators.py
import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from core.clock import get_today
from core.database import get_db
from schemas.travel import CreatorDirectory, CreatorWithTravel
from services.creator_directory import annotate_creator, build_directory, get_public_creator
from services.travel import sweep_quietly

router = APIRouter(prefix="/creators", tags=["creators"])
logger = logging.getLogger("uvicorn.error")


@router.get(
    "",
    response_model=CreatorDirectory,
    summary="Public creators with current/upcoming trips",
)
async def list_creators(
    country: Optional[str] = Query(None, description="Home or travel destination country"),
    q: Optional[str] = Query(None, description="Username, name or city"),
    db: AsyncSession = Depends(get_db),
    today: date = Depends(get_today),
) -> CreatorDirectory:
    await sweep_quietly(db, today)
    try:
        return await build_directory(db, today, country=country, query=q)
    except SQLAlchemyError as exc:
        logger.exception("Error fetching creators: %s", exc)
        raise HTTPException(status_code=500, detail="Failed to load creators") from exc


@router.get(
    "/{username}",
    response_model=CreatorWithTravel,
    summary="Public creator profile",
)
async def read_creator(
    username: str,
    db: AsyncSession = Depends(get_db),
    today: date = Depends(get_today),
) -> CreatorWithTravel:
    profile = await get_public_creator(db, username)
    if not profile:
        raise HTTPException(status_code=404, detail="Creator not found")
    if not profile.is_public:
        raise HTTPException(status_code=403, detail="This creator profile is private")
    return await annotate_creator(db, profile, today)
