import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from core.config import settings
from core.database import get_db
from core.security import get_completed_profile, get_current_profile, get_session_claims
from models.profile import Profile
from schemas.profile import (
    PhotoUploadResponse,
    ProfileBasicUpdate,
    ProfileRead,
    SocialLinksUpdate,
    StatusResponse,
    UsernameAvailability,
    UserType,
    VisibilityUpdate,
)
from services import profiles as profile_service
from services.identity import ensure_profile
from utils.s3 import delete_owner_objects, upload_profile_photo

router = APIRouter(prefix="/profile", tags=["profile"])
logger = logging.getLogger("uvicorn.error")


async def _store_photo(upload: UploadFile, owner_id: str) -> str:
    try:
        return await run_in_threadpool(upload_profile_photo, upload.file, owner_id)
    except ValueError as ve:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(ve))
    except Exception as e:
        logger.exception("Error uploading profile photo: %s", e)
        raise HTTPException(status_code=500, detail="Failed to update profile photo")


@router.get(
    "/me",
    response_model=ProfileRead,
    summary="My profile",
)
async def read_my_profile(current: Profile = Depends(get_current_profile)):
    return ProfileRead.model_validate(current)


@router.get(
    "/username-available",
    response_model=UsernameAvailability,
    summary="Check a username before submitting the setup form",
)
async def username_available(
    username: str = Query(..., min_length=1),
    db: AsyncSession = Depends(get_db),
    claims: dict = Depends(get_session_claims),
) -> UsernameAvailability:
    valid = profile_service.is_valid_username(username)
    taken = valid and await profile_service.is_username_taken(db, username, exclude_id=claims["sub"])
    return UsernameAvailability(username=username, valid=valid, available=valid and not taken)


@router.post(
    "/setup",
    response_model=ProfileRead,
    summary="Complete the profile setup wizard",
)
async def setup_profile(
    username: str = Form(""),
    first_name: str = Form(""),
    last_name: str = Form(""),
    user_type: UserType = Form(...),
    phone_number: Optional[str] = Form(None),
    city: Optional[str] = Form(None),
    country: Optional[str] = Form(None),
    bio: Optional[str] = Form(None),
    youtube_url: Optional[str] = Form(None),
    instagram_url: Optional[str] = Form(None),
    tiktok_url: Optional[str] = Form(None),
    is_public: bool = Form(False),
    is_collaborated: bool = Form(False),
    photo: Optional[UploadFile] = File(None),
    db: AsyncSession = Depends(get_db),
    claims: dict = Depends(get_session_claims),
):
    # sign-in may have failed to create the row
    try:
        current = await ensure_profile(db, claims)
    except (SQLAlchemyError, RuntimeError) as exc:
        await db.rollback()
        logger.exception("Error creating profile at setup: %s", exc)
        raise HTTPException(status_code=500, detail="Failed to save profile") from exc

    if current.is_profile_completed:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Profile already completed")

    fields = dict(
        username=username.strip() or current.username,
        first_name=first_name,
        last_name=last_name,
        user_type=user_type,
        phone_number=phone_number,
        city=city,
        country=country,
        bio=bio,
        youtube_url=youtube_url,
        instagram_url=instagram_url,
        tiktok_url=tiktok_url,
        is_public=is_public,
        is_collaborated=is_collaborated,
    )
    # Validate before uploading anything
    try:
        checked_username, _, _ = profile_service.validate_setup_fields(**fields)
        await profile_service.ensure_username_available(db, checked_username, current.id)
    except ValueError as ve:
        raise HTTPException(status_code=400, detail=str(ve))

    photo_url = None
    if photo is not None and photo.filename:
        photo_url = await _store_photo(photo, current.id)

    try:
        profile = await profile_service.complete_setup(db, current, profile_photo_url=photo_url, **fields)
    except ValueError as ve:
        raise HTTPException(status_code=400, detail=str(ve))
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.exception("Error completing profile setup: %s", exc)
        raise HTTPException(status_code=500, detail="Failed to save profile") from exc
    return ProfileRead.model_validate(profile)


@router.put(
    "/me/basic",
    response_model=ProfileRead,
    summary="Update names, contact and location (and bio for creators)",
)
async def update_basic_info(
    payload: ProfileBasicUpdate,
    db: AsyncSession = Depends(get_db),
    current: Profile = Depends(get_completed_profile),
):
    try:
        profile = await profile_service.update_basic_info(db, current, payload)
    except ValueError as ve:
        raise HTTPException(status_code=400, detail=str(ve))
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.exception("Error updating profile basic info: %s", exc)
        raise HTTPException(status_code=500, detail="Failed to update profile") from exc
    return ProfileRead.model_validate(profile)


@router.put(
    "/me/social",
    response_model=ProfileRead,
    summary="Update social media links (content creators)",
)
async def update_social_links(
    payload: SocialLinksUpdate,
    db: AsyncSession = Depends(get_db),
    current: Profile = Depends(get_completed_profile),
):
    try:
        profile = await profile_service.update_social_links(db, current, payload)
    except PermissionError as pe:
        raise HTTPException(status_code=403, detail=str(pe))
    except ValueError as ve:
        raise HTTPException(status_code=400, detail=str(ve))
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.exception("Error updating social media links: %s", exc)
        raise HTTPException(status_code=500, detail="Failed to update profile") from exc
    return ProfileRead.model_validate(profile)


@router.put(
    "/me/visibility",
    response_model=ProfileRead,
    summary="Public listing and collaboration flags",
)
async def update_visibility(
    payload: VisibilityUpdate,
    db: AsyncSession = Depends(get_db),
    current: Profile = Depends(get_completed_profile),
):
    try:
        profile = await profile_service.update_visibility(db, current, payload)
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.exception("Error updating profile visibility: %s", exc)
        raise HTTPException(status_code=500, detail="Failed to update profile") from exc
    return ProfileRead.model_validate(profile)


@router.post(
    "/me/photo",
    response_model=PhotoUploadResponse,
    summary="Replace my profile photo",
)
async def update_photo(
    photo: UploadFile = File(...),
    db: AsyncSession = Depends(get_db),
    current: Profile = Depends(get_completed_profile),
):
    url = await _store_photo(photo, current.id)
    try:
        await profile_service.set_profile_photo(db, current, url)
    except SQLAlchemyError as exc:
        # the uploaded object stays in the bucket
        await db.rollback()
        logger.exception("Error updating profile photo: %s", exc)
        raise HTTPException(status_code=500, detail="Failed to update profile photo") from exc
    return PhotoUploadResponse(url=url)


@router.delete(
    "/me",
    response_model=StatusResponse,
    summary="Delete my account, its data and its photos",
)
async def delete_my_profile(
    db: AsyncSession = Depends(get_db),
    current: Profile = Depends(get_current_profile),
):
    profile_id = current.id
    try:
        await profile_service.delete_profile_cascade(db, profile_id)
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.exception("Error deleting profile: %s", exc)
        raise HTTPException(status_code=500, detail="Failed to delete profile") from exc

    try:
        await run_in_threadpool(delete_owner_objects, profile_id)
    except Exception as e:  # noqa: BLE001
        logger.error("Error deleting profile photos: %s", e)

    response = JSONResponse(content=StatusResponse().model_dump())
    response.delete_cookie(settings.SESSION_COOKIE_NAME, path="/")
    return response
