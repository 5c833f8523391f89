# routers/auth.py
import logging
import smtplib
from typing import Optional
from urllib.parse import quote

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import JSONResponse, RedirectResponse, Response
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from core.config import settings
from core.database import get_db
from core.security import create_session_token, get_session_claims
from models.credential import PasswordCredential
from models.profile import Profile
from schemas.auth import (
    ForgotPasswordRequest,
    ResetPasswordRequest,
    SignInRequest,
    SignInResult,
    SignUpRequest,
)
from schemas.profile import StatusResponse
from services import passwords as password_service
from services.identity import PROFILE_SETUP_PATH, destination_for, reconcile_sign_in
from services.oauth import (
    SUPPORTED_PROVIDERS,
    OAuthError,
    build_authorization_url,
    exchange_code_for_user,
    identity_id_for,
    safe_redirect_path,
)
from services.passwords import InvalidCredentialsError
from utils.mailer import send_password_reset_email

router = APIRouter(tags=["Auth"])
logger = logging.getLogger("uvicorn.error")

SIGN_IN_PATH = "/auth"


def sign_in_redirect(reason: str) -> RedirectResponse:
    return RedirectResponse(url=f"{SIGN_IN_PATH}?error={quote(reason, safe='')}")


def set_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=token,
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite="lax",
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        path="/",
    )


def callback_uri(request: Request) -> str:
    return str(request.base_url).rstrip("/") + "/auth/callback"


@router.get(
    "/api/auth/oauth",
    summary="Redirect to the provider's consent screen",
)
async def oauth_start(
    request: Request,
    provider: Optional[str] = Query(None),
    redirect_to: str = Query("/", alias="redirectTo"),
):
    if provider not in SUPPORTED_PROVIDERS:
        return JSONResponse(status_code=400, content={"error": "Invalid or unsupported provider"})
    if not settings.GOOGLE_CLIENT_ID:
        return JSONResponse(status_code=500, content={"error": "Google OAuth not configured"})

    url = build_authorization_url(callback_uri(request), safe_redirect_path(redirect_to))
    logger.info("Redirecting to %s OAuth consent", provider)
    return RedirectResponse(url=url)


@router.get(
    "/auth/callback",
    summary="OAuth callback: code exchange, profile check, session cookie",
)
async def oauth_callback(
    request: Request,
    code: Optional[str] = Query(None),
    state: Optional[str] = Query(None),
    error: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    if error:
        logger.error("OAuth error from provider: %s", error)
        return sign_in_redirect(error)
    if not code:
        logger.error("Missing authorization code")
        return sign_in_redirect("missing_authorization_code")

    redirect_to = safe_redirect_path(state)
    try:
        google_user = await exchange_code_for_user(code, callback_uri(request))
        identity_id = identity_id_for(google_user)
        try:
            outcome = await reconcile_sign_in(
                db,
                identity_id,
                google_user["email"],
                first_name=google_user.get("given_name"),
                last_name=google_user.get("family_name"),
                photo_url=google_user.get("picture"),
            )
        except SQLAlchemyError:
            logger.exception("Error checking existing profile")
            return sign_in_redirect("profile_lookup_failed")
    except OAuthError as exc:
        logger.error("OAuth callback failed: %s", exc.reason)
        return sign_in_redirect(exc.reason)
    except Exception:  # noqa: BLE001
        logger.exception("OAuth callback error")
        return sign_in_redirect("callback_processing_failed")

    destination = destination_for(outcome, redirect_to)
    logger.info("Sign-in %s (%s), redirecting to %s", identity_id, outcome.value, destination)
    token, _ = create_session_token(
        identity_id,
        email=google_user["email"],
        given_name=google_user.get("given_name"),
        family_name=google_user.get("family_name"),
        picture=google_user.get("picture"),
    )
    response = RedirectResponse(url=destination)
    set_session_cookie(response, token)
    return response


async def _password_session(
    db: AsyncSession,
    credential: PasswordCredential,
    redirect_to: str,
) -> JSONResponse:
    try:
        outcome = await reconcile_sign_in(db, credential.id, credential.email)
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.exception("Error checking existing profile: %s", exc)
        raise HTTPException(status_code=500, detail="profile_lookup_failed") from exc

    destination = destination_for(outcome, redirect_to)
    logger.info("Sign-in %s (%s), next %s", credential.id, outcome.value, destination)
    token, _ = create_session_token(credential.id, email=credential.email)
    response = JSONResponse(content=SignInResult(profile_id=credential.id, next=destination).model_dump())
    set_session_cookie(response, token)
    return response


@router.post(
    "/api/auth/signup",
    response_model=SignInResult,
    summary="Create an email/password account and start a session",
)
async def sign_up(payload: SignUpRequest, db: AsyncSession = Depends(get_db)):
    try:
        credential = await password_service.register(db, payload.email, payload.password)
    except ValueError as ve:
        raise HTTPException(status_code=400, detail=str(ve))
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.exception("Error registering account: %s", exc)
        raise HTTPException(status_code=500, detail="Failed to create account") from exc
    return await _password_session(db, credential, "/")


@router.post(
    "/api/auth/signin",
    response_model=SignInResult,
    summary="Email/password sign-in",
)
async def sign_in(payload: SignInRequest, db: AsyncSession = Depends(get_db)):
    try:
        credential = await password_service.authenticate(db, payload.email, payload.password)
    except InvalidCredentialsError as exc:
        logger.warning("Failed password sign-in")
        raise HTTPException(status_code=401, detail=str(exc))
    return await _password_session(db, credential, safe_redirect_path(payload.redirect_to))


@router.post(
    "/api/auth/forgot-password",
    response_model=StatusResponse,
    summary="Email a password reset link",
)
async def forgot_password(payload: ForgotPasswordRequest, db: AsyncSession = Depends(get_db)):
    try:
        issued = await password_service.issue_reset_token(db, payload.email)
    except ValueError as ve:
        raise HTTPException(status_code=400, detail=str(ve))

    # same answer whether or not the email is registered
    if issued is not None:
        credential, token = issued
        try:
            await run_in_threadpool(
                send_password_reset_email,
                credential.email,
                password_service.reset_url_for(token),
            )
        except (smtplib.SMTPException, OSError) as e:
            logger.exception("Error sending password reset email: %s", e)
    return StatusResponse()


@router.post(
    "/api/auth/reset-password",
    response_model=StatusResponse,
    summary="Set a new password from a reset link",
)
async def reset_password(payload: ResetPasswordRequest, db: AsyncSession = Depends(get_db)):
    try:
        await password_service.reset_password(db, payload.token, payload.password, payload.confirm_password)
    except ValueError as ve:
        raise HTTPException(status_code=400, detail=str(ve))
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.exception("Error updating password: %s", exc)
        raise HTTPException(status_code=500, detail="Failed to update password") from exc
    return StatusResponse()


@router.post(
    "/auth/logout",
    response_model=StatusResponse,
    summary="Clear the session cookie",
)
async def logout():
    response = JSONResponse(content=StatusResponse().model_dump())
    response.delete_cookie(settings.SESSION_COOKIE_NAME, path="/")
    return response


@router.get(
    "/auth/session",
    summary="Who am I and where should the client go next",
)
async def session_status(
    claims: dict = Depends(get_session_claims),
    db: AsyncSession = Depends(get_db),
):
    current = await db.get(Profile, claims["sub"])
    if current is None:
        return {
            "profile_id": claims["sub"],
            "user_type": None,
            "is_profile_completed": False,
            "next": PROFILE_SETUP_PATH,
        }
    return {
        "profile_id": current.id,
        "user_type": current.user_type,
        "is_profile_completed": current.is_profile_completed,
        "next": "/" if current.is_profile_completed else PROFILE_SETUP_PATH,
    }
