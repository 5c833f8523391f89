# core/security.py
from datetime import datetime, timedelta
from typing import Mapping, Optional

from fastapi import Depends, HTTPException, Request
from fastapi.security import OAuth2PasswordBearer
from jose import jwt, JWTError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette import status
from svix.webhooks import Webhook, WebhookVerificationError

from core.config import settings
from core.database import get_db
from models.profile import Profile

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/oauth", auto_error=False)

ALGORITHM = "HS256"
SESSION_PURPOSE = "session"
SVIX_HEADERS = ("svix-id", "svix-timestamp", "svix-signature")


def create_session_token(profile_id: str, **claims) -> tuple[str, datetime]:
    """
    Signed session for an identity id. Extra claims (email, given_name,
    family_name, picture) let profile setup recreate a missing row.
    """
    expires = datetime.utcnow() + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    payload = {k: v for k, v in claims.items() if v is not None}
    payload.update({"sub": profile_id, "exp": expires, "purpose": SESSION_PURPOSE})
    token = jwt.encode(payload, settings.SESSION_SECRET, algorithm=ALGORITHM)
    return token, expires


def _credentials_exception() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )


def _extract_token(request: Request, bearer: Optional[str]) -> Optional[str]:
    return bearer or request.cookies.get(settings.SESSION_COOKIE_NAME)


def decode_session_token(token: str) -> dict:
    try:
        payload = jwt.decode(token, settings.SESSION_SECRET, algorithms=[ALGORITHM])
    except JWTError:
        raise _credentials_exception()
    if payload.get("sub") is None or payload.get("purpose") != SESSION_PURPOSE:
        raise _credentials_exception()
    return payload


async def _load_profile(token: str, db: AsyncSession) -> Profile:
    claims = decode_session_token(token)
    profile = await db.get(Profile, claims["sub"])
    if not profile:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Profile not found")
    return profile


async def get_session_claims(
    request: Request,
    bearer: Optional[str] = Depends(oauth2_scheme),
) -> dict:
    """Valid session claims whether or not the profile row exists yet."""
    token = _extract_token(request, bearer)
    if not token:
        raise _credentials_exception()
    return decode_session_token(token)


async def get_current_profile(
    request: Request,
    bearer: Optional[str] = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db),
) -> Profile:
    token = _extract_token(request, bearer)
    if not token:
        raise _credentials_exception()
    return await _load_profile(token, db)


async def get_completed_profile(
    profile: Profile = Depends(get_current_profile),
) -> Profile:
    if not profile.is_profile_completed:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Profile setup required")
    return profile


async def get_optional_profile(
    request: Request,
    bearer: Optional[str] = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db),
) -> Optional[Profile]:
    token = _extract_token(request, bearer)
    if not token:
        return None
    try:
        return await _load_profile(token, db)
    except HTTPException:
        return None


def verify_webhook_signature(payload: bytes, headers: Mapping[str, str], secret: str) -> dict:
    """
    Verifies a Svix-signed identity-provider webhook and returns the decoded
    JSON body. Raises HTTPException(400) if the headers are missing, the
    signature or timestamp is rejected, or the body is not JSON.
    """
    svix_headers = {name: headers.get(name) for name in SVIX_HEADERS}
    if not all(svix_headers.values()):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Error occured -- no svix headers",
        )

    try:
        return Webhook(secret).verify(payload, svix_headers)
    except WebhookVerificationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid webhook signature") from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Malformed webhook payload") from exc
