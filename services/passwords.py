"""Email/password accounts: sign-up, sign-in and password reset."""
import logging
import re
import uuid
from datetime import datetime, timedelta
from typing import Optional

from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from core.config import settings
from core.security import ALGORITHM
from models.credential import PasswordCredential

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
PASSWORD_MIN_LENGTH = 8
# bcrypt ignores anything past 72 bytes
PASSWORD_MAX_BYTES = 72
RESET_PURPOSE = "password_reset"
INVALID_RESET_LINK = "This password reset link is invalid or has expired"


class InvalidCredentialsError(Exception):
    pass


def normalize_email(email: Optional[str]) -> str:
    email = (email or "").strip().lower()
    if not EMAIL_RE.match(email):
        raise ValueError("Please enter a valid email address")
    return email


def validate_new_password(password: str, confirm_password: Optional[str] = None) -> None:
    if len(password or "") < PASSWORD_MIN_LENGTH:
        raise ValueError("Password should be at least 8 characters long")
    if len(password.encode("utf-8")) > PASSWORD_MAX_BYTES:
        raise ValueError("Password should be at most 72 bytes long")
    if confirm_password is not None and password != confirm_password:
        raise ValueError("Passwords do not match")


async def hash_password(password: str) -> str:
    return await run_in_threadpool(pwd_context.hash, password)


async def verify_password(password: str, password_hash: str) -> bool:
    return await run_in_threadpool(pwd_context.verify, password, password_hash)


async def get_by_email(db: AsyncSession, email: str) -> Optional[PasswordCredential]:
    result = await db.execute(select(PasswordCredential).where(PasswordCredential.email == email))
    return result.scalar_one_or_none()


async def register(db: AsyncSession, email: str, password: str) -> PasswordCredential:
    """New email/password identity. The profile row is bootstrapped by the caller."""
    email = normalize_email(email)
    validate_new_password(password)
    if await get_by_email(db, email) is not None:
        raise ValueError("User already registered")

    credential = PasswordCredential(
        id=f"email_{uuid.uuid4().hex}",
        email=email,
        password_hash=await hash_password(password),
    )
    db.add(credential)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ValueError("User already registered")
    await db.refresh(credential)
    logger.info("Registered email identity %s", credential.id)
    return credential


async def authenticate(db: AsyncSession, email: str, password: str) -> PasswordCredential:
    credential = await get_by_email(db, (email or "").strip().lower())
    if credential is None or not await verify_password(password or "", credential.password_hash):
        raise InvalidCredentialsError("Invalid login credentials")
    return credential


def create_reset_token(credential: PasswordCredential) -> str:
    expires = datetime.utcnow() + timedelta(minutes=settings.PASSWORD_RESET_EXPIRE_MINUTES)
    return jwt.encode(
        {
            "sub": credential.id,
            "purpose": RESET_PURPOSE,
            "ver": credential.password_version,
            "exp": expires,
        },
        settings.SESSION_SECRET,
        algorithm=ALGORITHM,
    )


def reset_url_for(token: str) -> str:
    return f"{settings.SITE_URL.rstrip('/')}/auth/reset-password?token={token}"


async def issue_reset_token(db: AsyncSession, email: str) -> Optional[tuple[PasswordCredential, str]]:
    """Reset token for a registered email, or None when nobody uses it."""
    credential = await get_by_email(db, normalize_email(email))
    if credential is None:
        logger.info("Password reset requested for an unknown email")
        return None
    return credential, create_reset_token(credential)


async def reset_password(
    db: AsyncSession,
    token: str,
    password: str,
    confirm_password: str,
) -> PasswordCredential:
    """
    Sets a new password from a reset link. A link works once: the version
    claim must match the stored one, which the reset then bumps.
    """
    validate_new_password(password, confirm_password)
    try:
        payload = jwt.decode(token, settings.SESSION_SECRET, algorithms=[ALGORITHM])
    except JWTError:
        raise ValueError(INVALID_RESET_LINK)
    if payload.get("purpose") != RESET_PURPOSE:
        raise ValueError(INVALID_RESET_LINK)

    credential = await db.get(PasswordCredential, payload.get("sub"))
    if credential is None or payload.get("ver") != credential.password_version:
        raise ValueError(INVALID_RESET_LINK)

    credential.password_hash = await hash_password(password)
    credential.password_version = credential.password_version + 1
    await db.commit()
    await db.refresh(credential)
    logger.info("Password updated for %s", credential.id)
    return credential
