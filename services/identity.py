"""Profile provisioning driven by the identity provider and by OAuth sign-in."""
import enum
import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from core.id_generator import generate_username
from models.profile import Profile
from schemas.webhook import WebhookEvent
from services.profiles import delete_profile_cascade

logger = logging.getLogger(__name__)

PROFILE_SETUP_PATH = "/profile-setup"
BOOTSTRAP_ATTEMPTS = 3
USER_EVENTS = ("user.created", "user.updated", "user.deleted")


class SignInOutcome(str, enum.Enum):
    PROFILE_MISSING = "profile-missing"
    PROFILE_INCOMPLETE = "profile-incomplete"
    PROFILE_COMPLETE = "profile-complete"


class MissingEmailError(ValueError):
    pass


class MissingIdentityError(ValueError):
    pass


def primary_email(data: dict) -> Optional[str]:
    addresses = data.get("email_addresses") or []
    if not addresses:
        return None
    return addresses[0].get("email_address")


async def bootstrap_profile(
    db: AsyncSession,
    identity_id: str,
    email: Optional[str],
    first_name: Optional[str] = None,
    last_name: Optional[str] = None,
    photo_url: Optional[str] = None,
) -> Profile:
    """
    Skeleton profile for a first sign-in. A username collision on the random
    suffix is retried with a fresh suffix.
    """
    for attempt in range(1, BOOTSTRAP_ATTEMPTS + 1):
        profile = Profile(
            id=identity_id,
            username=generate_username(email),
            first_name=first_name or "",
            last_name=last_name or "",
            email=email,
            profile_photo_url=photo_url or None,
            user_type="content_creator",
            is_public=False,
            is_collaborated=False,
            is_profile_completed=False,
        )
        db.add(profile)
        try:
            await db.commit()
        except IntegrityError:
            await db.rollback()
            existing = await db.get(Profile, identity_id)
            if existing is not None:
                return existing
            logger.warning("Username collision bootstrapping %s (attempt %s)", identity_id, attempt)
            continue
        await db.refresh(profile)
        logger.info("Profile created for %s", identity_id)
        return profile
    raise RuntimeError(f"Could not bootstrap profile for {identity_id}")


async def handle_webhook_event(db: AsyncSession, event: WebhookEvent) -> str:
    """
    Apply a user.created / user.updated / user.deleted event to the profiles
    table. Returns a short status string. Raises MissingIdentityError for a
    user event without an id, MissingEmailError for a user.created event
    without an email, and lets store errors propagate.
    """
    data = event.data
    identity_id = data.get("id")
    logger.info("Webhook with an ID of %s and type of %s", identity_id, event.type)
    if event.type in USER_EVENTS and not identity_id:
        raise MissingIdentityError("No user id found")

    if event.type == "user.created":
        email = primary_email(data)
        if not email:
            raise MissingEmailError("No email found")
        if await db.get(Profile, identity_id) is not None:
            return "exists"
        await bootstrap_profile(
            db,
            identity_id,
            email,
            first_name=data.get("first_name"),
            last_name=data.get("last_name"),
            photo_url=data.get("image_url"),
        )
        return "created"

    if event.type == "user.updated":
        profile = await db.get(Profile, identity_id)
        if profile is None:
            return "missing"
        if "first_name" in data:
            profile.first_name = data["first_name"] or ""
        if "last_name" in data:
            profile.last_name = data["last_name"] or ""
        if "image_url" in data:
            profile.profile_photo_url = data["image_url"]
        email = primary_email(data)
        if email:
            profile.email = email
        await db.commit()
        return "updated"

    if event.type == "user.deleted":
        deleted = await delete_profile_cascade(db, identity_id)
        return "deleted" if deleted else "missing"

    return "ignored"


async def reconcile_sign_in(
    db: AsyncSession,
    identity_id: str,
    email: Optional[str],
    first_name: Optional[str] = None,
    last_name: Optional[str] = None,
    photo_url: Optional[str] = None,
) -> SignInOutcome:
    """
    Profile existence check after a successful code exchange. A missing
    profile is bootstrapped; a bootstrap failure is logged and swallowed so
    the profile setup screen can recover. Lookup errors propagate.
    """
    profile = await db.get(Profile, identity_id)
    if profile is None:
        try:
            await bootstrap_profile(db, identity_id, email, first_name, last_name, photo_url)
        except (SQLAlchemyError, RuntimeError):
            await db.rollback()
            logger.exception("Error creating profile in callback")
        return SignInOutcome.PROFILE_MISSING
    if not profile.is_profile_completed:
        return SignInOutcome.PROFILE_INCOMPLETE
    return SignInOutcome.PROFILE_COMPLETE


def destination_for(outcome: SignInOutcome, redirect_to: str) -> str:
    if outcome is SignInOutcome.PROFILE_COMPLETE:
        return redirect_to
    return PROFILE_SETUP_PATH


async def ensure_profile(db: AsyncSession, claims: dict) -> Profile:
    """
    Profile row for a signed-in identity. Recreates the skeleton row from the
    session claims when sign-in could not create it.
    """
    profile = await db.get(Profile, claims["sub"])
    if profile is not None:
        return profile
    logger.info("No profile for %s, bootstrapping at setup", claims["sub"])
    return await bootstrap_profile(
        db,
        claims["sub"],
        claims.get("email"),
        first_name=claims.get("given_name"),
        last_name=claims.get("family_name"),
        photo_url=claims.get("picture"),
    )
