# routers/webhooks.py
import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import PlainTextResponse
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import settings
from core.database import get_db
from core.security import verify_webhook_signature
from schemas.webhook import WebhookEvent
from services.identity import MissingEmailError, MissingIdentityError, handle_webhook_event

router = APIRouter(prefix="/api/webhooks", tags=["Webhooks"])
logger = logging.getLogger("uvicorn.error")


@router.post(
    "/clerk",
    response_class=PlainTextResponse,
    summary="Identity-provider user events → profile rows",
)
async def clerk_webhook(request: Request, db: AsyncSession = Depends(get_db)):
    if not settings.CLERK_WEBHOOK_SECRET:
        logger.error("CLERK_WEBHOOK_SECRET is not configured")
        raise HTTPException(status_code=500, detail="Webhook secret not configured")

    body = await request.body()
    try:
        payload = verify_webhook_signature(body, request.headers, settings.CLERK_WEBHOOK_SECRET)
    except HTTPException as exc:
        logger.warning("Error verifying webhook: %s", exc.detail)
        raise

    try:
        event = WebhookEvent.model_validate(payload)
    except ValidationError:
        raise HTTPException(status_code=400, detail="Malformed webhook payload")

    try:
        result = await handle_webhook_event(db, event)
    except MissingIdentityError as exc:
        logger.error("Webhook %s without a user id", event.type)
        raise HTTPException(status_code=400, detail=str(exc))
    except MissingEmailError as exc:
        logger.error("No email found for user %s", event.data.get("id"))
        raise HTTPException(status_code=400, detail=str(exc))
    except (SQLAlchemyError, RuntimeError) as exc:
        await db.rollback()
        logger.exception("Webhook processing error: %s", exc)
        raise HTTPException(status_code=500, detail="Internal server error") from exc

    logger.info("Webhook %s processed: %s", event.type, result)
    return "Webhook processed successfully"
