import logging

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from app.core.auth_dependency import get_db, get_settings
from app.core.config import Settings
from app.services import billing_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/billing", tags=["Billing Webhook"])


@router.post("/webhook")
async def stripe_webhook(
    request: Request,
    stripe_signature: str = Header(None),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    payload = await request.body()

    try:
        event = billing_service.construct_event(settings, payload, stripe_signature)
    except ValueError as e:
        logger.warning(f"Rejected Stripe webhook: {e}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    try:
        # Stripe lookups and DB writes are blocking
        handled = await run_in_threadpool(billing_service.handle_webhook_event, settings, event, db)
    except ValueError as e:
        # Acknowledge so Stripe does not retry an event we can never match
        logger.error(f"Stripe webhook {event.get('type')} not applied: {e}")
        return {"status": "ignored", "reason": str(e)}

    return {"status": "success" if handled else "ignored"}
