"""Stripe webhook router (signature-verified, rate limited for non-Stripe callers)"""
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from armory.core.database import get_db
from armory.core.errors import SignatureInvalid, Transient
from armory.core.logging import get_logger
from armory.core.rate_limit import check_webhook_rate_limit, too_many_requests
from armory.core.webhook_monitor import webhook_monitor
from armory.services import webhook_service

logger = get_logger(__name__)

router = APIRouter(tags=["webhooks"])


def _respond(status_code: int, content: dict, error: str = "") -> JSONResponse:
    webhook_monitor.record(status_code, error)
    return JSONResponse(status_code=status_code, content=content)


@router.post("/webhook")
async def stripe_webhook(request: Request, db: Session = Depends(get_db)):
    if not check_webhook_rate_limit(request):
        webhook_monitor.record(429, "rate limited")
        return too_many_requests()

    payload = await request.body()
    sig_header = request.headers.get("Stripe-Signature", "")

    try:
        event = webhook_service.verify_event(payload, sig_header)
    except SignatureInvalid as e:
        logger.warning(f"Stripe webhook signature verification failed: {e.__cause__ or e.message}")
        return _respond(400, {"detail": e.message}, e.message)

    try:
        outcome = await run_in_threadpool(webhook_service.process_event, db, event)
    except Transient as e:
        logger.error(f"Stripe webhook processing failed transiently: {event.get('type')} ({event.get('id')})")
        return _respond(500, {"detail": e.message}, e.message)
    except Exception as e:
        webhook_monitor.record(500, str(e))
        raise

    logger.info(f"Stripe webhook handled: {event.get('type')} ({event.get('id')}) -> {outcome.value}")
    return _respond(200, {"received": True, "outcome": outcome.value})
