"""Stripe webhook verification and dispatch to the subscription mutator"""
import enum
import json
from typing import Optional

import stripe
from sqlalchemy.orm import Session

from armory.core.config import settings
from armory.core.errors import NotFound, SignatureInvalid
from armory.core.logging import get_logger
from armory.models.user import User
from armory.services import stripe_service, subscription_service, tier_policy
from armory.services.payment_guard import purchase_identity
from armory.services.subscription_service import ApplyOutcome, PurchaseDetails

logger = get_logger(__name__)

TEST_SIGNATURE = "test_signature"
INITIAL_BILLING_REASON = "subscription_create"


class WebhookOutcome(enum.Enum):
    APPLIED = "applied"
    DUPLICATE = "duplicate"
    REJECTED = "rejected"
    IGNORED = "ignored"


def verify_event(payload: bytes, sig_header: str):
    """Verified event, or SignatureInvalid"""
    if settings.is_test and sig_header == TEST_SIGNATURE:
        try:
            return json.loads(payload)
        except ValueError as e:
            raise SignatureInvalid("Invalid payload") from e

    if not settings.STRIPE_WEBHOOK_SECRET:
        raise SignatureInvalid("Webhook secret is not configured")
    try:
        return stripe_service.construct_webhook_event(payload, sig_header, settings.STRIPE_WEBHOOK_SECRET)
    except (ValueError, stripe.SignatureVerificationError) as e:
        raise SignatureInvalid() from e


def process_event(db: Session, event) -> WebhookOutcome:
    """Dispatch a verified event. Transient storage errors propagate."""
    event_id = event.get("id")
    event_type = event.get("type")
    data = (event.get("data") or {}).get("object") or {}

    if event_type == "checkout.session.completed":
        return _handle_checkout_completed(db, event_id, data)
    if event_type == "invoice.paid":
        return _handle_invoice_paid(db, event_id, data)

    logger.info(f"Unhandled Stripe event acknowledged: {event_type} ({event_id})")
    return WebhookOutcome.IGNORED


# =========================================================
# Helpers
# =========================================================

def _as_int(value) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _resolve_tier(metadata: dict, amount: Optional[int]) -> Optional[str]:
    """Metadata is authoritative; the amount mapping is a test-mode convenience"""
    tier = metadata.get("tier")
    if tier in tier_policy.PAID_TIERS:
        return tier
    if settings.is_test:
        return tier_policy.tier_for_amount(amount)
    return None


def _apply(db: Session, user_id: int, tier: str, key: str, details: PurchaseDetails) -> WebhookOutcome:
    try:
        result = subscription_service.apply_purchase(db, user_id, tier, key, details)
    except NotFound:
        logger.warning(f"Stripe webhook for unknown user acknowledged: user_id={user_id}, key={key}")
        return WebhookOutcome.IGNORED

    if result.outcome is ApplyOutcome.APPLIED:
        return WebhookOutcome.APPLIED
    if result.outcome is ApplyOutcome.DUPLICATE:
        logger.info(f"Stripe webhook duplicate acknowledged: user_id={user_id}, key={key}")
        return WebhookOutcome.DUPLICATE
    logger.warning(f"Stripe webhook purchase rejected: user_id={user_id}, key={key}, reason={result.reason}")
    return WebhookOutcome.REJECTED


# =========================================================
# Event handlers
# =========================================================

def _handle_checkout_completed(db: Session, event_id: str, session: dict) -> WebhookOutcome:
    """checkout.session.completed: the initial purchase"""
    metadata = session.get("metadata") or {}
    user_id = _as_int(session.get("client_reference_id")) or _as_int(metadata.get("user_id"))
    if not user_id:
        logger.warning(f"checkout.session.completed without user reference: {event_id}")
        return WebhookOutcome.IGNORED

    tier = _resolve_tier(metadata, session.get("amount_total"))
    if not tier:
        logger.warning(f"checkout.session.completed without resolvable tier: {event_id}")
        return WebhookOutcome.IGNORED

    key = purchase_identity(session_id=session.get("id"), event_id=event_id)
    details = PurchaseDetails(
        currency=session.get("currency") or "usd",
        customer_id=session.get("customer"),
        subscription_id=session.get("subscription"),
    )
    return _apply(db, user_id, tier, key, details)


def _invoice_subscription(invoice: dict) -> tuple[Optional[str], dict]:
    """Subscription id and metadata, for both the legacy and the ``parent`` invoice shapes"""
    parent = (invoice.get("parent") or {}).get("subscription_details") or {}
    legacy = invoice.get("subscription_details") or {}
    subscription_id = invoice.get("subscription") or parent.get("subscription")
    metadata = legacy.get("metadata") or parent.get("metadata") or invoice.get("metadata") or {}
    return subscription_id, metadata


def _invoice_period_start(invoice: dict) -> Optional[int]:
    lines = (invoice.get("lines") or {}).get("data") or []
    if lines:
        start = (lines[0].get("period") or {}).get("start")
        if start is not None:
            return start
    return invoice.get("period_start")


def _invoice_user_id(db: Session, metadata: dict, customer_id: Optional[str], subscription_id: Optional[str]) -> Optional[int]:
    user_id = _as_int(metadata.get("user_id"))
    if user_id:
        return user_id
    query = db.query(User.id)
    if customer_id:
        row = query.filter(User.stripe_customer_id == customer_id).first()
        if row:
            return row[0]
    if subscription_id:
        row = query.filter(User.stripe_subscription_id == subscription_id).first()
        if row:
            return row[0]
    return None


def _handle_invoice_paid(db: Session, event_id: str, invoice: dict) -> WebhookOutcome:
    """invoice.paid: a renewal, or the asynchronous completion of the initial purchase"""
    subscription_id, metadata = _invoice_subscription(invoice)
    customer_id = invoice.get("customer")

    user_id = _invoice_user_id(db, metadata, customer_id, subscription_id)
    if not user_id:
        logger.warning(f"invoice.paid for unknown customer acknowledged: {event_id}")
        return WebhookOutcome.IGNORED

    tier = _resolve_tier(metadata, invoice.get("amount_paid"))
    if not tier:
        logger.warning(f"invoice.paid without resolvable tier: {event_id}")
        return WebhookOutcome.IGNORED

    key = purchase_identity(
        session_id=metadata.get("checkout_session_id"),
        subscription_id=subscription_id,
        period_start=_invoice_period_start(invoice),
        event_id=event_id,
    )
    details = PurchaseDetails(
        currency=invoice.get("currency") or "usd",
        customer_id=customer_id,
        subscription_id=subscription_id,
        is_renewal=invoice.get("billing_reason") != INITIAL_BILLING_REASON,
    )
    return _apply(db, user_id, tier, key, details)
