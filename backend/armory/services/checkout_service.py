"""Starting a purchase and finalising it when the user returns from Stripe"""
from datetime import datetime
from typing import Optional

import stripe
from sqlalchemy.orm import Session

from armory.core.config import settings
from armory.core.database import utcnow
from armory.core.errors import NotAnUpgrade, Transient, ValidationFailed
from armory.core.logging import get_logger
from armory.models.user import User
from armory.services import stripe_service, subscription_service, tier_policy
from armory.services.subscription_service import ApplyResult, PurchaseDetails

logger = get_logger(__name__)

TEST_SESSION_PREFIX = "cs_test_"
INVALID_TIER_MESSAGE = "Invalid subscription tier"
PAYMENTS_UNAVAILABLE_MESSAGE = "Payments are temporarily unavailable. Please try again later."

_INTERVALS = {tier_policy.MONTHLY: "month", tier_policy.YEARLY: "year"}


def _base_url() -> str:
    return settings.APP_BASE_URL.rstrip("/")


def synthetic_session_id(user_id: int, tier: str) -> str:
    return f"{TEST_SESSION_PREFIX}{user_id}_{tier}"


def begin_checkout(user: User, tier: str, now: Optional[datetime] = None) -> str:
    """Return the URL the user should be redirected to"""
    if tier not in tier_policy.PAID_TIERS:
        raise ValidationFailed(INVALID_TIER_MESSAGE)

    decision = tier_policy.transition(
        user.subscription_tier, user.subscription_expires_at, tier, now or utcnow()
    )
    if isinstance(decision, tier_policy.Rejection):
        raise NotAnUpgrade(
            f"You already have a {tier_policy.label(user.subscription_tier)} subscription. "
            "Please choose a higher plan."
        )

    if not settings.processor_enabled:
        if not settings.is_test:
            logger.error("Checkout attempted without a Stripe secret key outside test mode")
            raise Transient(PAYMENTS_UNAVAILABLE_MESSAGE)
        return f"{_base_url()}/payment/success?session_id={synthetic_session_id(user.id, tier)}"

    try:
        session = stripe_service.create_checkout_session(
            tier=tier,
            amount=tier_policy.price_for(tier),
            label=tier_policy.label(tier),
            recurring_interval=_INTERVALS.get(tier),
            client_reference_id=str(user.id),
            success_url=f"{_base_url()}/payment/success?session_id={{CHECKOUT_SESSION_ID}}",
            cancel_url=f"{_base_url()}/payment/cancel",
            customer_id=user.stripe_customer_id,
            customer_email=None if user.stripe_customer_id else user.email,
            metadata={"user_id": str(user.id), "tier": tier},
        )
    except stripe.StripeError as e:
        logger.error(f"Stripe checkout failed: user_id={user.id}, tier={tier} - {e}")
        raise Transient("We couldn't reach the payment processor. Please try again.") from e
    return session.url


def _parse_test_session(user: User, session_id: str) -> str:
    owner, _, _ = session_id[len(TEST_SESSION_PREFIX):].partition("_")
    if owner != str(user.id):
        raise ValidationFailed("This checkout session does not belong to your account")
    tier = tier_policy.tier_from_session_suffix(session_id)
    if tier is None:
        raise ValidationFailed("Unknown checkout session")
    return tier


def _resolve_processor_session(user: User, session_id: str) -> tuple[str, PurchaseDetails]:
    try:
        session = stripe_service.retrieve_checkout_session(session_id)
    except stripe.StripeError as e:
        logger.error(f"Stripe session lookup failed: session_id={session_id} - {e}")
        raise Transient() from e

    if session.get("client_reference_id") != str(user.id):
        raise ValidationFailed("This checkout session does not belong to your account")
    if session.get("payment_status") != "paid":
        raise ValidationFailed("Your payment has not been completed yet")

    tier = (session.get("metadata") or {}).get("tier")
    if tier not in tier_policy.PAID_TIERS:
        raise ValidationFailed(INVALID_TIER_MESSAGE)

    details = PurchaseDetails(
        currency=session.get("currency") or "usd",
        customer_id=session.get("customer"),
        subscription_id=session.get("subscription"),
    )
    return tier, details


def finalize_success(db: Session, user: User, session_id: str) -> ApplyResult:
    """Apply the purchase behind a checkout session, keyed by the session id"""
    if not session_id:
        raise ValidationFailed("Missing checkout session")

    if settings.processor_enabled:
        tier, details = _resolve_processor_session(user, session_id)
    elif settings.is_test and session_id.startswith(TEST_SESSION_PREFIX):
        tier, details = _parse_test_session(user, session_id), PurchaseDetails()
    else:
        raise ValidationFailed("Unknown checkout session")

    return subscription_service.apply_purchase(db, user.id, tier, session_id, details)
