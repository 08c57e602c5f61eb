"""The single writer of subscription state.

apply_purchase runs lock user row -> duplicate check -> tier policy -> record
payment -> update user, in one transaction. Both the checkout-success redirect
and the Stripe webhook go through it with the same purchase identity.
"""
import enum
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

import stripe
from sqlalchemy.orm import Session

from armory.core.config import settings
from armory.core.database import in_transaction, utcnow
from armory.core.errors import AlreadyExists, NotFound, Transient, ValidationFailed
from armory.core.logging import get_logger
from armory.models.user import User
from armory.services import payment_guard, stripe_service, tier_policy
from armory.services.payment_guard import PaymentFields, RecordResult

logger = get_logger(__name__)

NOT_CANCELLABLE_MESSAGE = "You don't have an active recurring subscription to cancel."
ALREADY_CANCELED_MESSAGE = "Your subscription is already scheduled for cancellation."


class ApplyOutcome(enum.Enum):
    APPLIED = "applied"
    DUPLICATE = "duplicate"
    REJECTED = "rejected"


@dataclass(frozen=True)
class ApplyResult:
    outcome: ApplyOutcome
    reason: str = ""

    @property
    def succeeded(self) -> bool:
        """Applied and Duplicate both mean the purchase is in effect"""
        return self.outcome in (ApplyOutcome.APPLIED, ApplyOutcome.DUPLICATE)


@dataclass(frozen=True)
class PurchaseDetails:
    """Processor-side facts about a purchase"""

    currency: str = "usd"
    customer_id: Optional[str] = None
    subscription_id: Optional[str] = None
    is_renewal: bool = False


def _lock_user(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.id == user_id).with_for_update().first()
    if user is None:
        raise NotFound(f"User {user_id} not found")
    return user


def _payment_fields(
    target_tier: str, previous_expires_at: Optional[datetime], new_expires_at: datetime,
    details: PurchaseDetails, now: datetime,
) -> PaymentFields:
    period_start = None
    period_end = None
    if target_tier in tier_policy.RECURRING_TIERS:
        period_start = max(now, previous_expires_at) if previous_expires_at else now
        period_end = new_expires_at
    return PaymentFields(
        amount=tier_policy.price_for(target_tier),
        currency=details.currency,
        description=f"{tier_policy.label(target_tier)} Subscription",
        tier=target_tier,
        period_start=period_start,
        period_end=period_end,
        processor_subscription_id=details.subscription_id,
        is_renewal=details.is_renewal,
    )


def apply_purchase(
    db: Session,
    user_id: int,
    target_tier: str,
    dedup_key: str,
    details: Optional[PurchaseDetails] = None,
    now: Optional[datetime] = None,
) -> ApplyResult:
    """Apply a completed purchase exactly once per (user_id, dedup_key)"""
    details = details or PurchaseDetails()
    now = now or utcnow()

    def _apply(db: Session) -> ApplyResult:
        user = _lock_user(db, user_id)

        # Before the policy: a redelivery finds the user already on the target tier
        if payment_guard.is_recorded(db, user_id, dedup_key, details.subscription_id, details.is_renewal):
            return ApplyResult(ApplyOutcome.DUPLICATE)

        policy = tier_policy.renew if details.is_renewal else tier_policy.transition
        decision = policy(user.subscription_tier, user.subscription_expires_at, target_tier, now)
        if isinstance(decision, tier_policy.Rejection):
            logger.info(f"Purchase rejected: user_id={user_id}, key={dedup_key}, reason={decision.reason}")
            return ApplyResult(ApplyOutcome.REJECTED, decision.reason)

        fields = _payment_fields(target_tier, user.subscription_expires_at, decision.expires_at, details, now)
        if payment_guard.try_record(db, user_id, dedup_key, fields) is RecordResult.DUPLICATE:
            return ApplyResult(ApplyOutcome.DUPLICATE)

        user.subscription_tier = decision.tier
        user.subscription_expires_at = decision.expires_at
        user.subscription_canceled = False
        if details.customer_id:
            user.stripe_customer_id = details.customer_id
        if details.subscription_id:
            user.stripe_subscription_id = details.subscription_id
        logger.info(
            f"Purchase applied: user_id={user_id}, tier={decision.tier}, "
            f"expires_at={decision.expires_at.isoformat()}, key={dedup_key}"
        )
        return ApplyResult(ApplyOutcome.APPLIED)

    return in_transaction(db, _apply)


def ensure_cancellable(user: User) -> None:
    if user.subscription_tier not in tier_policy.RECURRING_TIERS:
        raise ValidationFailed(NOT_CANCELLABLE_MESSAGE)
    if user.subscription_canceled:
        raise AlreadyExists(ALREADY_CANCELED_MESSAGE)


def cancel(db: Session, user_id: int) -> User:
    """Stop renewal. Tier and expiry are unchanged; access lasts until expiry."""

    def _cancel(db: Session) -> User:
        user = _lock_user(db, user_id)
        ensure_cancellable(user)

        if settings.processor_enabled:
            _cancel_at_processor(user)

        user.subscription_canceled = True
        logger.info(f"Subscription canceled: user_id={user_id}, tier={user.subscription_tier}")
        return user

    return in_transaction(db, _cancel)


def _cancel_at_processor(user: User) -> None:
    try:
        subscription_id = user.stripe_subscription_id
        if not subscription_id and user.stripe_customer_id:
            subscription_id = stripe_service.find_active_subscription_id(user.stripe_customer_id)
        if not subscription_id:
            raise ValidationFailed(
                "We couldn't find your subscription with the payment processor. Please contact support."
            )
        stripe_service.cancel_subscription(subscription_id, at_period_end=True)
    except stripe.StripeError as e:
        logger.error(f"Stripe cancellation failed: user_id={user.id} - {e}")
        raise Transient() from e
