"""At-most-once Payment recording.

The checkout-success redirect and the Stripe webhook both finalise the same
purchase. Each computes the same logical purchase identity and records it
here; the unique index on (user_id, processor_payment_id) decides which one
wins.
"""
import enum
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from armory.models.payment import Payment
from armory.core.logging import get_logger

logger = get_logger(__name__)


class RecordResult(enum.Enum):
    INSERTED = "inserted"
    DUPLICATE = "duplicate"


@dataclass(frozen=True)
class PaymentFields:
    amount: int
    description: str
    tier: str
    currency: str = "usd"
    status: str = "succeeded"
    period_start: Optional[datetime] = None
    period_end: Optional[datetime] = None
    processor_subscription_id: Optional[str] = None
    is_renewal: bool = False


def purchase_identity(
    session_id: Optional[str] = None,
    subscription_id: Optional[str] = None,
    period_start: Optional[int] = None,
    event_id: Optional[str] = None,
) -> str:
    """Logical purchase identity, in priority order:
    checkout session, subscription + invoice period start, event id.
    """
    if session_id:
        return session_id
    if subscription_id and period_start is not None:
        return f"{subscription_id}:{period_start}"
    if event_id:
        return event_id
    raise ValueError("No identity available for this purchase")


def _initial_purchase_recorded(db: Session, user_id: int, subscription_id: str) -> bool:
    return (
        db.query(Payment)
        .filter(
            Payment.user_id == user_id,
            Payment.processor_subscription_id == subscription_id,
            Payment.is_renewal.is_(False),
        )
        .first()
        is not None
    )


def is_recorded(
    db: Session, user_id: int, key: str,
    subscription_id: Optional[str] = None, is_renewal: bool = False,
) -> bool:
    """Whether this purchase already has its Payment row"""
    existing = (
        db.query(Payment)
        .filter(Payment.user_id == user_id, Payment.processor_payment_id == key)
        .first()
    )
    if existing:
        logger.info(f"Payment already recorded: user_id={user_id}, key={key}")
        return True

    # The initial invoice and its checkout session describe one purchase
    if subscription_id and not is_renewal and _initial_purchase_recorded(db, user_id, subscription_id):
        logger.info(
            f"Initial purchase already recorded: user_id={user_id}, "
            f"subscription={subscription_id}, key={key}"
        )
        return True
    return False


def try_record(db: Session, user_id: int, key: str, fields: PaymentFields) -> RecordResult:
    """Insert the Payment inside the caller's transaction.

    On DUPLICATE nothing was written; a lost insert race also rolls the
    transaction back. The caller is expected to hold the user row lock.
    """
    if is_recorded(db, user_id, key, fields.processor_subscription_id, fields.is_renewal):
        return RecordResult.DUPLICATE

    db.add(
        Payment(
            user_id=user_id,
            amount=fields.amount,
            currency=fields.currency,
            status=fields.status,
            description=fields.description,
            processor_payment_id=key,
            processor_subscription_id=fields.processor_subscription_id,
            is_renewal=fields.is_renewal,
            tier=fields.tier,
            period_start=fields.period_start,
            period_end=fields.period_end,
        )
    )
    try:
        db.flush()
    except IntegrityError:
        db.rollback()
        logger.info(f"Concurrent payment insert lost the race: user_id={user_id}, key={key}")
        return RecordResult.DUPLICATE
    return RecordResult.INSERTED
