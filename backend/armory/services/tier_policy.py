"""Subscription tier rules: allowed transitions, expiry arithmetic and prices.

Everything here is pure. ``now`` is always passed in so callers and tests
control the clock.
"""
import calendar
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Union

FREE = "free"
MONTHLY = "monthly"
YEARLY = "yearly"
LIFETIME = "lifetime"
PREMIUM_LIFETIME = "premium_lifetime"

TIERS = (FREE, MONTHLY, YEARLY, LIFETIME, PREMIUM_LIFETIME)
PAID_TIERS = (MONTHLY, YEARLY, LIFETIME, PREMIUM_LIFETIME)
RECURRING_TIERS = (MONTHLY, YEARLY)
LIFETIME_TIERS = (LIFETIME, PREMIUM_LIFETIME)

# Minor units, USD
PRICES = {
    MONTHLY: 500,
    YEARLY: 3000,
    LIFETIME: 15000,
    PREMIUM_LIFETIME: 30000,
}

TIER_LABELS = {
    FREE: "Free",
    MONTHLY: "Monthly",
    YEARLY: "Yearly",
    LIFETIME: "Lifetime",
    PREMIUM_LIFETIME: "Premium Lifetime",
}

LIFETIME_YEARS = 100

# Ordered by strength; a transition is an upgrade when the target ranks higher
_RANK = {tier: i for i, tier in enumerate(TIERS)}


@dataclass(frozen=True)
class Transition:
    tier: str
    expires_at: datetime


@dataclass(frozen=True)
class Rejection:
    reason: str


def add_months(moment: datetime, months: int) -> datetime:
    """Calendar month arithmetic, clamped to the last day of the target month"""
    month_index = moment.month - 1 + months
    year = moment.year + month_index // 12
    month = month_index % 12 + 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def add_years(moment: datetime, years: int) -> datetime:
    return add_months(moment, 12 * years)


def lifetime_expiry(now: datetime) -> datetime:
    """Sentinel far-future expiry for lifetime tiers"""
    return add_years(now, LIFETIME_YEARS)


def is_lifetime(tier: str) -> bool:
    return tier in LIFETIME_TIERS


def is_active(tier: str, expires_at: Optional[datetime], now: datetime) -> bool:
    """Active subscription: paid tier, and either lifetime or not yet expired"""
    if tier == FREE or tier not in TIERS:
        return False
    if is_lifetime(tier):
        return True
    return expires_at is not None and now < expires_at


def is_upgrade(current: str, target: str) -> bool:
    if current not in _RANK or target not in PAID_TIERS:
        return False
    return _RANK[target] > _RANK[current]


def _extend(base: datetime, tier: str) -> datetime:
    if tier == MONTHLY:
        return add_months(base, 1)
    return add_years(base, 1)


def transition(
    current_tier: str, current_expires_at: Optional[datetime], target: str, now: datetime
) -> Union[Transition, Rejection]:
    """Decide a purchase of ``target`` by a user currently on ``current_tier``.

    A subscription that is no longer active is evaluated as free, so an
    expired user may buy any paid tier again.
    """
    effective = current_tier if is_active(current_tier, current_expires_at, now) else FREE
    if not is_upgrade(effective, target):
        return Rejection(f"Cannot change subscription from {effective} to {target}")

    if target in RECURRING_TIERS:
        base = max(now, current_expires_at) if current_expires_at else now
        return Transition(target, _extend(base, target))

    if target == PREMIUM_LIFETIME and effective == LIFETIME and current_expires_at:
        return Transition(target, current_expires_at)
    return Transition(target, lifetime_expiry(now))


def renew(
    current_tier: str, current_expires_at: Optional[datetime], target: str, now: datetime
) -> Union[Transition, Rejection]:
    """Recurring renewal: same recurring tier, expiry pushed one period forward"""
    if target not in RECURRING_TIERS or current_tier != target:
        return Rejection(f"Cannot renew {target} for a {current_tier} subscription")
    base = max(now, current_expires_at) if current_expires_at else now
    return Transition(target, _extend(base, target))


def price_for(tier: str) -> int:
    return PRICES[tier]


def tier_for_amount(amount: Optional[int]) -> Optional[str]:
    """Best-effort tier from a paid amount in minor units"""
    if amount is None:
        return None
    for tier in (PREMIUM_LIFETIME, LIFETIME, YEARLY, MONTHLY):
        if amount >= PRICES[tier]:
            return tier
    return None


def tier_from_session_suffix(session_id: str) -> Optional[str]:
    """Tier encoded after the user id in ``cs_test_{user_id}[_{tier}]``.

    No suffix means monthly; an unrecognised suffix gives None.
    """
    _, _, rest = session_id.partition("cs_test_")
    _, _, suffix = rest.partition("_")
    if not suffix:
        return MONTHLY
    return suffix if suffix in PAID_TIERS else None


def label(tier: str) -> str:
    return TIER_LABELS.get(tier, tier)
