"""Tier-dependent limits on firearms"""
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from armory.core.database import utcnow
from armory.core.errors import QuotaExceeded
from armory.models.gun import Gun
from armory.models.user import User
from armory.services import tier_policy

FREE_FIREARM_LIMIT = 2


@dataclass
class FirearmListing:
    items: list
    total_count: int
    has_more: bool


def has_active_subscription(user: User, now: Optional[datetime] = None) -> bool:
    return tier_policy.is_active(user.subscription_tier, user.subscription_expires_at, now or utcnow())


def count_firearms(db: Session, user: User) -> int:
    return db.query(Gun).filter(Gun.owner_id == user.id).count()


def ensure_can_create_firearm(db: Session, user: User, now: Optional[datetime] = None) -> None:
    """Raise QuotaExceeded when a user without an active subscription is at the limit"""
    if has_active_subscription(user, now):
        return
    if count_firearms(db, user) >= FREE_FIREARM_LIMIT:
        raise QuotaExceeded()


def list_visible_firearms(db: Session, user: User, now: Optional[datetime] = None) -> FirearmListing:
    """Oldest first; truncated to the free limit without an active subscription"""
    query = db.query(Gun).filter(Gun.owner_id == user.id).order_by(Gun.created_at.asc(), Gun.id.asc())
    if has_active_subscription(user, now):
        items = query.all()
        return FirearmListing(items=items, total_count=len(items), has_more=False)

    total = query.count()
    items = query.limit(FREE_FIREARM_LIMIT).all()
    return FirearmListing(items=items, total_count=total, has_more=total > len(items))
