"""Admin dashboard statistics and the user list"""
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy import func as sa_func
from sqlalchemy.orm import Session

from armory.core.database import utcnow
from armory.models.user import User
from armory.services import tier_policy

PER_PAGE_CHOICES = (10, 25, 50, 100)
DEFAULT_PER_PAGE = 10
SORT_COLUMNS = {
    "email": User.email,
    "created_at": User.created_at,
    "last_login": User.last_attempt,
    "subscription_tier": User.subscription_tier,
    "deleted": User.deleted_at,
}
DEFAULT_SORT = "created_at"


@dataclass
class UserPage:
    users: list
    page: int
    per_page: int
    total: int
    sort_by: str
    sort_order: str

    @property
    def total_pages(self) -> int:
        return max(1, -(-self.total // self.per_page))


def _month_start(dt: datetime) -> datetime:
    return dt.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def _previous_month_start(month_start: datetime) -> datetime:
    if month_start.month == 1:
        return month_start.replace(year=month_start.year - 1, month=12)
    return month_start.replace(month=month_start.month - 1)


def growth_rate(current: int, previous: int) -> float:
    """Month-over-month growth in percent; 100 when starting from zero"""
    if previous == 0:
        return 100.0 if current > 0 else 0.0
    return round((current - previous) / previous * 100, 1)


def _count(db: Session, *criteria) -> int:
    return db.query(sa_func.count(User.id)).filter(*criteria).scalar() or 0


def dashboard_stats(db: Session, now: Optional[datetime] = None) -> dict:
    now = now or utcnow()
    this_month = _month_start(now)
    last_month = _previous_month_start(this_month)

    new_this_month = _count(db, User.created_at >= this_month)
    new_last_month = _count(db, User.created_at >= last_month, User.created_at < this_month)
    subscribed = _count(
        db,
        User.subscription_tier.in_(tier_policy.PAID_TIERS),
        User.subscription_expires_at > now,
    )
    return {
        "total_users": _count(db),
        "new_users_this_month": new_this_month,
        "new_users_last_month": new_last_month,
        "growth_rate": growth_rate(new_this_month, new_last_month),
        "subscribed_users": subscribed,
    }


def list_users(
    db: Session, page: int = 1, per_page: int = DEFAULT_PER_PAGE,
    sort_by: str = DEFAULT_SORT, sort_order: str = "desc",
) -> UserPage:
    """All users including deleted ones; unknown paging and sort values fall back to defaults"""
    if per_page not in PER_PAGE_CHOICES:
        per_page = DEFAULT_PER_PAGE
    if sort_by not in SORT_COLUMNS:
        sort_by = DEFAULT_SORT
    if sort_order not in ("asc", "desc"):
        sort_order = "desc"
    page = max(1, page)

    column = SORT_COLUMNS[sort_by]
    ordering = column.asc() if sort_order == "asc" else column.desc()
    total = db.query(sa_func.count(User.id)).execution_options(include_deleted=True).scalar() or 0
    users = db.query(User).execution_options(include_deleted=True).order_by(ordering, User.id.asc()).offset((page - 1) * per_page).limit(per_page).all()
    return UserPage(users=users, page=page, per_page=per_page, total=total, sort_by=sort_by, sort_order=sort_order)
