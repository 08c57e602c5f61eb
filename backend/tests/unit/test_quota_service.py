"""
Unit tests for the free-tier firearm limit.
"""
from datetime import datetime, timedelta

import pytest

from armory.core.errors import QuotaExceeded
from armory.models.caliber import Caliber
from armory.models.gun import Gun
from armory.models.manufacturer import Manufacturer
from armory.models.weapon_type import WeaponType
from armory.services import quota_service, tier_policy

from support import make_user

NOW = datetime(2025, 3, 15, 12, 0, 0)


def add_guns(db, user, count):
    weapon_type = db.query(WeaponType).first()
    caliber = db.query(Caliber).first()
    manufacturer = db.query(Manufacturer).first()
    guns = []
    for i in range(count):
        gun = Gun(
            owner_id=user.id,
            name=f"Gun {i + 1}",
            weapon_type_id=weapon_type.id,
            caliber_id=caliber.id,
            manufacturer_id=manufacturer.id,
            created_at=NOW + timedelta(minutes=i),
        )
        db.add(gun)
        guns.append(gun)
    db.commit()
    return guns


class TestEnsureCanCreate:
    def test_free_user_under_limit(self, db, free_user):
        add_guns(db, free_user, 1)
        quota_service.ensure_can_create_firearm(db, free_user, NOW)

    def test_free_user_at_limit(self, db, free_user):
        add_guns(db, free_user, 2)

        with pytest.raises(QuotaExceeded) as exc_info:
            quota_service.ensure_can_create_firearm(db, free_user, NOW)

        assert "limit of 2 guns" in exc_info.value.message

    def test_active_subscriber_is_unlimited(self, db):
        user = make_user(db, tier=tier_policy.MONTHLY, expires_at=NOW + timedelta(days=3))
        add_guns(db, user, 5)

        quota_service.ensure_can_create_firearm(db, user, NOW)

    def test_expired_subscriber_is_limited(self, db):
        user = make_user(db, tier=tier_policy.YEARLY, expires_at=NOW - timedelta(days=1))
        add_guns(db, user, 2)

        with pytest.raises(QuotaExceeded):
            quota_service.ensure_can_create_firearm(db, user, NOW)

    def test_deleted_guns_do_not_count(self, db, free_user):
        guns = add_guns(db, free_user, 2)
        guns[0].deleted_at = NOW
        db.commit()

        quota_service.ensure_can_create_firearm(db, free_user, NOW)


class TestVisibleFirearms:
    def test_free_user_sees_oldest_two(self, db, free_user):
        add_guns(db, free_user, 4)

        listing = quota_service.list_visible_firearms(db, free_user, NOW)

        assert [g.name for g in listing.items] == ["Gun 1", "Gun 2"]
        assert listing.total_count == 4
        assert listing.has_more is True

    def test_lapsed_subscriber_keeps_data_but_sees_two(self, db):
        user = make_user(db, tier=tier_policy.MONTHLY, expires_at=NOW - timedelta(days=1))
        add_guns(db, user, 3)

        listing = quota_service.list_visible_firearms(db, user, NOW)

        assert len(listing.items) == 2
        assert listing.total_count == 3

    def test_lifetime_sees_everything(self, db):
        user = make_user(db, tier=tier_policy.LIFETIME, expires_at=tier_policy.lifetime_expiry(NOW))
        add_guns(db, user, 3)

        listing = quota_service.list_visible_firearms(db, user, NOW)

        assert len(listing.items) == 3
        assert listing.has_more is False

    def test_other_owners_are_excluded(self, db, free_user):
        other = make_user(db, email="other@example.com")
        add_guns(db, other, 2)

        listing = quota_service.list_visible_firearms(db, free_user, NOW)

        assert listing.items == []
        assert listing.total_count == 0
