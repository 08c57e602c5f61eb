"""Create (or promote) the initial administrator account.

Usage: python -m armory.create_admin EMAIL PASSWORD
"""
import sys

from armory.core.database import SessionLocal
from armory.models.user import User
from armory.services import tier_policy
from armory.services.auth_service import MIN_PASSWORD_LENGTH, hash_password


def main(argv: list[str]) -> int:
    if len(argv) != 2:
        print(__doc__.strip().splitlines()[-1])
        return 2
    email, password = argv
    if len(password) < MIN_PASSWORD_LENGTH:
        print(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
        return 2

    db = SessionLocal()
    try:
        existing = db.query(User).filter(User.email == email).first()
        if existing:
            existing.is_admin = True
            db.commit()
            print(f"Promoted existing user to admin: {email}")
            return 0

        db.add(User(
            email=email,
            password_hash=hash_password(password),
            is_admin=True,
            confirmed=True,
            attempt_count=0,
            subscription_tier=tier_policy.FREE,
            subscription_canceled=False,
        ))
        db.commit()
        print(f"Admin created: {email}")
        return 0
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
