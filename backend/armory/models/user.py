from sqlalchemy import Column, Integer, String, Boolean, DateTime, func
from sqlalchemy.orm import relationship

from armory.core.database import Base, SoftDeleteMixin


class User(SoftDeleteMixin, Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    is_admin = Column(Boolean, nullable=False, default=False)

    # Email confirmation
    confirmed = Column(Boolean, nullable=False, default=False)
    confirm_token = Column(String(64), nullable=True, index=True)
    confirm_token_expiry = Column(DateTime, nullable=True)

    # Password recovery
    recover_token = Column(String(64), nullable=True, index=True)
    recover_token_expiry = Column(DateTime, nullable=True)

    # Login attempts
    attempt_count = Column(Integer, nullable=False, default=0)
    last_attempt = Column(DateTime, nullable=True)

    # Subscription (written only by subscription_service)
    subscription_tier = Column(String(32), nullable=False, default="free")
    subscription_expires_at = Column(DateTime, nullable=True)
    subscription_canceled = Column(Boolean, nullable=False, default=False)
    stripe_customer_id = Column(String(255), nullable=True, index=True)
    stripe_subscription_id = Column(String(255), nullable=True, index=True)

    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=False, server_default=func.now(), onupdate=func.now())

    payments = relationship("Payment", back_populates="user", order_by="Payment.created_at.desc()")
    guns = relationship("Gun", back_populates="owner")
