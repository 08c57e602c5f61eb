from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, Index, func
from sqlalchemy.orm import relationship

from armory.core.database import Base

CURRENCY_SYMBOLS = {"usd": "$", "eur": "€", "gbp": "£"}


class Payment(Base):
    """Immutable purchase record. One row per (user_id, processor_payment_id)."""

    __tablename__ = "payments"
    __table_args__ = (
        Index("ux_payments_user_processor_payment", "user_id", "processor_payment_id", unique=True),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    amount = Column(Integer, nullable=False, comment="minor units")
    currency = Column(String(3), nullable=False, default="usd")
    status = Column(String(16), nullable=False, default="succeeded", comment="pending / succeeded / failed / refunded")
    description = Column(String(255), nullable=False)
    processor_payment_id = Column(String(255), nullable=False, comment="logical purchase identity")
    processor_subscription_id = Column(String(255), nullable=True, index=True)
    is_renewal = Column(Boolean, nullable=False, default=False)
    tier = Column(String(32), nullable=False)
    period_start = Column(DateTime, nullable=True)
    period_end = Column(DateTime, nullable=True, comment="NULL for lifetime tiers")
    created_at = Column(DateTime, nullable=False, server_default=func.now())

    user = relationship("User", back_populates="payments")

    def format_amount(self) -> str:
        value = f"{self.amount / 100:.2f}"
        symbol = CURRENCY_SYMBOLS.get((self.currency or "").lower())
        if symbol:
            return f"{symbol}{value}"
        return f"{value} {(self.currency or '').upper()}"
