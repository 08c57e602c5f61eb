from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class PaymentInfo(BaseModel):
    id: int
    amount: int
    currency: str
    status: str
    description: str
    tier: str
    is_renewal: bool
    period_start: Optional[datetime] = None
    period_end: Optional[datetime] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
