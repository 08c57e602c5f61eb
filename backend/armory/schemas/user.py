from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class AdminUserInfo(BaseModel):
    id: int
    email: str
    is_admin: bool
    confirmed: bool
    subscription_tier: str
    subscription_expires_at: Optional[datetime] = None
    last_attempt: Optional[datetime] = None
    created_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
