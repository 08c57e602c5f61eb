from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class GunForm(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    weapon_type_id: int
    caliber_id: int
    manufacturer_id: int
    acquired: Optional[date] = None
    description: Optional[str] = None

    @field_validator("name", "description", mode="before")
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("acquired", mode="before")
    @classmethod
    def empty_date(cls, v):
        return v or None


class GunInfo(BaseModel):
    id: int
    name: str
    acquired: Optional[date] = None
    description: Optional[str] = None
    weapon_type_id: int
    caliber_id: int
    manufacturer_id: int
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class GunListing(BaseModel):
    guns: list[GunInfo]
    total_count: int
    has_more: bool
