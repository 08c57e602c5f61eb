from typing import Optional

from pydantic import BaseModel


class CaliberInfo(BaseModel):
    id: int
    caliber: str
    nickname: Optional[str] = None
    popularity: int

    model_config = {"from_attributes": True}
