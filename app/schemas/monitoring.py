from pydantic import BaseModel, Field
from typing import Optional


class RolloutUpdate(BaseModel):
    enabled: Optional[bool] = None
    trafficPercentage: Optional[int] = Field(default=None, ge=0, le=100)
