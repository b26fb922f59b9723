from pydantic import BaseModel, Field
from typing import Optional
from limo_api.core.enums import DistanceSource


class DistanceResult(BaseModel):
    distance_km: float = Field(ge=0)
    duration_min: Optional[int] = Field(default=None, ge=0)
    source: DistanceSource
