from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import Optional
from limo_api.core.enums import DistanceSource


class QuoteRequest(BaseModel):
    pickup: Optional[str] = None
    dropoff: Optional[str] = None
    when: Optional[str] = None
    pax: Optional[int] = Field(default=None, ge=0)
    luggage: Optional[int] = Field(default=None, ge=0)


class PriceBreakdown(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    base: float
    per_km: float
    distance_km: float
    distance_source: DistanceSource
    distance_cost: float
    per_min: float
    duration_min: Optional[int] = None
    time_cost: float
    per_pax: float
    extra_pax: int
    pax_cost: float
    per_bag: float
    bag_cost: float
    after_hours: Optional[float] = None
    airport: Optional[float] = None
    subtotal: float


class QuoteOut(BaseModel):
    currency: str
    total: float
    breakdown: PriceBreakdown
    pickup: str
    dropoff: str
    when: str
    pax: int
    luggage: int


class QuoteResponse(BaseModel):
    ok: bool = True
    quote: QuoteOut
