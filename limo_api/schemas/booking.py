from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import Optional
from datetime import datetime


class BookingRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    quote_ref: Optional[str] = None
    pickup: Optional[str] = None
    dropoff: Optional[str] = None
    when: Optional[str] = None
    pax: Optional[int] = Field(default=None, ge=0)
    luggage: Optional[int] = Field(default=None, ge=0)
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    notes: Optional[str] = None


class BookingOut(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    quote_ref: Optional[str] = None
    pickup: str
    dropoff: str
    when: str
    pax: int
    luggage: int
    name: str
    email: Optional[str] = None
    phone: str
    notes: Optional[str] = None
    created_at: datetime


class BookingResponse(BaseModel):
    ok: bool = True
    booking: BookingOut
