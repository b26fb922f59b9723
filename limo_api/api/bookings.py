from typing import Optional
from fastapi import APIRouter, Depends

from limo_api.core.rate_limit import rate_limit
from limo_api.core.security import require_api_key
from limo_api.schemas.booking import BookingRequest, BookingResponse
from limo_api.services.bookings import create_booking

router = APIRouter(prefix="/api", tags=["bookings"])


@router.post(
    "/book",
    response_model=BookingResponse,
    status_code=201,
    dependencies=[Depends(require_api_key), Depends(rate_limit("book"))],
)
async def book(payload: Optional[BookingRequest] = None):
    return BookingResponse(booking=create_booking(payload))
