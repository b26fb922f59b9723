import logging
import secrets
import string
from datetime import datetime, timezone
from typing import Optional

from limo_api.core.exceptions import MissingFieldsError
from limo_api.core.metrics import bookings_created
from limo_api.schemas.booking import BookingOut, BookingRequest
from limo_api.services.quotes import missing_fields

logger = logging.getLogger(__name__)

BOOKING_PREFIX = "LM-"
BOOKING_ALPHABET = string.digits + string.ascii_uppercase


def generate_booking_id(length: int = 6) -> str:
    # Random only; collisions are possible and acceptable for a request stub.
    return BOOKING_PREFIX + "".join(secrets.choice(BOOKING_ALPHABET) for _ in range(length))


def create_booking(req: Optional[BookingRequest]) -> BookingOut:
    if req is None:
        req = BookingRequest()
    missing = missing_fields({
        "pickup": req.pickup,
        "dropoff": req.dropoff,
        "when": req.when,
        "name": req.name,
        "phone": req.phone,
    })
    if missing:
        raise MissingFieldsError(missing)

    booking = BookingOut(
        id=generate_booking_id(),
        quote_ref=req.quote_ref or None,
        pickup=req.pickup,
        dropoff=req.dropoff,
        when=req.when,
        pax=req.pax or 1,
        luggage=req.luggage or 0,
        name=req.name,
        email=req.email or None,
        phone=req.phone,
        notes=req.notes or None,
        created_at=datetime.now(timezone.utc),
    )
    bookings_created.inc()
    logger.info(f"Booking {booking.id} accepted for {booking.when}")
    return booking
