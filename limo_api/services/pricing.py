"""Linear trip pricing.

All arithmetic runs on ``Decimal``. Breakdown components are reported
unrounded and the total is rounded once, half-up to the cent, so that
``total == round2(sum of cost components)`` holds exactly.
"""
import logging
import re
from datetime import datetime, time
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional
from zoneinfo import ZoneInfo

from limo_api.core.config import Settings
from limo_api.schemas.distance import DistanceResult
from limo_api.schemas.quote import PriceBreakdown

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


def _d(value) -> Decimal:
    return Decimal(str(value))


def round2(value) -> float:
    return float(_d(value).quantize(CENT, rounding=ROUND_HALF_UP))


def time_of_day(when: str, tz: str = "Australia/Brisbane") -> Optional[time]:
    """Best-effort parse of the request time as a local wall-clock time.

    Naive values are already local. Values carrying an offset or a trailing
    ``Z`` are converted into ``tz`` first. ``None`` when unparseable.
    """
    try:
        text = when.strip()
        if text[-1:] in ("Z", "z"):
            text = text[:-1] + "+00:00"
        moment = datetime.fromisoformat(text)
    except (ValueError, AttributeError):
        return None
    if moment.tzinfo is not None:
        moment = moment.astimezone(ZoneInfo(tz))
    return moment.time()


def in_window(moment: time, start: time, end: time) -> bool:
    """``[start, end)`` on the clock face; wraps past midnight when start > end."""
    if start == end:
        return False
    if start < end:
        return start <= moment < end
    return moment >= start or moment < end


def is_after_hours(when: str, settings: Settings) -> bool:
    moment = time_of_day(when, settings.LOCAL_TIMEZONE)
    if moment is None:
        logger.debug(f"Could not parse time {when!r}; after-hours not applied")
        return False
    return in_window(moment, settings.AFTER_HOURS_START, settings.AFTER_HOURS_END)


def is_airport_trip(pickup: str, dropoff: str, settings: Settings) -> bool:
    pattern = re.compile(settings.AIRPORT_PATTERN, re.I)
    return bool(pattern.search(pickup) or pattern.search(dropoff))


def calculate_price(
    distance: DistanceResult,
    pax: int,
    luggage: int,
    when: str,
    pickup: str,
    dropoff: str,
    settings: Settings,
) -> tuple[float, PriceBreakdown]:
    base = _d(settings.PRICE_BASE)
    per_km = _d(settings.PRICE_PER_KM)
    per_min = _d(settings.PRICE_PER_MIN)
    per_pax = _d(settings.PRICE_PER_PAX)
    per_bag = _d(settings.PRICE_PER_BAG)

    extra_pax = max(0, pax - 1)
    distance_cost = per_km * _d(distance.distance_km)
    time_cost = per_min * _d(distance.duration_min or 0)
    pax_cost = per_pax * extra_pax
    bag_cost = per_bag * luggage
    subtotal = base + distance_cost + time_cost + pax_cost + bag_cost

    after_hours = None
    rate = _d(settings.AFTER_HOURS_RATE)
    if rate > 0 and is_after_hours(when, settings):
        after_hours = subtotal * rate

    airport = None
    fee = _d(settings.AIRPORT_SURCHARGE)
    if fee > 0 and is_airport_trip(pickup, dropoff, settings):
        airport = fee

    total = subtotal + (after_hours or 0) + (airport or 0)

    breakdown = PriceBreakdown(
        base=float(base),
        per_km=float(per_km),
        distance_km=distance.distance_km,
        distance_source=distance.source,
        distance_cost=float(distance_cost),
        per_min=float(per_min),
        duration_min=distance.duration_min,
        time_cost=float(time_cost),
        per_pax=float(per_pax),
        extra_pax=extra_pax,
        pax_cost=float(pax_cost),
        per_bag=float(per_bag),
        bag_cost=float(bag_cost),
        after_hours=float(after_hours) if after_hours is not None else None,
        airport=float(airport) if airport is not None else None,
        subtotal=float(subtotal),
    )
    return round2(total), breakdown
