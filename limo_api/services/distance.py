"""Google Distance Matrix client and the rough fallback estimate."""
import asyncio
import logging
import re
import time
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

import httpx

from limo_api.core.config import Settings
from limo_api.core.enums import DistanceSource, FallbackReason
from limo_api.core.exceptions import DistanceProviderError
from limo_api.core.metrics import distance_provider_duration
from limo_api.schemas.distance import DistanceResult

logger = logging.getLogger(__name__)

# Routes quoted often enough that the fallback should not guess.
KNOWN_ROUTES = [
    (re.compile(r"brisbane airport", re.I), re.compile(r"south bank", re.I), 16.0),
]
ROUGH_MIN_KM = 5
ROUGH_MAX_KM = 45
ROUGH_OFFSET_KM = 10


def rough_distance_km(pickup: str, dropoff: str) -> float:
    for a, b, km in KNOWN_ROUTES:
        if (a.search(pickup) and b.search(dropoff)) or (b.search(pickup) and a.search(dropoff)):
            return km
    spread = abs(len(pickup) - len(dropoff)) + ROUGH_OFFSET_KM
    return float(max(ROUGH_MIN_KM, min(ROUGH_MAX_KM, spread)))


def rough_estimate(pickup: str, dropoff: str) -> DistanceResult:
    return DistanceResult(
        distance_km=rough_distance_km(pickup, dropoff),
        duration_min=None,
        source=DistanceSource.ROUGH,
    )


def seconds_to_minutes(seconds: float) -> int:
    return int((Decimal(str(seconds)) / 60).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _value(block) -> Optional[float]:
    if not isinstance(block, dict):
        return None
    value = block.get("value")
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value < 0:
        return None
    return float(value)


def parse_distance_matrix(data) -> DistanceResult:
    """Extract distance/duration from a Distance Matrix JSON payload.

    Raises DistanceProviderError for non-OK statuses or a missing distance.
    ``duration_in_traffic`` wins over ``duration`` when both are present.
    """
    if not isinstance(data, dict):
        raise DistanceProviderError(FallbackReason.MALFORMED.value, "payload is not an object")

    status = data.get("status")
    if status != "OK":
        raise DistanceProviderError(f"api_{status or 'unknown'}", data.get("error_message"))

    try:
        element = data["rows"][0]["elements"][0]
    except (KeyError, IndexError, TypeError):
        raise DistanceProviderError(FallbackReason.MALFORMED.value, "no rows/elements")
    if not isinstance(element, dict):
        raise DistanceProviderError(FallbackReason.MALFORMED.value, "element is not an object")

    element_status = element.get("status")
    if element_status != "OK":
        raise DistanceProviderError(f"element_{element_status or 'unknown'}")

    meters = _value(element.get("distance"))
    if meters is None:
        raise DistanceProviderError(FallbackReason.MISSING_VALUES.value, "distance.value absent")

    seconds = _value(element.get("duration_in_traffic"))
    if seconds is None:
        seconds = _value(element.get("duration"))

    return DistanceResult(
        distance_km=meters / 1000,
        duration_min=seconds_to_minutes(seconds) if seconds is not None else None,
        source=DistanceSource.GOOGLE,
    )


class DistanceMatrixClient:
    """Single-attempt lookup against the distance-matrix endpoint.

    Never retries. The whole exchange, body included, must finish within
    ``DISTANCE_TIMEOUT`` seconds. Every failure mode is raised as
    DistanceProviderError with a reason tag so callers can fall back and
    count it.
    """

    def __init__(self, settings: Settings, http: httpx.AsyncClient):
        self.settings = settings
        self.http = http

    @property
    def configured(self) -> bool:
        return self.settings.maps_configured

    async def _fetch(self, params: dict) -> DistanceResult:
        response = await self.http.get(
            self.settings.DISTANCE_MATRIX_URL,
            params=params,
            headers={"Accept": "application/json"},
            timeout=self.settings.DISTANCE_TIMEOUT,
        )
        if not 200 <= response.status_code < 300:
            raise DistanceProviderError(f"http_{response.status_code}")
        try:
            data = response.json()
        except ValueError as e:
            raise DistanceProviderError(FallbackReason.MALFORMED.value, str(e))
        return parse_distance_matrix(data)

    async def lookup(self, pickup: str, dropoff: str) -> DistanceResult:
        if not self.configured:
            raise DistanceProviderError(FallbackReason.NO_KEY.value)

        params = {
            "origins": pickup,
            "destinations": dropoff,
            "key": self.settings.GOOGLE_MAPS_KEY,
            "units": "metric",
            "region": self.settings.DISTANCE_REGION,
            "departure_time": "now",
        }
        start_time = time.time()
        outcome = "error"
        try:
            result = await asyncio.wait_for(self._fetch(params), timeout=self.settings.DISTANCE_TIMEOUT)
            outcome = "ok"
            return result
        except DistanceProviderError:
            raise
        except (asyncio.TimeoutError, httpx.TimeoutException) as e:
            outcome = "timeout"
            raise DistanceProviderError(
                FallbackReason.TIMEOUT.value,
                str(e) or f"no complete answer within {self.settings.DISTANCE_TIMEOUT}s",
            )
        except Exception as e:
            raise DistanceProviderError(FallbackReason.EXCEPTION.value, str(e) or type(e).__name__)
        finally:
            distance_provider_duration.labels(outcome=outcome).observe(time.time() - start_time)
