import logging
from typing import Optional, Protocol

from limo_api.core.cache import route_key
from limo_api.core.config import Settings
from limo_api.core.enums import DistanceSource
from limo_api.core.exceptions import DistanceProviderError, MissingFieldsError
from limo_api.core.metrics import cache_hits, cache_misses, distance_fallbacks, distance_lookups, quotes_issued
from limo_api.schemas.distance import DistanceResult
from limo_api.schemas.quote import QuoteOut, QuoteRequest
from limo_api.services.distance import DistanceMatrixClient, rough_estimate
from limo_api.services.pricing import calculate_price

logger = logging.getLogger(__name__)


class DistanceCache(Protocol):
    async def get(self, key: str) -> Optional[DistanceResult]: ...

    async def set(self, key: str, value: DistanceResult) -> None: ...


def missing_fields(values: dict) -> list[str]:
    return [name for name, value in values.items() if not (isinstance(value, str) and value.strip())]


class QuoteResolver:
    """Turns a trip request into a priced quote.

    Distance comes from the cache, then the provider, then the rough
    estimate. Provider failures are logged and counted, never raised.
    """

    def __init__(
        self,
        settings: Settings,
        provider: DistanceMatrixClient,
        cache: Optional[DistanceCache] = None,
    ):
        self.settings = settings
        self.provider = provider
        self.cache = cache if settings.DISTANCE_CACHE_ENABLED else None

    async def resolve_distance(self, pickup: str, dropoff: str) -> DistanceResult:
        key = route_key(pickup, dropoff)

        if self.cache is not None:
            cached = await self.cache.get(key)
            if cached is not None:
                cache_hits.inc()
                distance_lookups.labels(source=DistanceSource.CACHE.value).inc()
                logger.info(f"Distance source=cache key={key!r} km={cached.distance_km}")
                return cached.model_copy(update={"source": DistanceSource.CACHE})
            cache_misses.inc()

        try:
            result = await self.provider.lookup(pickup, dropoff)
        except DistanceProviderError as e:
            distance_fallbacks.labels(reason=e.reason).inc()
            distance_lookups.labels(source=DistanceSource.ROUGH.value).inc()
            fallback = rough_estimate(pickup, dropoff)
            logger.warning(
                f"Distance source=rough reason={e.reason} key={key!r} km={fallback.distance_km}"
                + (f" detail={e.detail!r}" if e.detail else "")
            )
            return fallback

        distance_lookups.labels(source=DistanceSource.GOOGLE.value).inc()
        logger.info(
            f"Distance source=google key={key!r} km={result.distance_km} min={result.duration_min}"
        )
        if self.cache is not None:
            await self.cache.set(key, result)
        return result

    async def quote(self, req: Optional[QuoteRequest]) -> QuoteOut:
        if req is None:
            req = QuoteRequest()
        missing = missing_fields({"pickup": req.pickup, "dropoff": req.dropoff, "when": req.when})
        if missing:
            raise MissingFieldsError(missing)

        pax = req.pax or 1
        luggage = req.luggage or 0

        distance = await self.resolve_distance(req.pickup, req.dropoff)
        total, breakdown = calculate_price(
            distance, pax, luggage, req.when, req.pickup, req.dropoff, self.settings
        )
        quotes_issued.inc()

        return QuoteOut(
            currency=self.settings.CURRENCY,
            total=total,
            breakdown=breakdown,
            pickup=req.pickup,
            dropoff=req.dropoff,
            when=req.when,
            pax=pax,
            luggage=luggage,
        )
