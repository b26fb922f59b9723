import asyncio
import json
import time
import pytest
import httpx

from conftest import FakeMaps, TEST_MAPS_KEY, make_settings, matrix_payload
from limo_api.core.enums import DistanceSource
from limo_api.core.exceptions import DistanceProviderError
from limo_api.services.distance import (
    DistanceMatrixClient,
    parse_distance_matrix,
    rough_distance_km,
    rough_estimate,
    seconds_to_minutes,
)


class TestParseDistanceMatrix:

    def test_successful_element(self):
        result = parse_distance_matrix(matrix_payload(meters=16234, seconds=1500))
        assert result.source == DistanceSource.GOOGLE
        assert result.distance_km == pytest.approx(16.234)
        assert result.duration_min == 25

    def test_prefers_duration_in_traffic(self):
        result = parse_distance_matrix(matrix_payload(meters=10000, seconds=600, traffic_seconds=1830))
        # 30.5 minutes rounds half-up
        assert result.duration_min == 31

    def test_missing_duration_is_none(self):
        result = parse_distance_matrix(matrix_payload(meters=10000, seconds=None))
        assert result.duration_min is None

    @pytest.mark.parametrize("payload,reason", [
        (matrix_payload(status="REQUEST_DENIED"), "api_REQUEST_DENIED"),
        (matrix_payload(element_status="NOT_FOUND"), "element_NOT_FOUND"),
        (matrix_payload(element_status="ZERO_RESULTS"), "element_ZERO_RESULTS"),
        (matrix_payload(meters=None), "missing_values"),
        ({"status": "OK", "rows": []}, "malformed"),
        ({"status": "OK"}, "malformed"),
        ([], "malformed"),
        ({}, "api_unknown"),
    ])
    def test_failures_raise_with_reason(self, payload, reason):
        with pytest.raises(DistanceProviderError) as exc_info:
            parse_distance_matrix(payload)
        assert exc_info.value.reason == reason

    def test_api_error_message_is_kept_as_detail(self):
        payload = matrix_payload(status="REQUEST_DENIED")
        payload["error_message"] = "The provided API key is invalid."
        with pytest.raises(DistanceProviderError) as exc_info:
            parse_distance_matrix(payload)
        assert exc_info.value.detail == "The provided API key is invalid."

    def test_seconds_to_minutes(self):
        assert seconds_to_minutes(0) == 0
        assert seconds_to_minutes(29) == 0
        assert seconds_to_minutes(30) == 1
        assert seconds_to_minutes(90) == 2
        assert seconds_to_minutes(3600) == 60


class TestRoughEstimate:

    def test_known_route_both_directions(self):
        assert rough_distance_km("Brisbane Airport", "South Bank") == 16.0
        assert rough_distance_km("south bank parklands", "BRISBANE AIRPORT T1") == 16.0

    @pytest.mark.parametrize("pickup,dropoff", [
        ("A", "B"),
        ("Hamilton", "Toowong"),
        ("x" * 200, "y"),
        ("", ""),
        ("Sunshine Coast Airport", "Gold Coast"),
    ])
    def test_estimate_is_bounded(self, pickup, dropoff):
        km = rough_distance_km(pickup, dropoff)
        assert 5 <= km <= 45

    def test_estimate_is_deterministic(self):
        assert rough_distance_km("Hamilton", "Toowong") == 11.0
        assert rough_distance_km("Hamilton", "Toowong") == rough_distance_km("Hamilton", "Toowong")

    def test_rough_result_has_no_duration(self):
        result = rough_estimate("Hamilton", "Toowong")
        assert result.source == DistanceSource.ROUGH
        assert result.duration_min is None


class TestDistanceMatrixClient:

    async def _lookup(self, maps, **overrides):
        settings = make_settings(GOOGLE_MAPS_KEY=TEST_MAPS_KEY, **overrides)
        async with httpx.AsyncClient(transport=maps.transport) as http:
            return await DistanceMatrixClient(settings, http).lookup("Brisbane Airport", "South Bank")

    @pytest.mark.asyncio
    async def test_sends_expected_query(self):
        maps = FakeMaps()
        result = await self._lookup(maps)
        assert result.distance_km == 16.0
        assert len(maps.calls) == 1
        params = maps.calls[0].url.params
        assert params["origins"] == "Brisbane Airport"
        assert params["destinations"] == "South Bank"
        assert params["key"] == TEST_MAPS_KEY
        assert params["units"] == "metric"
        assert params["region"] == "au"
        assert params["departure_time"] == "now"

    @pytest.mark.asyncio
    async def test_no_key_never_calls_out(self):
        maps = FakeMaps()
        settings = make_settings()
        async with httpx.AsyncClient(transport=maps.transport) as http:
            with pytest.raises(DistanceProviderError) as exc_info:
                await DistanceMatrixClient(settings, http).lookup("A", "B")
        assert exc_info.value.reason == "no_key"
        assert maps.calls == []

    @pytest.mark.asyncio
    async def test_timeout(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        with pytest.raises(DistanceProviderError) as exc_info:
            await self._lookup(FakeMaps(handler))
        assert exc_info.value.reason == "timeout"

    @pytest.mark.asyncio
    async def test_network_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(DistanceProviderError) as exc_info:
            await self._lookup(FakeMaps(handler))
        assert exc_info.value.reason == "exception"

    @pytest.mark.asyncio
    async def test_http_error_status(self):
        maps = FakeMaps(lambda request: httpx.Response(503, text="unavailable"))
        with pytest.raises(DistanceProviderError) as exc_info:
            await self._lookup(maps)
        assert exc_info.value.reason == "http_503"

    @pytest.mark.asyncio
    async def test_non_json_body(self):
        maps = FakeMaps(lambda request: httpx.Response(200, text="<html>oops</html>"))
        with pytest.raises(DistanceProviderError) as exc_info:
            await self._lookup(maps)
        assert exc_info.value.reason == "malformed"

    @pytest.mark.asyncio
    async def test_slow_drip_body_hits_overall_deadline(self):
        body = json.dumps(matrix_payload()).encode()

        async def drip():
            for i in range(0, len(body), 20):
                await asyncio.sleep(0.1)
                yield body[i:i + 20]

        maps = FakeMaps(lambda request: httpx.Response(200, content=drip()))
        started = time.monotonic()
        with pytest.raises(DistanceProviderError) as exc_info:
            await self._lookup(maps, DISTANCE_TIMEOUT=0.3)
        elapsed = time.monotonic() - started
        assert exc_info.value.reason == "timeout"
        # every chunk arrives well inside the per-read timeout, so only the deadline stops it
        assert elapsed < 1.0

    @pytest.mark.asyncio
    async def test_unexpected_client_error_is_absorbed(self):
        def handler(request):
            raise RuntimeError("Cannot send a request, as the client has been closed.")

        with pytest.raises(DistanceProviderError) as exc_info:
            await self._lookup(FakeMaps(handler))
        assert exc_info.value.reason == "exception"
        assert "closed" in exc_info.value.detail

    @pytest.mark.asyncio
    async def test_invalid_endpoint_url_is_absorbed(self):
        with pytest.raises(DistanceProviderError) as exc_info:
            await self._lookup(FakeMaps(), DISTANCE_MATRIX_URL="http://[::1")
        assert exc_info.value.reason == "exception"
