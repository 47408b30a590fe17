"""
Unit tests for the Hotelbeds hotel provider

Tests cover:
- Request building (destination precedence, signature headers)
- Conversion of Hotelbeds rates into StandardizedHotel
- Error translation (HTTP 500, network failures, bad JSON)
- test_connection outcomes, including the /health fallback

Run: pytest backend/tests/test_hotelbeds_provider.py -v
"""

import hashlib

import httpx
import pytest


SAMPLE_HOTEL = {
    "id": 101,
    "hotelCode": "HB-77",
    "description": "Hotel Lisboa Plaza",
    "cost": "189.50",
    "currency": "EUR",
    "rate_type": "Room Only",
    "valid_start": "2025-06-01",
    "valid_end": "2025-06-05",
    "rooms_left": 3,
    "details": {
        "category": "4 STARS",
        "rateKey": "rk-abc",
        "bookingAvailable": True,
    },
}


def make_provider(config, handler, recording_transport):
    from travel_hub.providers import HotelbedsProvider

    recorder = recording_transport(handler)
    provider = HotelbedsProvider(transport=recorder.transport)
    provider.configure(config)
    return provider, recorder


class TestSignature:
    """Tests for the Hotelbeds request signature."""

    def test_signature_is_sha256_of_key_secret_timestamp(self):
        from travel_hub.providers.hotelbeds_provider import generate_signature

        expected = hashlib.sha256(b"keysecret1700000000").hexdigest()
        assert generate_signature("key", "secret", 1700000000) == expected


class TestHotelbedsSearch:
    """Tests for search_hotels."""

    @pytest.mark.asyncio
    async def test_search_posts_payload_and_converts(self, hotelbeds_config, recording_transport):
        from travel_hub.providers import HotelSearchCriteria

        provider, recorder = make_provider(
            hotelbeds_config,
            lambda request: httpx.Response(200, json={"hotels": [SAMPLE_HOTEL]}),
            recording_transport,
        )

        response = await provider.search(HotelSearchCriteria(
            destination="Lisbon",
            country="PT",
            check_in_date="2025-06-01",
            check_out_date="2025-06-05",
            guests=2,
            hotel_name="Plaza",
        ))

        request = recorder.requests[0]
        assert request.method == "POST"
        assert str(request.url) == "http://backend.test/api/hotelbeds/search"
        assert request.headers["Api-key"] == "hb-key-123456"
        assert len(request.headers["X-Signature"]) == 64
        assert recorder.json_bodies()[0] == {
            "destination": "PT",
            "checkInDate": "2025-06-01",
            "checkOutDate": "2025-06-05",
            "guests": 2,
            "hotelName": "Plaza",
        }

        assert response.success is True
        assert response.provider == "hotelbeds"
        assert response.total_results == 1
        assert response.metadata["page"] == 1

        hotel = response.data[0]
        assert hotel.id == 101
        assert hotel.name == "Hotel Lisboa Plaza"
        assert hotel.cost == 189.5
        assert hotel.currency == "EUR"
        assert hotel.rate_type == "Room Only"
        assert hotel.booking_available is True
        assert hotel.details["hotelCode"] == "HB-77"
        assert hotel.details["category"] == "4 STARS"
        assert hotel.details["rooms_left"] == 3
        assert hotel.details["source"] == "hotelbeds"

    @pytest.mark.asyncio
    async def test_defaults_for_sparse_hotel(self, hotelbeds_config, recording_transport):
        from travel_hub.providers import HotelSearchCriteria

        provider, recorder = make_provider(
            hotelbeds_config,
            lambda request: httpx.Response(200, json={"hotels": [{"currency": None}]}),
            recording_transport,
        )

        response = await provider.search(HotelSearchCriteria(destination="Porto"))

        hotel = response.data[0]
        assert recorder.json_bodies()[0]["guests"] == 1
        assert recorder.json_bodies()[0]["destination"] == "Porto"
        assert hotel.name == "Unknown Hotel"
        assert hotel.cost == 0.0
        assert hotel.currency == "USD"
        assert str(hotel.id).startswith("hotelbeds-")
        assert hotel.booking_available is False
        assert "rawCost" not in hotel.details

    @pytest.mark.asyncio
    async def test_non_numeric_cost_is_none(self, hotelbeds_config, recording_transport):
        """A price the supplier sent as text is not reported as a free room."""
        from travel_hub.providers import HotelSearchCriteria

        provider, _ = make_provider(
            hotelbeds_config,
            lambda request: httpx.Response(200, json={"hotels": [{"id": "H1", "cost": "N/A"}, {"id": "H2", "cost": "89.50"}]}),
            recording_transport,
        )

        response = await provider.search(HotelSearchCriteria(destination="Porto"))

        unpriced, priced = response.data
        assert unpriced.cost is None
        assert unpriced.details["rawCost"] == "N/A"
        assert unpriced.to_dict()["cost"] is None
        assert priced.cost == 89.5
        assert "rawCost" not in priced.details

    @pytest.mark.asyncio
    async def test_non_dict_details_are_kept_raw(self, hotelbeds_config, recording_transport):
        from travel_hub.providers import HotelSearchCriteria

        provider, _ = make_provider(
            hotelbeds_config,
            lambda request: httpx.Response(200, json={"hotels": [{"id": "H1", "details": "broken"}]}),
            recording_transport,
        )

        response = await provider.search(HotelSearchCriteria(destination="Porto"))

        hotel = response.data[0]
        assert hotel.id == "H1"
        assert hotel.booking_available is False
        assert hotel.details["rawDetails"] == "broken"
        assert hotel.details["source"] == "hotelbeds"

    @pytest.mark.asyncio
    async def test_non_list_hotels_raises_provider_error(self, hotelbeds_config, recording_transport):
        from travel_hub.providers import HotelSearchCriteria, ProviderError

        provider, _ = make_provider(
            hotelbeds_config,
            lambda request: httpx.Response(200, json={"hotels": 5}),
            recording_transport,
        )

        with pytest.raises(ProviderError) as exc_info:
            await provider.search(HotelSearchCriteria(destination="Porto"))

        assert "unexpected shape" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_http_400_hint_names_hotel_criteria(self, hotelbeds_config, recording_transport):
        from travel_hub.providers import HotelSearchCriteria, ProviderError

        provider, _ = make_provider(
            hotelbeds_config,
            lambda request: httpx.Response(400, json={"error": "checkOut must follow checkIn"}),
            recording_transport,
        )

        with pytest.raises(ProviderError) as exc_info:
            await provider.search(HotelSearchCriteria(destination="Porto"))

        assert exc_info.value.status_code == 400
        assert "destination" in exc_info.value.message
        assert "airports" not in exc_info.value.message
        assert "checkOut must follow checkIn" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_http_500_raises_provider_error_from_body(self, hotelbeds_config, recording_transport):
        from travel_hub.providers import HotelSearchCriteria, ProviderError

        provider, _ = make_provider(
            hotelbeds_config,
            lambda request: httpx.Response(500, json={"error": {"message": "Supplier timeout upstream"}}),
            recording_transport,
        )

        with pytest.raises(ProviderError) as exc_info:
            await provider.search(HotelSearchCriteria(destination="Lisbon"))

        assert exc_info.value.message == "Supplier timeout upstream"
        assert exc_info.value.status_code == 500
        assert exc_info.value.provider == "hotelbeds"
        assert "Traceback" not in exc_info.value.message

    @pytest.mark.asyncio
    async def test_network_failure_is_user_facing(self, hotelbeds_config, recording_transport):
        from travel_hub.providers import HotelSearchCriteria, ProviderError

        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        provider, _ = make_provider(hotelbeds_config, handler, recording_transport)

        with pytest.raises(ProviderError) as exc_info:
            await provider.search(HotelSearchCriteria(destination="Lisbon"))

        assert exc_info.value.message.startswith("Network error: Unable to connect to Hotelbeds API")
        assert isinstance(exc_info.value.original_error, httpx.ConnectError)

    @pytest.mark.asyncio
    async def test_invalid_json_raises_provider_error(self, hotelbeds_config, recording_transport):
        from travel_hub.providers import HotelSearchCriteria, ProviderError

        provider, _ = make_provider(
            hotelbeds_config,
            lambda request: httpx.Response(200, text="<html>oops</html>"),
            recording_transport,
        )

        with pytest.raises(ProviderError):
            await provider.search(HotelSearchCriteria(destination="Lisbon"))

    @pytest.mark.asyncio
    async def test_unconfigured_search_sends_nothing(self, recording_transport):
        from travel_hub.providers import (
            HotelbedsProvider,
            HotelSearchCriteria,
            ProviderConfigurationError,
        )

        recorder = recording_transport(lambda request: httpx.Response(200, json={"hotels": []}))
        provider = HotelbedsProvider(transport=recorder.transport)

        with pytest.raises(ProviderConfigurationError):
            await provider.search(HotelSearchCriteria(destination="Lisbon"))

        assert recorder.requests == []


class TestHotelbedsConnection:
    """Tests for test_connection."""

    @pytest.mark.asyncio
    async def test_success(self, hotelbeds_config, recording_transport):
        provider, recorder = make_provider(
            hotelbeds_config, lambda request: httpx.Response(200, json={"ok": True}), recording_transport
        )

        assert await provider.test_connection() is True
        assert recorder.requests[0].url.path == "/api/hotelbeds/test"

    @pytest.mark.asyncio
    async def test_non_2xx_is_false(self, hotelbeds_config, recording_transport):
        provider, _ = make_provider(
            hotelbeds_config, lambda request: httpx.Response(503), recording_transport
        )

        assert await provider.test_connection() is False

    @pytest.mark.asyncio
    async def test_backend_offline_is_false(self, hotelbeds_config, recording_transport):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        provider, recorder = make_provider(hotelbeds_config, handler, recording_transport)

        assert await provider.test_connection() is False
        assert len(recorder.requests) == 1

    @pytest.mark.asyncio
    async def test_protocol_error_falls_back_to_health(self, hotelbeds_config, recording_transport):
        def handler(request):
            if request.url.path == "/api/hotelbeds/test":
                raise httpx.RemoteProtocolError("bad response", request=request)
            return httpx.Response(200, json={"status": "ok"})

        provider, recorder = make_provider(hotelbeds_config, handler, recording_transport)

        assert await provider.test_connection() is True
        assert [r.url.path for r in recorder.requests] == ["/api/hotelbeds/test", "/health"]

    @pytest.mark.asyncio
    async def test_unconfigured_is_false(self):
        from travel_hub.providers import HotelbedsProvider

        assert await HotelbedsProvider().test_connection() is False


class TestHotelbedsExtras:
    """Tests for availability and status helpers."""

    @pytest.mark.asyncio
    async def test_check_availability(self, hotelbeds_config, recording_transport):
        provider, recorder = make_provider(
            hotelbeds_config, lambda request: httpx.Response(200, json={"available": True}), recording_transport
        )

        assert await provider.check_availability("HB-77", "rk-abc") is True
        assert recorder.json_bodies()[0] == {"hotelCode": "HB-77", "rateKey": "rk-abc"}

    @pytest.mark.asyncio
    async def test_check_availability_never_raises(self, hotelbeds_config, recording_transport):
        provider, _ = make_provider(
            hotelbeds_config, lambda request: httpx.Response(200, text="not json"), recording_transport
        )

        assert await provider.check_availability("HB-77", "rk-abc") is False

    @pytest.mark.asyncio
    async def test_hotel_details_error(self, hotelbeds_config, recording_transport):
        from travel_hub.providers import ProviderError

        provider, _ = make_provider(
            hotelbeds_config, lambda request: httpx.Response(404), recording_transport
        )

        with pytest.raises(ProviderError) as exc_info:
            await provider.get_hotel_details("HB-404")

        assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    async def test_api_status_available(self, hotelbeds_config, recording_transport):
        rate_limit = {"remaining": 48, "limit": 50, "resetTime": "2025-06-01T00:00:00Z"}
        provider, recorder = make_provider(
            hotelbeds_config,
            lambda request: httpx.Response(200, json={"status": "ok", "rateLimit": rate_limit}),
            recording_transport,
        )

        assert await provider.get_api_status() == {"available": True, "rate_limit": rate_limit}
        assert recorder.requests[0].url.path == "/api/hotelbeds/status"

    @pytest.mark.asyncio
    async def test_api_status_error_is_unavailable(self, hotelbeds_config, recording_transport):
        provider, _ = make_provider(
            hotelbeds_config, lambda request: httpx.Response(500, json={"error": "down"}), recording_transport
        )

        assert await provider.get_api_status() == {"available": False}

    @pytest.mark.asyncio
    async def test_api_status_non_json_is_unavailable(self, hotelbeds_config, recording_transport):
        provider, _ = make_provider(
            hotelbeds_config, lambda request: httpx.Response(200, text="gateway page"), recording_transport
        )

        assert await provider.get_api_status() == {"available": False}
