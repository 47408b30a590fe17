"""
Hotelbeds Hotel Provider
Implementation of HotelProvider for the Hotelbeds backend proxy.
Converts between the standardized provider interface and Hotelbeds' format.
"""

import hashlib
import time
import uuid
from typing import Any, Dict, List, Optional

import httpx

import settings
from .base_provider import ProviderResponse
from .hotel_provider import HotelProvider, HotelSearchCriteria, StandardizedHotel


# Top-level supplier keys already mapped onto the canonical record
_MAPPED_HOTEL_KEYS = {
    "id", "hotelCode", "name", "description", "cost", "currency",
    "rate_type", "valid_start", "valid_end", "details",
}

_DETAIL_KEYS = (
    "chain", "category", "address", "facilities", "images", "includes_breakfast",
    "min_nights", "rateKey", "selectedRoom", "imported_from", "imported_at",
    "extraction_method",
)


def generate_signature(api_key: str, secret: str, timestamp: Optional[int] = None) -> str:
    """Hotelbeds request signature: SHA256(apiKey + secret + unix seconds)."""
    if timestamp is None:
        timestamp = int(time.time())
    return hashlib.sha256(f"{api_key}{secret}{timestamp}".encode()).hexdigest()


def _parse_cost(value: Any) -> Optional[float]:
    """Absent cost reads as 0.0; a value that is present but not numeric reads as None."""
    if value is None or value == "":
        return 0.0
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


class HotelbedsProvider(HotelProvider):
    """
    Hotelbeds implementation of the hotel capability.
    Talks to the agency backend, which relays to api.hotelbeds.com.
    """

    DEFAULT_BASE_URL = settings.HOTELBEDS_ENDPOINT
    BAD_REQUEST_HINT = "(destination, dates, guests, etc.)"

    def get_provider_name(self) -> str:
        return "hotelbeds"

    def get_display_name(self) -> str:
        return "Hotelbeds"

    def get_description(self) -> str:
        return "Access to Hotelbeds hotel inventory with real-time availability and competitive rates"

    def get_required_credentials(self) -> List[str]:
        return ["apiKey", "secret", "endpoint"]

    def _default_headers(self) -> Dict[str, str]:
        headers = super()._default_headers()
        api_key = self.get_credential("apiKey")
        secret = self.get_credential("secret")
        if api_key and secret:
            headers["Api-key"] = api_key
            headers["X-Signature"] = generate_signature(api_key, secret)
        return headers

    async def test_connection(self) -> bool:
        """
        GET {endpoint}/api/hotelbeds/test; when that call fails for a reason
        other than the backend being unreachable, fall back to {endpoint}/health.
        """
        try:
            if not self.is_configured():
                self.logger.warning("Hotelbeds provider is not properly configured")
                return False

            self.logger.info(f"Testing Hotelbeds connection via backend: {self.base_url}")

            try:
                async with self._client(timeout=settings.HEALTH_CHECK_TIMEOUT_SECONDS) as client:
                    response = await client.get(f"{self.base_url}/api/hotelbeds/test")
            except (httpx.ConnectError, httpx.TimeoutException) as e:
                self.logger.warning(f"Hotelbeds backend appears to be offline at {self.base_url}: {e}")
                return False
            except (httpx.HTTPError, httpx.InvalidURL) as e:
                return await self._health_fallback(e)

            if response.is_success:
                self.logger.info("Hotelbeds backend test endpoint successful")
                return True

            self.logger.warning(
                f"Hotelbeds backend test failed: {response.status_code} {response.reason_phrase}"
            )
            return False

        except Exception as e:
            self.logger.error(f"Hotelbeds connection test error: {e}", exc_info=True)
            return False

    async def _health_fallback(self, test_error: Exception) -> bool:
        try:
            async with self._client(timeout=5.0) as client:
                response = await client.get(f"{self.base_url}/health")
            if response.is_success:
                self.logger.warning("Backend is running but /api/hotelbeds/test is not implemented")
                return True
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            self.logger.warning(f"Backend health check failed: {e}")

        self.logger.error(f"Hotelbeds connection test failed: {test_error}")
        return False

    async def search_hotels(self, criteria: HotelSearchCriteria) -> ProviderResponse[StandardizedHotel]:
        """
        Search hotels and convert Hotelbeds rates into StandardizedHotel records.

        Raises:
            ProviderConfigurationError: provider not configured (no request is sent)
            ProviderError: transport failure, non-2xx response or malformed body
        """
        self.ensure_configured()

        payload: Dict[str, Any] = {
            "destination": criteria.country or criteria.destination,
            "checkInDate": criteria.check_in_date,
            "checkOutDate": criteria.check_out_date,
            "guests": criteria.guests or 1,
        }
        if criteria.hotel_name:
            payload["hotelName"] = criteria.hotel_name

        self.logger.debug(f"Searching Hotelbeds with payload: {payload}")

        try:
            async with self._client() as client:
                response = await self._send(
                    client, "POST", f"{self.base_url}/api/hotelbeds/search", json=payload
                )
        except httpx.TransportError as e:
            self.logger.error(f"Hotelbeds search request failed: {e}")
            raise self._network_error(e) from e
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise self._error(f"Hotelbeds request failed: {e}", e) from e

        if response.is_error:
            raise self._http_error(response)

        try:
            data = response.json()
        except ValueError as e:
            raise self._error("Hotelbeds response was not valid JSON", e) from e

        if not isinstance(data, dict):
            raise self._error("Hotelbeds response had an unexpected shape")

        hotels = data.get("hotels") or []
        if not isinstance(hotels, list):
            raise self._error("Hotelbeds response had an unexpected shape")
        self.logger.info(f"Hotelbeds: found {len(hotels)} hotels")

        try:
            standardized = [self._convert_hotel(hotel) for hotel in hotels if isinstance(hotel, dict)]
        except (AttributeError, TypeError, ValueError) as e:
            raise self._error("Hotelbeds response had an unexpected shape", e) from e

        return ProviderResponse(
            success=True,
            data=standardized,
            provider=self.name,
            metadata={"total_results": len(standardized), "page": 1},
        )

    def _convert_hotel(self, hotel: Dict[str, Any]) -> StandardizedHotel:
        """Map one Hotelbeds rate; every supplier-only field ends up in `details`."""
        raw_details = hotel.get("details")
        supplier_details = raw_details if isinstance(raw_details, dict) else {}

        details: Dict[str, Any] = {key: supplier_details.get(key) for key in _DETAIL_KEYS}
        details.update(supplier_details)
        details["bookingAvailable"] = bool(supplier_details.get("bookingAvailable", False))
        details["hotelCode"] = supplier_details.get("hotelCode") or hotel.get("hotelCode")

        for key, value in hotel.items():
            if key not in _MAPPED_HOTEL_KEYS and key not in details:
                details[key] = value
        if raw_details and not isinstance(raw_details, dict):
            details["rawDetails"] = raw_details
        details["source"] = "hotelbeds"

        cost = _parse_cost(hotel.get("cost"))
        if cost is None:
            details["rawCost"] = hotel.get("cost")
            self.logger.warning(f"Hotelbeds rate {hotel.get('id')} has an unparseable cost: {hotel.get('cost')!r}")

        name = hotel.get("description") or hotel.get("name") or "Unknown Hotel"

        return StandardizedHotel(
            id=hotel.get("id") or hotel.get("hotelCode") or f"hotelbeds-{uuid.uuid4().hex[:12]}",
            name=name,
            description=name,
            cost=cost,
            currency=hotel.get("currency") or "USD",
            provider=self.name,
            rate_type=hotel.get("rate_type") or "Hotel",
            valid_start=hotel.get("valid_start"),
            valid_end=hotel.get("valid_end"),
            details=details,
        )

    async def get_hotel_details(self, hotel_code: str) -> Dict[str, Any]:
        """Fetch the full content record for one hotel."""
        self.ensure_configured()
        try:
            async with self._client() as client:
                response = await self._send(
                    client, "GET", f"{self.base_url}/api/hotelbeds/hotels/{hotel_code}"
                )
        except httpx.TransportError as e:
            raise self._network_error(e) from e

        if response.is_error:
            raise self._error(
                f"Failed to fetch hotel details: {response.reason_phrase}",
                status_code=response.status_code,
            )
        try:
            return response.json()
        except ValueError as e:
            raise self._error("Hotelbeds hotel details were not valid JSON", e) from e

    async def check_availability(self, hotel_code: str, rate_key: str) -> bool:
        """Re-check a rate before booking. Any failure reads as unavailable."""
        if not self.is_configured():
            return False
        try:
            async with self._client() as client:
                response = await self._send(
                    client,
                    "POST",
                    f"{self.base_url}/api/hotelbeds/availability",
                    json={"hotelCode": hotel_code, "rateKey": rate_key},
                )
            if response.is_error:
                return False
            return response.json().get("available") is True
        except (httpx.HTTPError, httpx.InvalidURL, ValueError, AttributeError) as e:
            self.logger.error(f"Failed to check availability for {hotel_code}: {e}")
            return False

    async def get_api_status(self) -> Dict[str, Any]:
        try:
            async with self._client(timeout=settings.HEALTH_CHECK_TIMEOUT_SECONDS) as client:
                response = await client.get(f"{self.base_url}/api/hotelbeds/status")
            if response.is_error:
                return {"available": False}
            return {"available": True, "rate_limit": response.json().get("rateLimit")}
        except (httpx.HTTPError, httpx.InvalidURL, ValueError, AttributeError):
            return {"available": False}

