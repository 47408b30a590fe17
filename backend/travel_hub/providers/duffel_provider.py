"""
Duffel Flight Provider
Implementation of FlightProvider for the Duffel API (via the agency backend).

Search is a two-step protocol: create an offer request (search intent),
then fetch the offers attached to its id. Both steps must succeed.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import httpx

import settings
from .base_provider import ProviderResponse
from .errors import ProviderError
from .flight_provider import (
    FlightEndpoint,
    FlightProvider,
    FlightSearchCriteria,
    FlightSegment,
    FlightSlice,
    StandardizedFlight,
)


DUFFEL_API_VERSION = "v2"


def format_date(value: str) -> str:
    """
    Normalise a date or datetime string to YYYY-MM-DD.
    Offset-aware datetimes are converted to UTC first.

    Raises:
        ValueError: if the value cannot be parsed
    """
    parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc)
    return parsed.date().isoformat()


def build_passengers(criteria: FlightSearchCriteria) -> List[Dict[str, str]]:
    """
    Expand traveler counts into Duffel's passenger list.

    Duffel has no senior fare type, so seniors are priced as adults.
    """
    passengers = [{"type": "adult"} for _ in range(criteria.adults)]
    passengers += [{"type": "child"} for _ in range(criteria.children)]
    passengers += [{"type": "adult"} for _ in range(criteria.seniors)]
    return passengers


def build_slices(criteria: FlightSearchCriteria) -> List[Dict[str, str]]:
    """One slice for one-way, outbound then return for round trips."""
    slices = [{
        "origin": criteria.origin,
        "destination": criteria.destination,
        "departure_date": format_date(criteria.departure_date),
    }]
    if criteria.is_return_flight:
        slices.append({
            "origin": criteria.destination,
            "destination": criteria.origin,
            "departure_date": format_date(criteria.return_date),
        })
    return slices


class DuffelProvider(FlightProvider):
    """
    Duffel API implementation of the flight capability.
    Converts between standardized criteria/offers and Duffel's schema.
    """

    DEFAULT_BASE_URL = settings.DUFFEL_ENDPOINT
    BAD_REQUEST_HINT = "(dates, airports, etc.)"

    def get_provider_name(self) -> str:
        return "duffel"

    def get_display_name(self) -> str:
        return "Duffel"

    def get_description(self) -> str:
        return "Access to comprehensive flight inventory with real-time pricing and booking capabilities"

    def get_required_credentials(self) -> List[str]:
        return ["accessToken", "endpoint"]

    def _default_headers(self) -> Dict[str, str]:
        headers = super()._default_headers()
        headers["Duffel-Version"] = DUFFEL_API_VERSION
        token = self.get_credential("accessToken")
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    async def test_connection(self) -> bool:
        """
        GET {endpoint}/test with a 10 second timeout.

        Unreachable backend or non-2xx -> False. Any other failure (endpoint
        URL unusable, protocol error) is ambiguous and reported as True
        because credentials are present: this reports "configured", not
        "reachable".
        """
        try:
            if not self.is_configured():
                self.logger.warning("Duffel provider is not properly configured")
                return False

            self.logger.info(f"Testing Duffel connection via backend: {self.base_url}")

            try:
                async with self._client(timeout=settings.HEALTH_CHECK_TIMEOUT_SECONDS) as client:
                    response = await client.get(f"{self.base_url}/test")
            except (httpx.ConnectError, httpx.TimeoutException) as e:
                self.logger.warning(f"Duffel backend endpoint appears to be offline: {self.base_url} ({e})")
                return False
            except (httpx.HTTPError, httpx.InvalidURL) as e:
                self.logger.warning(
                    f"Duffel test endpoint not available ({e}); assuming configured credentials work. "
                    f"Consider implementing {self.base_url}/test in the backend"
                )
                return True

            if response.is_success:
                self.logger.info("Duffel backend test endpoint successful")
                return True

            self.logger.warning(f"Duffel backend test failed: {response.status_code} {response.reason_phrase}")
            return False

        except Exception as e:
            self.logger.error(f"Duffel connection test error: {e}", exc_info=True)
            return False

    def _validate_criteria(self, criteria: FlightSearchCriteria) -> None:
        if not criteria.origin or not criteria.destination or not criteria.departure_date:
            raise self._error(
                "Missing required flight search criteria (origin, destination, and departure date)"
            )
        if criteria.is_return_flight and not criteria.return_date:
            raise self._error("Missing required flight search criteria (return date for a return flight)")
        if criteria.adults + criteria.children + criteria.seniors < 1:
            raise self._error("At least one passenger is required")

    def build_offer_request(self, criteria: FlightSearchCriteria) -> Dict[str, Any]:
        """Translate canonical criteria into Duffel's offer-request body."""
        try:
            slices = build_slices(criteria)
        except (ValueError, AttributeError) as e:
            raise self._error(f"Invalid request: Please check your search criteria (dates). ({e})", e) from e

        return {
            "data": {
                "slices": slices,
                "passengers": build_passengers(criteria),
                "cabin_class": criteria.cabin_class or "economy",
            }
        }

    async def search_flights(self, criteria: FlightSearchCriteria) -> ProviderResponse[StandardizedFlight]:
        """
        Create an offer request, then fetch and standardize its offers.

        Raises:
            ProviderConfigurationError: provider not configured (no request is sent)
            ProviderError: invalid criteria, or either step failing
        """
        self.ensure_configured()
        self._validate_criteria(criteria)
        request_body = self.build_offer_request(criteria)
        trip_type = "return" if criteria.is_return_flight else "one-way"

        try:
            async with self._client() as client:
                self.logger.info(
                    f"Creating Duffel offer request ({trip_type}) {criteria.origin}->{criteria.destination}"
                )
                offer_request_response = await self._send(
                    client, "POST", f"{self.base_url}/offer-requests", json=request_body
                )
                if offer_request_response.is_error:
                    raise self._http_error(offer_request_response, "Failed to fetch flight offers")

                offer_request_id = self._extract_offer_request_id(offer_request_response)
                self.logger.info(f"Duffel offer request created: {offer_request_id}")

                offers_response = await self._send(
                    client,
                    "GET",
                    f"{self.base_url}/offers",
                    params={"offer_request_id": offer_request_id},
                )
                if offers_response.is_error:
                    raise self._http_error(offers_response, "Failed to fetch offers")

                offers_data = offers_response.json()

            offers = offers_data.get("data") or []
            self.logger.info(f"Duffel returned {len(offers)} offers for {offer_request_id} ({trip_type})")

            flights = [self._convert_offer(offer, offer_request_id) for offer in offers]

            metadata: Dict[str, Any] = {
                "total_results": len(flights),
                "page": 1,
                "offer_request_id": offer_request_id,
            }
            rate_limit = self._rate_limit(offers_response)
            if rate_limit:
                metadata["rate_limit"] = rate_limit

            return ProviderResponse(success=True, data=flights, provider=self.name, metadata=metadata)

        except ProviderError:
            raise
        except httpx.TransportError as e:
            self.logger.error(f"Duffel search transport failure: {e}")
            raise self._network_error(e) from e
        except Exception as e:
            self.logger.error(f"Duffel search error: {e}", exc_info=True)
            raise self._error(self._user_friendly_message(str(e)), e) from e

    def _extract_offer_request_id(self, response: httpx.Response) -> str:
        try:
            body = response.json()
            offer_request_id = body["data"]["id"]
        except (ValueError, KeyError, TypeError) as e:
            raise self._error("Duffel offer request response did not include an id", e) from e
        if not offer_request_id:
            raise self._error("Duffel offer request response did not include an id")
        return offer_request_id

    def _user_friendly_message(self, message: str) -> str:
        if "401" in message:
            return "Authentication failed: Please check your Duffel API token."
        if "400" in message:
            return "Invalid request: Please check your search criteria (dates, airports, etc.)."
        return message or "Unknown error occurred"

    @staticmethod
    def _rate_limit(response: httpx.Response) -> Optional[Dict[str, Any]]:
        remaining = response.headers.get("x-ratelimit-remaining")
        if remaining is None:
            return None
        return {
            "remaining": int(remaining) if remaining.isdigit() else remaining,
            "limit": response.headers.get("x-ratelimit-limit"),
            "reset_time": response.headers.get("x-ratelimit-reset"),
        }

    def _convert_offer(self, offer: Dict[str, Any], offer_request_id: str) -> StandardizedFlight:
        """Duffel offer -> StandardizedFlight; the raw offer is kept in details."""
        details = dict(offer)
        details["source"] = "duffel"
        details["offerRequestId"] = offer_request_id

        try:
            total_amount = float(offer.get("total_amount"))
        except (TypeError, ValueError) as e:
            raise self._error(f"Duffel offer {offer.get('id')} has an invalid total_amount", e) from e

        return StandardizedFlight(
            id=offer.get("id", ""),
            provider=self.name,
            total_amount=total_amount,
            total_currency=offer.get("total_currency"),
            valid_until=offer.get("expires_at"),
            booking_available=True,
            slices=self._convert_slices(offer.get("slices") or []),
            details=details,
        )

    def _convert_slices(self, duffel_slices: List[Dict[str, Any]]) -> List[FlightSlice]:
        slices = []
        for duffel_slice in duffel_slices:
            segments = duffel_slice.get("segments") or []
            slices.append(FlightSlice(
                origin=self._endpoint(duffel_slice.get("origin")),
                destination=self._endpoint(duffel_slice.get("destination")),
                departure_date_time=segments[0].get("departing_at", "") if segments else "",
                arrival_date_time=segments[-1].get("arriving_at", "") if segments else "",
                duration=duffel_slice.get("duration") or "",
                segments=self._convert_segments(segments),
            ))
        return slices

    def _convert_segments(self, duffel_segments: List[Dict[str, Any]]) -> List[FlightSegment]:
        segments = []
        for segment in duffel_segments:
            carrier = segment.get("marketing_carrier") or {}
            aircraft = segment.get("aircraft") or {}
            segments.append(FlightSegment(
                id=segment.get("id") or "",
                origin=self._endpoint(segment.get("origin")),
                destination=self._endpoint(segment.get("destination")),
                departing_at=segment.get("departing_at") or "",
                arriving_at=segment.get("arriving_at") or "",
                duration=segment.get("duration") or "",
                marketing_carrier_code=carrier.get("iata_code") or "",
                marketing_carrier_name=carrier.get("name"),
                marketing_carrier_flight_number=segment.get("marketing_carrier_flight_number") or "",
                aircraft_name=aircraft.get("name"),
            ))
        return segments

    @staticmethod
    def _endpoint(place: Optional[Dict[str, Any]]) -> FlightEndpoint:
        place = place or {}
        return FlightEndpoint(iata_code=place.get("iata_code") or "", name=place.get("name"))

    # ------------------------------------------------------------------
    # Duffel-specific helpers
    # ------------------------------------------------------------------

    async def create_order(self, offer_id: str, passengers: List[Dict[str, Any]]) -> Dict[str, Any]:
        """Book an offer. Passenger payloads are passed through verbatim.

        Sent exactly once: transport errors are not retried, since a timed-out
        booking may already exist upstream.
        """
        self.ensure_configured()
        try:
            async with self._client() as client:
                response = await self._send(
                    client,
                    "POST",
                    f"{self.base_url}/orders",
                    json={"data": {"selected_offers": [offer_id], "passengers": passengers}},
                    retries=0,
                )
        except httpx.TransportError as e:
            raise self._network_error(e) from e

        if response.is_error:
            detail = self._extract_error_detail(response, response.reason_phrase)
            raise self._error(f"Failed to create order: {detail}", status_code=response.status_code)
        return response.json()

    async def get_offer_details(self, offer_id: str) -> Dict[str, Any]:
        self.ensure_configured()
        try:
            async with self._client() as client:
                response = await self._send(client, "GET", f"{self.base_url}/offers/{offer_id}")
        except httpx.TransportError as e:
            raise self._network_error(e) from e

        if response.is_error:
            raise self._error(
                f"Failed to fetch offer details: {response.reason_phrase}",
                status_code=response.status_code,
            )
        return response.json()

    async def get_api_status(self) -> Dict[str, Any]:
        """Backend availability plus Duffel's rate-limit headers."""
        try:
            async with self._client(timeout=settings.HEALTH_CHECK_TIMEOUT_SECONDS) as client:
                response = await client.get(f"{self.base_url}/test")
        except (httpx.HTTPError, httpx.InvalidURL):
            return {"available": False}

        if response.is_error:
            return {"available": False}
        return {"available": True, "rate_limit": self._rate_limit(response)}
