"""
Flight Provider - Abstract Base Class
Defines the interface and canonical records that all flight providers share.
"""

from abc import abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .base_provider import ProviderResponse, ProviderType, SearchCriteria, TravelProvider


CABIN_CLASSES = ("economy", "premium_economy", "business", "first")


@dataclass
class FlightSearchCriteria(SearchCriteria):
    """
    Standardized flight search request.
    Provider-agnostic representation of search parameters.
    """
    origin: str = ""               # IATA code (e.g., "JFK")
    departure_date: str = ""       # any ISO date/datetime, adapters normalise to YYYY-MM-DD
    return_date: Optional[str] = None
    adults: int = 1
    children: int = 0
    seniors: int = 0
    is_return_flight: bool = False
    cabin_class: Optional[str] = None   # economy, premium_economy, business, first

    def __post_init__(self):
        self.origin = (self.origin or "").strip().upper()
        if self.destination:
            self.destination = self.destination.strip().upper()

    @property
    def total_travelers(self) -> int:
        """Seniors count as travelers even though suppliers price them as adults."""
        return self.adults + self.children + self.seniors

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FlightSearchCriteria":
        """Accept either snake_case or the camelCase keys used by the web client."""
        def pick(snake, camel, default=None):
            if snake in data:
                return data[snake]
            return data.get(camel, default)

        return cls(
            origin=pick("origin", "origin", ""),
            destination=pick("destination", "destination"),
            departure_date=pick("departure_date", "departureDate", ""),
            return_date=pick("return_date", "returnDate"),
            adults=int(pick("adults", "adults", 1) or 0),
            children=int(pick("children", "children", 0) or 0),
            seniors=int(pick("seniors", "seniors", 0) or 0),
            is_return_flight=bool(pick("is_return_flight", "isReturnFlight", False)),
            cabin_class=pick("cabin_class", "cabinClass"),
        )


@dataclass
class FlightEndpoint:
    """Airport reference (IATA code + optional name)."""
    iata_code: str
    name: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"iataCode": self.iata_code, "name": self.name}


@dataclass
class FlightSegment:
    """Individual flight within a slice."""
    id: str
    origin: FlightEndpoint
    destination: FlightEndpoint
    departing_at: str
    arriving_at: str
    duration: str
    marketing_carrier_code: str
    marketing_carrier_flight_number: str
    marketing_carrier_name: Optional[str] = None
    aircraft_name: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "origin": self.origin.to_dict(),
            "destination": self.destination.to_dict(),
            "departingAt": self.departing_at,
            "arrivingAt": self.arriving_at,
            "duration": self.duration,
            "marketingCarrier": {
                "iataCode": self.marketing_carrier_code,
                "name": self.marketing_carrier_name,
            },
            "marketingCarrierFlightNumber": self.marketing_carrier_flight_number,
            "aircraft": {"name": self.aircraft_name},
        }


@dataclass
class FlightSlice:
    """One directional leg (outbound or return) made of ordered segments."""
    origin: FlightEndpoint
    destination: FlightEndpoint
    departure_date_time: str
    arrival_date_time: str
    duration: str
    segments: List[FlightSegment] = field(default_factory=list)

    @property
    def stops(self) -> int:
        return max(len(self.segments) - 1, 0)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "origin": self.origin.to_dict(),
            "destination": self.destination.to_dict(),
            "departureDateTime": self.departure_date_time,
            "arrivalDateTime": self.arrival_date_time,
            "duration": self.duration,
            "segments": [segment.to_dict() for segment in self.segments],
        }


@dataclass
class StandardizedFlight:
    """
    Canonical flight offer.
    Slices are ordered outbound first.
    """
    id: str
    provider: str
    total_amount: float
    total_currency: str
    slices: List[FlightSlice]
    booking_available: bool
    valid_until: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)

    def is_round_trip(self) -> bool:
        return len(self.slices) > 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "provider": self.provider,
            "totalAmount": self.total_amount,
            "totalCurrency": self.total_currency,
            "validUntil": self.valid_until,
            "bookingAvailable": self.booking_available,
            "slices": [s.to_dict() for s in self.slices],
            "details": dict(self.details),
        }


class FlightProvider(TravelProvider):
    """
    Abstract base class for flight search providers.
    All flight suppliers (Duffel, ...) must implement this interface.
    """

    provider_type = ProviderType.FLIGHT

    @abstractmethod
    async def search_flights(self, criteria: FlightSearchCriteria) -> ProviderResponse[StandardizedFlight]:
        pass

    async def search(self, criteria: FlightSearchCriteria) -> ProviderResponse[StandardizedFlight]:
        return await self.search_flights(criteria)
