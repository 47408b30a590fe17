"""
Hotel Provider - Abstract Base Class
Defines the interface and canonical records for hotel inventory suppliers.
"""

from abc import abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union

from .base_provider import ProviderResponse, ProviderType, SearchCriteria, TravelProvider


@dataclass
class HotelSearchCriteria(SearchCriteria):
    """
    Standardized hotel search request.
    `country` takes precedence over `destination` when both are given.
    """
    hotel_name: Optional[str] = None
    country: Optional[str] = None
    selected_day_id: Optional[str] = None


@dataclass
class StandardizedHotel:
    """
    Canonical hotel rate returned by every hotel adapter.
    Supplier-only fields live in `details`, never at the top level.
    cost is None when the supplier sent a non-numeric price (kept in details["rawCost"]).
    """
    id: Union[str, int]
    name: str
    description: str
    cost: Optional[float]
    currency: str
    provider: str
    rate_type: str
    valid_start: Optional[str] = None
    valid_end: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)

    @property
    def booking_available(self) -> bool:
        return bool(self.details.get("bookingAvailable", False))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "cost": self.cost,
            "currency": self.currency,
            "provider": self.provider,
            "rateType": self.rate_type,
            "validStart": self.valid_start,
            "validEnd": self.valid_end,
            "details": dict(self.details),
        }


class HotelProvider(TravelProvider):
    """
    Abstract base class for hotel providers.
    All hotel suppliers (Hotelbeds, ...) must implement this interface.
    """

    provider_type = ProviderType.HOTEL

    @abstractmethod
    async def search_hotels(self, criteria: HotelSearchCriteria) -> ProviderResponse[StandardizedHotel]:
        pass

    async def search(self, criteria: HotelSearchCriteria) -> ProviderResponse[StandardizedHotel]:
        return await self.search_hotels(criteria)
