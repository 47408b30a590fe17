"""
Activity Provider - Abstract Base Class
Tours/excursions capability. No supplier is wired in yet; the contract is
kept so activity adapters register the same way hotel and flight ones do.
"""

from abc import abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from .base_provider import ProviderResponse, ProviderType, SearchCriteria, TravelProvider


@dataclass
class ActivitySearchCriteria(SearchCriteria):
    location: Optional[str] = None
    category: Optional[str] = None
    duration: Optional[str] = None


@dataclass
class StandardizedActivity:
    id: str
    name: str
    description: str
    cost: float
    currency: str
    provider: str
    duration: Optional[str] = None
    location: Optional[str] = None
    category: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "cost": self.cost,
            "currency": self.currency,
            "provider": self.provider,
            "duration": self.duration,
            "location": self.location,
            "category": self.category,
            "details": dict(self.details),
        }


class ActivityProvider(TravelProvider):
    """Abstract base class for activity providers."""

    provider_type = ProviderType.ACTIVITY

    @abstractmethod
    async def search_activities(
        self, criteria: ActivitySearchCriteria
    ) -> ProviderResponse[StandardizedActivity]:
        pass

    async def search(self, criteria: ActivitySearchCriteria) -> ProviderResponse[StandardizedActivity]:
        return await self.search_activities(criteria)
