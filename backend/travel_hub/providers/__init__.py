"""
Providers Package
Pluggable travel supplier adapters behind one canonical contract:
- Hotel Providers (Hotelbeds)
- Flight Providers (Duffel)
- Activity Providers (none integrated yet)
"""

# Shared contract
from .base_provider import (
    TravelProvider,
    ProviderType,
    ProviderConfig,
    ProviderResponse,
    SearchCriteria
)
from .errors import (
    ProviderError,
    ProviderNotFoundError,
    ProviderConfigurationError
)

# Hotel Providers
from .hotel_provider import HotelProvider, HotelSearchCriteria, StandardizedHotel
from .hotelbeds_provider import HotelbedsProvider

# Flight Providers
from .flight_provider import (
    FlightProvider,
    FlightSearchCriteria,
    StandardizedFlight,
    FlightSlice,
    FlightSegment
)
from .duffel_provider import DuffelProvider

# Activity Providers
from .activity_provider import ActivityProvider, ActivitySearchCriteria, StandardizedActivity

# Registry, factory and persistence
from .config_store import ConfigStore, InMemoryConfigStore, SqlConfigStore
from .factory import ProviderFactory, ProviderStatus
from .registry import (
    CredentialField,
    ProviderDefinition,
    PROVIDER_DEFINITIONS,
    DEFAULT_PROVIDER_CONFIGS,
    get_provider_definition,
    get_provider_definitions_by_type,
    initialize_providers
)

__all__ = [
    # Contract
    "TravelProvider",
    "ProviderType",
    "ProviderConfig",
    "ProviderResponse",
    "SearchCriteria",
    "ProviderError",
    "ProviderNotFoundError",
    "ProviderConfigurationError",
    # Hotel
    "HotelProvider",
    "HotelSearchCriteria",
    "StandardizedHotel",
    "HotelbedsProvider",
    # Flight
    "FlightProvider",
    "FlightSearchCriteria",
    "StandardizedFlight",
    "FlightSlice",
    "FlightSegment",
    "DuffelProvider",
    # Activity
    "ActivityProvider",
    "ActivitySearchCriteria",
    "StandardizedActivity",
    # Registry / factory
    "ConfigStore",
    "InMemoryConfigStore",
    "SqlConfigStore",
    "ProviderFactory",
    "ProviderStatus",
    "CredentialField",
    "ProviderDefinition",
    "PROVIDER_DEFINITIONS",
    "DEFAULT_PROVIDER_CONFIGS",
    "get_provider_definition",
    "get_provider_definitions_by_type",
    "initialize_providers",
]
