"""
Travel Provider Registry
Static catalog of provider definitions (display metadata and credential
fields used by configuration screens) plus explicit startup registration
into a ProviderFactory.
"""

import logging
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

from .base_provider import ProviderConfig, ProviderType
from .config_store import ConfigStore
from .duffel_provider import DuffelProvider
from .hotelbeds_provider import HotelbedsProvider


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CredentialField:
    key: str
    display_name: str
    type: str = "text"  # password | url | text
    required: bool = True
    placeholder: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ProviderDefinition:
    name: str
    display_name: str
    description: str
    required_credentials: List[CredentialField] = field(default_factory=list)
    capabilities: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "display_name": self.display_name,
            "description": self.description,
            "required_credentials": [c.to_dict() for c in self.required_credentials],
            "capabilities": dict(self.capabilities),
        }


PROVIDER_DEFINITIONS: Dict[str, List[ProviderDefinition]] = {
    ProviderType.HOTEL: [
        ProviderDefinition(
            name="hotelbeds",
            display_name="Hotelbeds",
            description="Leading hotel distribution platform with extensive global inventory",
            required_credentials=[
                CredentialField("apiKey", "API Key", "password"),
                CredentialField("secret", "Secret", "password"),
                CredentialField("endpoint", "Backend Endpoint URL", "url",
                                placeholder="http://localhost:3001"),
            ],
            capabilities={
                "searchHotels": True,
                "realTimeAvailability": True,
                "instantBooking": True,
                "multiCurrency": True,
                "geographicCoverage": ["Global"],
            },
        ),
    ],
    ProviderType.FLIGHT: [
        ProviderDefinition(
            name="duffel",
            display_name="Duffel",
            description="Modern flight booking API with comprehensive airline coverage",
            required_credentials=[
                CredentialField("accessToken", "Access Token", "password"),
                CredentialField("endpoint", "Backend Endpoint URL", "url",
                                placeholder="/api/duffel"),
            ],
            capabilities={
                "searchFlights": True,
                "realTimeAvailability": True,
                "instantBooking": True,
                "multiCurrency": True,
                "geographicCoverage": ["Global"],
            },
        ),
    ],
    ProviderType.ACTIVITY: [],
}


_DEFAULT_SETTINGS = {
    "timeout": 30000,
    "retryAttempts": 3,
    "cacheResults": True,
    "priority": 1,
}

DEFAULT_PROVIDER_CONFIGS: Dict[str, ProviderConfig] = {
    "hotelbeds": ProviderConfig(
        name="hotelbeds",
        enabled=True,
        credentials={"apiKey": "", "secret": "", "endpoint": "http://localhost:3001"},
        settings={**_DEFAULT_SETTINGS, "cacheDuration": 60},
    ),
    "duffel": ProviderConfig(
        name="duffel",
        enabled=True,
        credentials={"accessToken": "", "endpoint": "/api/duffel"},
        settings={**_DEFAULT_SETTINGS, "cacheDuration": 30},
    ),
}


def get_provider_definitions_by_type(provider_type: str) -> List[ProviderDefinition]:
    return list(PROVIDER_DEFINITIONS.get(provider_type, []))


def get_provider_definition(provider_type: str, name: str) -> Optional[ProviderDefinition]:
    for definition in PROVIDER_DEFINITIONS.get(provider_type, []):
        if definition.name == name:
            return definition
    return None


def get_default_config(name: str) -> Optional[ProviderConfig]:
    """Blank, disabled config for a known provider (used to seed settings forms)."""
    config = DEFAULT_PROVIDER_CONFIGS.get(name)
    return config.copy() if config else None


def register_hotel_providers(factory) -> None:
    factory.register_hotel_provider("hotelbeds", HotelbedsProvider)


def register_flight_providers(factory) -> None:
    factory.register_flight_provider("duffel", DuffelProvider)


def register_activity_providers(factory) -> None:
    # No activity suppliers integrated yet
    pass


def initialize_providers(factory, store: Optional[ConfigStore] = None,
                         user_id: Optional[str] = None) -> None:
    """
    Register every adapter and, when a store is available, load saved
    configurations. A failing load is logged and startup continues with
    unconfigured providers.
    """
    register_hotel_providers(factory)
    register_flight_providers(factory)
    register_activity_providers(factory)

    if store is not None:
        factory.store = store
    if factory.store is None:
        logger.info("Travel providers registered (no configuration store)")
        return

    try:
        loaded = factory.load_configurations(user_id)
        logger.info(f"Travel providers initialized (saved configurations loaded: {loaded})")
    except Exception as e:
        logger.error(f"Failed to load provider configurations: {e}", exc_info=True)
