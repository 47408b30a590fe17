"""
Provider Factory
Central provider management: registration, configuration, active-provider
selection and instantiation.

The factory is an explicitly constructed context object. Construct one at
application start, register adapters into it (see registry.initialize_providers)
and pass it to whatever needs providers.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from .activity_provider import ActivityProvider
from .base_provider import ProviderConfig, ProviderType, TravelProvider
from .config_store import ConfigStore, storage_key
from .errors import ProviderConfigurationError, ProviderError, ProviderNotFoundError
from .flight_provider import FlightProvider
from .hotel_provider import HotelProvider


logger = logging.getLogger(__name__)

ProviderFactoryFn = Callable[[], TravelProvider]


class ProviderStatus:
    """Lifecycle of a provider name inside one factory."""
    UNREGISTERED = "unregistered"
    REGISTERED = "registered"
    CONFIGURED = "configured"
    VERIFIED = "verified"


class ProviderFactory:
    """
    Owns adapter constructors, per-provider configuration and active-provider
    selection.

    Every get_*_provider call builds a fresh adapter and applies the stored
    configuration; adapters are never cached or pooled.

    Active providers are keyed by user id. Omitting user_id uses the shared
    "default" key; with require_user_id=True that fallback is refused so
    multi-tenant callers cannot leak selections across tenants.
    """

    DEFAULT_USER_KEY = "default"

    def __init__(self, store: Optional[ConfigStore] = None, require_user_id: bool = False):
        self._providers: Dict[str, Dict[str, ProviderFactoryFn]] = {
            provider_type: {} for provider_type in ProviderType.ALL
        }
        self._configurations: Dict[str, ProviderConfig] = {}
        self._active_providers: Dict[str, Dict[str, str]] = {}
        self._verified_at: Dict[str, datetime] = {}
        self.store = store
        self.require_user_id = require_user_id

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def _register(self, provider_type: str, name: str, factory_fn: ProviderFactoryFn) -> None:
        if not callable(factory_fn):
            raise ValueError(f"Provider factory for '{name}' must be callable")
        self._providers[provider_type][name] = factory_fn
        logger.info(f"Registered {provider_type} provider: {name}")

    def register_hotel_provider(self, name: str, factory_fn: Callable[[], HotelProvider]) -> None:
        self._register(ProviderType.HOTEL, name, factory_fn)

    def register_flight_provider(self, name: str, factory_fn: Callable[[], FlightProvider]) -> None:
        self._register(ProviderType.FLIGHT, name, factory_fn)

    def register_activity_provider(self, name: str, factory_fn: Callable[[], ActivityProvider]) -> None:
        self._register(ProviderType.ACTIVITY, name, factory_fn)

    def is_registered(self, provider_type: str, name: str) -> bool:
        return name in self._providers.get(provider_type, {})

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def set_provider_config(self, name: str, config: ProviderConfig) -> None:
        """Replace the whole configuration record for a provider."""
        self._configurations[name] = config.copy()
        self._verified_at.pop(name, None)
        logger.info(f"Configured provider: {name} (enabled={config.enabled})")

    def get_provider_config(self, name: str) -> Optional[ProviderConfig]:
        config = self._configurations.get(name)
        return config.copy() if config else None

    def get_all_provider_configs(self) -> Dict[str, ProviderConfig]:
        return {name: config.copy() for name, config in self._configurations.items()}

    # ------------------------------------------------------------------
    # Active provider selection
    # ------------------------------------------------------------------

    def _user_key(self, user_id: Optional[str]) -> str:
        if user_id:
            return str(user_id)
        if self.require_user_id:
            raise ValueError("user_id is required when the provider factory runs in multi-tenant mode")
        return self.DEFAULT_USER_KEY

    def set_active_provider(self, provider_type: str, name: str, user_id: Optional[str] = None) -> None:
        ProviderType.validate(provider_type)
        key = self._user_key(user_id)
        if not user_id:
            logger.warning(f"No user_id given; active {provider_type} provider is shared under '{key}'")
        if not self.is_registered(provider_type, name):
            logger.warning(f"Active {provider_type} provider '{name}' is not registered (yet)")
        self._active_providers.setdefault(key, {})[provider_type] = name
        logger.info(f"Set active {provider_type} provider to: {name} (user: {key})")

    def get_active_provider(self, provider_type: str, user_id: Optional[str] = None) -> Optional[str]:
        key = self._user_key(user_id)
        return self._active_providers.get(key, {}).get(provider_type)

    def get_active_providers(self, user_id: Optional[str] = None) -> Dict[str, str]:
        return dict(self._active_providers.get(self._user_key(user_id), {}))

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def _resolve(self, provider_type: str, name: Optional[str], user_id: Optional[str]) -> TravelProvider:
        provider_name = name or self.get_active_provider(provider_type, user_id)
        if not provider_name:
            raise ProviderNotFoundError(
                f"No {provider_type} provider specified and no default configured", "unknown"
            )

        factory_fn = self._providers[provider_type].get(provider_name)
        if not factory_fn:
            raise ProviderNotFoundError(
                f"{provider_type.capitalize()} provider '{provider_name}' not found", provider_name
            )

        provider = factory_fn()
        config = self._configurations.get(provider_name)
        if config:
            provider.configure(config.copy())

        if not provider.is_configured():
            raise ProviderConfigurationError(
                provider_name,
                provider.get_missing_credentials(),
                disabled=bool(config and not config.enabled),
            )

        return provider

    def get_hotel_provider(self, name: Optional[str] = None, user_id: Optional[str] = None) -> HotelProvider:
        return self._resolve(ProviderType.HOTEL, name, user_id)

    def get_flight_provider(self, name: Optional[str] = None, user_id: Optional[str] = None) -> FlightProvider:
        return self._resolve(ProviderType.FLIGHT, name, user_id)

    def get_activity_provider(
        self, name: Optional[str] = None, user_id: Optional[str] = None
    ) -> ActivityProvider:
        return self._resolve(ProviderType.ACTIVITY, name, user_id)

    def get_provider(
        self, provider_type: str, name: Optional[str] = None, user_id: Optional[str] = None
    ) -> TravelProvider:
        if provider_type not in ProviderType.ALL:
            raise ProviderError(f"Unknown provider type: {provider_type}", name or "unknown")
        return self._resolve(provider_type, name, user_id)

    # ------------------------------------------------------------------
    # Provider information
    # ------------------------------------------------------------------

    def get_available_hotel_providers(self) -> List[str]:
        return list(self._providers[ProviderType.HOTEL].keys())

    def get_available_flight_providers(self) -> List[str]:
        return list(self._providers[ProviderType.FLIGHT].keys())

    def get_available_activity_providers(self) -> List[str]:
        return list(self._providers[ProviderType.ACTIVITY].keys())

    def get_provider_info(self, provider_type: str, name: str) -> Dict[str, Any]:
        """
        Describe a registered provider without requiring it to be configured.

        Raises:
            ProviderError: unknown provider type
            ProviderNotFoundError: name not registered for that type
        """
        if provider_type not in ProviderType.ALL:
            raise ProviderError(f"Unknown provider type: {provider_type}", name)

        factory_fn = self._providers[provider_type].get(name)
        if not factory_fn:
            raise ProviderNotFoundError(f"Provider '{name}' not found for type '{provider_type}'", name)

        provider = factory_fn()
        config = self._configurations.get(name)
        if config:
            provider.configure(config.copy())

        info = provider.get_provider_info()
        info["name"] = name
        info["missing_credentials"] = provider.get_missing_credentials()
        info["status"] = self.get_provider_status(provider_type, name)
        return info

    def list_providers(self, provider_type: str, user_id: Optional[str] = None) -> List[Dict[str, Any]]:
        active = self.get_active_provider(provider_type, user_id)
        providers = []
        for name in self._providers.get(provider_type, {}):
            info = self.get_provider_info(provider_type, name)
            info["is_active"] = name == active
            providers.append(info)
        return providers

    def get_provider_status(self, provider_type: str, name: str) -> str:
        if not self.is_registered(provider_type, name):
            return ProviderStatus.UNREGISTERED
        if name in self._verified_at:
            return ProviderStatus.VERIFIED
        if name in self._configurations:
            return ProviderStatus.CONFIGURED
        return ProviderStatus.REGISTERED

    def get_last_verified(self, name: str) -> Optional[datetime]:
        return self._verified_at.get(name)

    # ------------------------------------------------------------------
    # Utility
    # ------------------------------------------------------------------

    async def test_provider(self, provider_type: str, name: str) -> bool:
        """
        Resolve the provider as a search would, then run test_connection().
        Always resolves to a boolean; resolution errors read as False.
        """
        try:
            provider = self.get_provider(provider_type, name)
            result = bool(await provider.test_connection())
        except Exception as e:
            logger.error(f"Failed to test provider {name}: {e}")
            result = False

        if result:
            self._verified_at[name] = datetime.now(timezone.utc)
        else:
            self._verified_at.pop(name, None)
        return result

    def _require_store(self) -> ConfigStore:
        if self.store is None:
            raise RuntimeError("ProviderFactory has no configuration store")
        return self.store

    def load_configurations(self, user_id: Optional[str] = None) -> bool:
        """
        Load configs and the user's active selection from the store.

        A stored document replaces (never merges into) the in-memory provider
        configs and that user's active map. Returns False when nothing is stored.
        """
        store = self._require_store()
        key = self._user_key(user_id)
        data = store.load(storage_key(None if key == self.DEFAULT_USER_KEY else key))
        if data is None:
            logger.info(f"No saved provider configurations for user: {key}")
            return False

        configurations = {
            name: ProviderConfig.from_dict(config or {}, name=name)
            for name, config in (data.get("providers") or {}).items()
        }
        active = {
            provider_type: provider_name
            for provider_type, provider_name in (data.get("active") or {}).items()
            if provider_type in ProviderType.ALL and provider_name
        }

        self._configurations = configurations
        self._active_providers[key] = active
        self._verified_at.clear()
        logger.info(f"Loaded {len(configurations)} provider configuration(s) for user: {key}")
        return True

    def save_configurations(self, user_id: Optional[str] = None) -> Dict[str, Any]:
        """Write all provider configs plus the user's active selection; returns the document."""
        store = self._require_store()
        key = self._user_key(user_id)
        data = {
            "providers": {name: config.to_dict() for name, config in self._configurations.items()},
            "active": dict(self._active_providers.get(key, {})),
        }
        store.save(storage_key(None if key == self.DEFAULT_USER_KEY else key), data)
        logger.info(f"Provider configurations saved for user: {key}")
        return data

    def reset(self) -> None:
        """Clear configurations and selections; registrations are kept."""
        self._configurations.clear()
        self._active_providers.clear()
        self._verified_at.clear()
        logger.debug("Provider factory reset")
