"""
Travel Provider - Abstract Base Class
Shared contract, configuration and response types for every capability
(hotel, flight, activity).
"""

import asyncio
import copy
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Generic, List, Optional, TypeVar

import httpx

import settings
from travel_hub.security import mask_credentials
from .errors import ProviderConfigurationError, ProviderError


T = TypeVar("T")


class ProviderType:
    """Capability types a provider can serve."""
    HOTEL = "hotel"
    FLIGHT = "flight"
    ACTIVITY = "activity"

    ALL = (HOTEL, FLIGHT, ACTIVITY)

    @classmethod
    def validate(cls, value: str) -> str:
        if value not in cls.ALL:
            raise ValueError(f"Unknown provider type: {value}")
        return value


@dataclass
class ProviderConfig:
    """
    Per-provider settings.

    credentials: string key -> secret/string value (apiKey, accessToken, endpoint, ...)
    settings: free-form (timeout in ms, retryAttempts, cacheResults, cacheDuration, priority)
    """
    name: str
    enabled: bool = True
    credentials: Dict[str, str] = field(default_factory=dict)
    settings: Dict[str, Any] = field(default_factory=dict)

    def copy(self) -> "ProviderConfig":
        return ProviderConfig(
            name=self.name,
            enabled=self.enabled,
            credentials=dict(self.credentials),
            settings=copy.deepcopy(self.settings),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "enabled": self.enabled,
            "credentials": dict(self.credentials),
            "settings": copy.deepcopy(self.settings),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], name: Optional[str] = None) -> "ProviderConfig":
        """Build from the persisted JSON shape; `name` wins over data['name'] when given."""
        credentials = data.get("credentials") or {}
        return cls(
            name=name or data.get("name", ""),
            enabled=bool(data.get("enabled", False)),
            credentials={str(k): "" if v is None else str(v) for k, v in credentials.items()},
            settings=copy.deepcopy(data.get("settings") or {}),
        )


@dataclass
class SearchCriteria:
    """Fields common to every capability's search criteria."""
    check_in_date: Optional[str] = None
    check_out_date: Optional[str] = None
    destination: Optional[str] = None
    guests: Optional[int] = None


@dataclass
class ProviderResponse(Generic[T]):
    """
    Envelope returned by every adapter search call.

    Models (paged) success only: failures are raised as ProviderError.
    """
    success: bool
    data: List[T]
    provider: str
    metadata: Dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def total_results(self) -> int:
        return self.metadata.get("total_results", len(self.data))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "data": [item.to_dict() if hasattr(item, "to_dict") else item for item in self.data],
            "provider": self.provider,
            "metadata": dict(self.metadata),
        }


def is_blank(value: Any) -> bool:
    return value is None or not str(value).strip()


class TravelProvider(ABC):
    """
    Abstract base class for travel inventory providers.

    Credential validation is permissive: a credential counts as
    present when it is a non-blank string. No format checks are applied, so
    configuration screens can show partially filled setups.
    """

    provider_type: str = ""
    DEFAULT_BASE_URL: str = ""
    BAD_REQUEST_HINT: str = "(dates, destination, etc.)"

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        """
        Args:
            transport: Optional httpx transport (tests inject httpx.MockTransport)
        """
        self.config: Optional[ProviderConfig] = None
        self.base_url = self.DEFAULT_BASE_URL.rstrip("/")
        self._transport = transport
        self.name = self.get_provider_name()
        self.logger = logging.getLogger(f"{__name__}.{self.name}")

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return provider identifier (e.g. 'hotelbeds', 'duffel')."""
        pass

    @abstractmethod
    def get_display_name(self) -> str:
        pass

    @abstractmethod
    def get_description(self) -> str:
        pass

    @abstractmethod
    def get_required_credentials(self) -> List[str]:
        """Static list of credential keys; drives validation and configuration UI."""
        pass

    @abstractmethod
    async def test_connection(self) -> bool:
        """
        Lightweight reachability check.

        Must resolve to a boolean and never raise, including when the
        provider is not configured.
        """
        pass

    @abstractmethod
    async def search(self, criteria: SearchCriteria) -> ProviderResponse:
        """
        Run a search and return canonical records.

        Raises:
            ProviderConfigurationError: if is_configured() is False (before any I/O)
            ProviderError: on upstream/transport/validation failures
        """
        pass

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def configure(self, config: ProviderConfig) -> None:
        """Store config and derive the base URL from the `endpoint` credential."""
        self.config = config
        endpoint = (config.credentials or {}).get("endpoint")
        if is_blank(endpoint):
            self.base_url = self.DEFAULT_BASE_URL.rstrip("/")
        else:
            self.base_url = endpoint.strip().rstrip("/")
        self.logger.debug(
            f"Configured {self.name} (enabled={config.enabled}, "
            f"credentials={mask_credentials(config.credentials)})"
        )

    def get_missing_credentials(self) -> List[str]:
        credentials = self.config.credentials if self.config else {}
        return [key for key in self.get_required_credentials() if is_blank(credentials.get(key))]

    def is_configured(self) -> bool:
        if not self.config or not self.config.enabled:
            return False
        return not self.get_missing_credentials()

    def ensure_configured(self) -> None:
        if not self.is_configured():
            raise ProviderConfigurationError(
                self.name,
                self.get_missing_credentials(),
                disabled=bool(self.config and not self.config.enabled),
            )

    def get_credential(self, key: str, default: str = "") -> str:
        if not self.config:
            return default
        value = self.config.credentials.get(key)
        return default if is_blank(value) else value.strip()

    def get_setting(self, key: str, default: Any = None) -> Any:
        if not self.config:
            return default
        return self.config.settings.get(key, default)

    def get_provider_info(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "type": self.provider_type,
            "display_name": self.get_display_name(),
            "description": self.get_description(),
            "required_credentials": self.get_required_credentials(),
            "is_configured": self.is_configured(),
        }

    # ------------------------------------------------------------------
    # HTTP plumbing
    # ------------------------------------------------------------------

    def _timeout_seconds(self) -> float:
        """`timeout` setting is in milliseconds."""
        timeout_ms = self.get_setting("timeout", settings.DEFAULT_TIMEOUT_MS)
        try:
            timeout_ms = float(timeout_ms)
        except (TypeError, ValueError):
            timeout_ms = float(settings.DEFAULT_TIMEOUT_MS)
        return max(timeout_ms, 1.0) / 1000.0

    def _retry_attempts(self) -> int:
        try:
            return max(0, int(self.get_setting("retryAttempts", 0)))
        except (TypeError, ValueError):
            return 0

    def _default_headers(self) -> Dict[str, str]:
        return {"Content-Type": "application/json", "Accept": "application/json"}

    def _client(self, timeout: Optional[float] = None) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=timeout if timeout is not None else self._timeout_seconds(),
            headers=self._default_headers(),
            transport=self._transport,
        )

    async def _send(
        self,
        client: httpx.AsyncClient,
        method: str,
        url: str,
        retries: Optional[int] = None,
        **kwargs
    ) -> httpx.Response:
        """
        Send a request, retrying transport errors `retryAttempts` times.

        HTTP error statuses are returned to the caller, never retried.
        Pass retries=0 for requests that must not be repeated (bookings).
        """
        if retries is None:
            retries = self._retry_attempts()
        attempt = 0
        while True:
            try:
                return await client.request(method, url, **kwargs)
            except httpx.TransportError as e:
                if attempt >= retries:
                    raise
                attempt += 1
                self.logger.warning(
                    f"{method} {url} failed ({e.__class__.__name__}), retry {attempt}/{retries}"
                )
                await asyncio.sleep(0.2 * attempt)

    def _error(self, message: str, original_error: Optional[BaseException] = None,
               status_code: Optional[int] = None) -> ProviderError:
        return ProviderError(message, self.name, original_error, status_code)

    def _network_error(self, original_error: BaseException) -> ProviderError:
        return self._error(
            f"Network error: Unable to connect to {self.get_display_name()} API. "
            "Please check your internet connection and API credentials.",
            original_error,
        )

    @staticmethod
    def _extract_error_detail(response: httpx.Response, fallback: Optional[str] = None) -> str:
        """
        Pull a human-readable message out of an upstream error body.

        Understands `{"errors": [{"message": ...}]}`, `{"error": ...}` and
        `{"message": ...}`; falls back to the raw body text.
        """
        text = response.text or ""
        try:
            body = response.json()
        except ValueError:
            body = None

        if isinstance(body, dict):
            errors = body.get("errors")
            if isinstance(errors, list) and errors and isinstance(errors[0], dict) and errors[0].get("message"):
                return str(errors[0]["message"])
            error = body.get("error")
            if isinstance(error, dict) and error.get("message"):
                return str(error["message"])
            if isinstance(error, str) and error:
                return error
            if body.get("message"):
                return f"HTTP {response.status_code}: {body['message']}"
        elif text.strip():
            return f"HTTP {response.status_code}: {response.reason_phrase} - {text.strip()}"

        return fallback or f"HTTP {response.status_code}: {response.reason_phrase}"

    def _http_error(self, response: httpx.Response, fallback: Optional[str] = None) -> ProviderError:
        """Translate a non-2xx upstream response, keeping the upstream detail."""
        detail = self._extract_error_detail(response, fallback)
        status = response.status_code
        if status == 401:
            message = f"Authentication failed: Please check your {self.get_display_name()} API token. ({detail})"
        elif status == 400:
            message = f"Invalid request: Please check your search criteria {self.BAD_REQUEST_HINT}. ({detail})"
        else:
            message = detail
        self.logger.warning(f"{self.get_display_name()} returned HTTP {status}: {detail}")
        return self._error(message, status_code=status)
