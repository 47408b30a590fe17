"""
Travel provider error taxonomy.

ProviderError is raised for operational failures (network, upstream 4xx/5xx,
malformed payloads, invalid search criteria). ProviderConfigurationError is
raised for setup failures and always before any network call.
"""

from typing import List, Optional


class ProviderError(Exception):
    """Operational failure reported by (or about) a travel provider."""

    def __init__(
        self,
        message: str,
        provider: str,
        original_error: Optional[BaseException] = None,
        status_code: Optional[int] = None
    ):
        super().__init__(message)
        self.message = message
        self.provider = provider
        self.original_error = original_error
        self.status_code = status_code

    def to_dict(self) -> dict:
        payload = {
            "error": self.__class__.__name__,
            "message": self.message,
            "provider": self.provider,
        }
        if self.status_code is not None:
            payload["status_code"] = self.status_code
        if self.original_error is not None:
            payload["cause"] = str(self.original_error)
        return payload


class ProviderNotFoundError(ProviderError):
    """No adapter is registered under the requested name (or no default is set)."""


class ProviderConfigurationError(ProviderError):
    """
    Provider is disabled or missing required credentials.

    missing_credentials lists exactly the blank/absent keys, not every
    required key.
    """

    def __init__(self, provider: str, missing_credentials: List[str], disabled: bool = False):
        self.missing_credentials = list(missing_credentials)
        self.disabled = disabled

        if self.missing_credentials:
            message = (
                f"Provider {provider} is not properly configured. "
                f"Missing: {', '.join(self.missing_credentials)}"
            )
        elif disabled:
            message = f"Provider {provider} is not properly configured. Provider is disabled"
        else:
            message = f"Provider {provider} is not properly configured. No configuration found"

        super().__init__(message, provider)

    def to_dict(self) -> dict:
        payload = super().to_dict()
        payload["missing_credentials"] = self.missing_credentials
        payload["disabled"] = self.disabled
        return payload
