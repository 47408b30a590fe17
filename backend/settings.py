"""
TripDesk Backend Settings
Environment variable management with backward compatibility for legacy names.
"""

import os
from typing import Optional
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


def get_env(new_var: str, old_var: Optional[str] = None, default: Optional[str] = None) -> str:
    """
    Get environment variable with backward compatibility.

    Tries new variable name first (TRIPDESK_*), falls back to old name if provided,
    then returns default if neither is set.

    Args:
        new_var: New TRIPDESK_* prefixed variable name
        old_var: Legacy variable name (for backward compatibility)
        default: Default value if neither variable is set

    Returns:
        Environment variable value or default
    """
    value = os.getenv(new_var)
    if value is not None:
        return value

    if old_var is not None:
        value = os.getenv(old_var)
        if value is not None:
            return value

    return default if default is not None else ""


def get_bool_env(new_var: str, old_var: Optional[str] = None, default: bool = False) -> bool:
    """Boolean variant of get_env ("1", "true", "yes" are truthy)."""
    raw = get_env(new_var, old_var, "true" if default else "false")
    return raw.strip().lower() in ("1", "true", "yes", "on")


# Application Configuration
APP_HOST = get_env("TRIPDESK_APP_HOST", "APP_HOST", "127.0.0.1")
APP_PORT = int(get_env("TRIPDESK_APP_PORT", "APP_PORT", "8081"))

# Provider configuration store (SQLAlchemy URL)
DATABASE_URL = get_env("TRIPDESK_DATABASE_URL", "DATABASE_URL", "sqlite:///./data/tripdesk.db")

# Master key for encrypting stored provider credentials (empty = store plaintext JSON)
PROVIDER_ENCRYPTION_KEY = get_env("TRIPDESK_PROVIDER_ENCRYPTION_KEY", "PROVIDER_ENCRYPTION_KEY", "")

# Default supplier endpoints (backend proxies in front of the real APIs)
HOTELBEDS_ENDPOINT = get_env("TRIPDESK_HOTELBEDS_ENDPOINT", "HOTELBEDS_ENDPOINT", "http://localhost:3001")
DUFFEL_ENDPOINT = get_env("TRIPDESK_DUFFEL_ENDPOINT", "DUFFEL_ENDPOINT", "http://localhost:3001/api/duffel")

# Adapter timeouts
DEFAULT_TIMEOUT_MS = int(get_env("TRIPDESK_DEFAULT_TIMEOUT_MS", None, "30000"))
HEALTH_CHECK_TIMEOUT_SECONDS = float(get_env("TRIPDESK_HEALTH_CHECK_TIMEOUT_SECONDS", None, "10"))

# Multi-tenant mode: refuse provider lookups that omit a user id
REQUIRE_USER_ID = get_bool_env("TRIPDESK_REQUIRE_USER_ID", None, False)

# Logging
LOG_FILE = get_env("TRIPDESK_LOG_FILE", "LOG_FILE", "logs/tripdesk.log")
LOG_LEVEL = get_env("TRIPDESK_LOG_LEVEL", "LOG_LEVEL", "INFO")

# Service Identification
SERVICE_NAME = "tripdesk-providers"
SERVICE_VERSION = "0.3.0"


def get_log_config() -> dict:
    """
    Get logging configuration for dictConfig.

    Returns:
        Logging config with console and file handlers.
    """
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "tripdesk": {
                "format": "%(asctime)s - [%(name)s] - %(levelname)s - %(message)s",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "tripdesk",
            },
            "file": {
                "class": "logging.FileHandler",
                "filename": LOG_FILE,
                "formatter": "tripdesk",
                "encoding": "utf-8",
            }
        },
        "root": {
            "level": LOG_LEVEL,
            "handlers": ["console", "file"]
        }
    }


def ensure_log_dir() -> None:
    """Create log directory if it doesn't exist."""
    Path(LOG_FILE).parent.mkdir(parents=True, exist_ok=True)
