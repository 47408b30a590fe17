"""
Travel Providers API Routes
Endpoints backing the provider settings screen: definitions, per-provider
configuration, active-provider selection, connection tests and persistence.

Credentials are masked on every read. A PUT that echoes a masked value back
keeps the stored secret.
"""

from fastapi import APIRouter, Depends, HTTPException, Query, status
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field
import logging

from travel_hub.providers import (
    ProviderConfig,
    ProviderConfigurationError,
    ProviderError,
    ProviderFactory,
    ProviderNotFoundError,
    ProviderType,
    get_provider_definition,
    get_provider_definitions_by_type,
)
from travel_hub.providers.registry import get_default_config
from travel_hub.security import mask_credentials


logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/travel-providers", tags=["travel_providers"])

_factory: Optional[ProviderFactory] = None


def set_factory(factory: ProviderFactory):
    """Set the provider factory for this module"""
    global _factory
    _factory = factory


def get_factory() -> ProviderFactory:
    if _factory is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Travel providers are not initialized"
        )
    return _factory


def provider_error_to_http(error: ProviderError) -> HTTPException:
    if isinstance(error, ProviderNotFoundError):
        code = status.HTTP_404_NOT_FOUND
    elif isinstance(error, ProviderConfigurationError):
        code = status.HTTP_400_BAD_REQUEST
    else:
        code = status.HTTP_502_BAD_GATEWAY
    return HTTPException(status_code=code, detail=error.to_dict())


def _validate_type(provider_type: str) -> str:
    if provider_type not in ProviderType.ALL:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Unknown provider type: {provider_type}"
        )
    return provider_type


# Pydantic models
class ProviderConfigPayload(BaseModel):
    """Provider configuration as shown/edited on the settings screen"""
    name: str
    enabled: bool = False
    credentials: Dict[str, str] = Field(default_factory=dict)
    settings: Dict[str, Any] = Field(default_factory=dict)


class ActiveProviderUpdate(BaseModel):
    """Select the active provider for a capability type"""
    name: str
    user_id: Optional[str] = None


class ActiveProviderResponse(BaseModel):
    type: str
    name: Optional[str] = None


class ProviderTestResponse(BaseModel):
    name: str
    type: str
    success: bool
    status: str


class PersistenceResponse(BaseModel):
    success: bool
    message: str


def _to_payload(config: ProviderConfig) -> ProviderConfigPayload:
    return ProviderConfigPayload(
        name=config.name,
        enabled=config.enabled,
        credentials=mask_credentials(config.credentials),
        settings=config.settings,
    )


@router.get("/definitions")
def list_provider_definitions(provider_type: Optional[str] = Query(None, alias="type")):
    """
    List provider definitions (display metadata and credential fields).

    Without a type, returns definitions grouped by every capability type.
    """
    if provider_type:
        _validate_type(provider_type)
        return [d.to_dict() for d in get_provider_definitions_by_type(provider_type)]

    return {
        t: [d.to_dict() for d in get_provider_definitions_by_type(t)]
        for t in ProviderType.ALL
    }


@router.get("/configs/{name}", response_model=ProviderConfigPayload)
def get_provider_config(name: str, factory: ProviderFactory = Depends(get_factory)):
    """Return the stored configuration (masked), or the blank default for a known provider."""
    config = factory.get_provider_config(name) or get_default_config(name)
    if not config:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Provider '{name}' has no configuration"
        )
    return _to_payload(config)


@router.put("/configs/{name}", response_model=ProviderConfigPayload)
def update_provider_config(
    name: str,
    payload: ProviderConfigPayload,
    factory: ProviderFactory = Depends(get_factory)
):
    """Replace a provider's configuration."""
    existing = factory.get_provider_config(name)
    credentials = dict(payload.credentials)

    # Masked values echoed back from the form keep the stored secret
    if existing:
        masked = mask_credentials(existing.credentials)
        for key, value in payload.credentials.items():
            if key in existing.credentials and value and value == masked.get(key):
                credentials[key] = existing.credentials[key]

    config = ProviderConfig(
        name=name,
        enabled=payload.enabled,
        credentials=credentials,
        settings=payload.settings,
    )
    factory.set_provider_config(name, config)
    logger.info(f"Provider '{name}' configuration updated (enabled={config.enabled})")
    return _to_payload(config)


@router.get("/types/{provider_type}")
def list_providers(
    provider_type: str,
    user_id: Optional[str] = None,
    factory: ProviderFactory = Depends(get_factory)
) -> List[Dict[str, Any]]:
    """List registered providers of a type with configuration status."""
    _validate_type(provider_type)
    try:
        providers = factory.list_providers(provider_type, user_id)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    for info in providers:
        definition = get_provider_definition(provider_type, info["name"])
        if definition:
            info["credential_fields"] = [c.to_dict() for c in definition.required_credentials]
            info["capabilities"] = dict(definition.capabilities)
    return providers


@router.get("/types/{provider_type}/active", response_model=ActiveProviderResponse)
def get_active_provider(
    provider_type: str,
    user_id: Optional[str] = None,
    factory: ProviderFactory = Depends(get_factory)
):
    _validate_type(provider_type)
    try:
        name = factory.get_active_provider(provider_type, user_id)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return ActiveProviderResponse(type=provider_type, name=name)


@router.put("/types/{provider_type}/active", response_model=ActiveProviderResponse)
def set_active_provider(
    provider_type: str,
    update: ActiveProviderUpdate,
    factory: ProviderFactory = Depends(get_factory)
):
    """Select the active provider for a capability type."""
    _validate_type(provider_type)
    if not factory.is_registered(provider_type, update.name):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Provider '{update.name}' is not registered for type '{provider_type}'"
        )
    try:
        factory.set_active_provider(provider_type, update.name, update.user_id)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return ActiveProviderResponse(type=provider_type, name=update.name)


@router.post("/types/{provider_type}/{name}/test", response_model=ProviderTestResponse)
async def test_provider(
    provider_type: str,
    name: str,
    factory: ProviderFactory = Depends(get_factory)
):
    """Run a connection test; always answers 200 with a boolean result."""
    _validate_type(provider_type)
    success = await factory.test_provider(provider_type, name)
    return ProviderTestResponse(
        name=name,
        type=provider_type,
        success=success,
        status=factory.get_provider_status(provider_type, name),
    )


@router.get("/types/{provider_type}/{name}")
def get_provider_info(
    provider_type: str,
    name: str,
    factory: ProviderFactory = Depends(get_factory)
):
    _validate_type(provider_type)
    try:
        return factory.get_provider_info(provider_type, name)
    except ProviderError as e:
        raise provider_error_to_http(e)


@router.post("/save", response_model=PersistenceResponse)
def save_configurations(user_id: Optional[str] = None, factory: ProviderFactory = Depends(get_factory)):
    try:
        factory.save_configurations(user_id)
    except (RuntimeError, ValueError) as e:
        logger.error(f"Failed to save provider configurations: {e}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return PersistenceResponse(success=True, message="Provider configurations saved")


@router.post("/load", response_model=PersistenceResponse)
def load_configurations(user_id: Optional[str] = None, factory: ProviderFactory = Depends(get_factory)):
    try:
        loaded = factory.load_configurations(user_id)
    except (RuntimeError, ValueError) as e:
        logger.error(f"Failed to load provider configurations: {e}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    if not loaded:
        return PersistenceResponse(success=False, message="No saved provider configurations")
    return PersistenceResponse(success=True, message="Provider configurations loaded")
