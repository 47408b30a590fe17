"""
Travel Hub

Integration layer for external travel inventory suppliers (hotel, flight,
activity). Adapters are registered explicitly into a ProviderFactory at
application start; see travel_hub.providers.registry.initialize_providers.
"""

from travel_hub.providers import ProviderFactory, initialize_providers

__all__ = [
    'ProviderFactory',
    'initialize_providers',
]
