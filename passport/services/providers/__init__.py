"""
Third-party data providers.
"""

from typing import Optional
import httpx

from passport.config import settings
from passport.services.providers.base import LookupProvider
from passport.services.providers.companies import CompaniesProvider
from passport.services.providers.epc import EPCProvider
from passport.services.providers.flood import FloodProvider
from passport.services.providers.hmlr import HMLRProvider
from passport.services.providers.links import FensaProvider, GasSafeProvider, VOAProvider
from passport.services.providers.police import PoliceProvider
from passport.services.providers.postcodes import PostcodesProvider


class ProviderRegistry:
    """
    One instance of every provider, configured from settings.

    A transport may be supplied so every outbound call goes through it
    (used by tests with httpx.MockTransport).
    """

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.gassafe = GasSafeProvider()
        self.fensa = FensaProvider()
        self.voa = VOAProvider()
        self.police = PoliceProvider()
        self.companies = CompaniesProvider(settings.companies_house_api_key, transport=transport)
        self.hmlr = HMLRProvider(settings.hmlr_api_key, transport=transport)
        self.postcodes = PostcodesProvider(transport=transport)
        self.epc = EPCProvider(settings.epc_api_key, transport=transport)
        self.flood = FloodProvider(self.postcodes, settings.flood_api_key, transport=transport)


_registry: Optional[ProviderRegistry] = None


def get_providers() -> ProviderRegistry:
    """Process-wide provider registry, created on first use."""
    global _registry
    if _registry is None:
        _registry = ProviderRegistry()
    return _registry


__all__ = [
    "LookupProvider",
    "ProviderRegistry",
    "get_providers",
    "CompaniesProvider",
    "EPCProvider",
    "FloodProvider",
    "HMLRProvider",
    "GasSafeProvider",
    "FensaProvider",
    "VOAProvider",
    "PoliceProvider",
    "PostcodesProvider",
]
