"""Provider configuration"""

from .config import ProviderStore
from .schema import GatewaySettings, ProviderKind, ProviderProfile, ProvidersDocument

__all__ = [
    "GatewaySettings",
    "ProviderKind",
    "ProviderProfile",
    "ProviderStore",
    "ProvidersDocument",
]
