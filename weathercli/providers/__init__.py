"""Weather providers and the registry that resolves them by name."""

from .base import (
    CapabilityDescriptor,
    ProviderAdapter,
    ProviderRequest,
    RawResponse,
    WeatherRequest,
    build_session,
    classify,
    validate,
)
from .factory import (
    PROVIDERS,
    available_providers,
    build_adapter,
    canonical_name,
    describe,
    resolve_provider,
)
from .met_no import MetNoAdapter
from .open_meteo import OpenMeteoAdapter

__all__ = [
    "PROVIDERS",
    "CapabilityDescriptor",
    "MetNoAdapter",
    "OpenMeteoAdapter",
    "ProviderAdapter",
    "ProviderRequest",
    "RawResponse",
    "WeatherRequest",
    "available_providers",
    "build_adapter",
    "build_session",
    "canonical_name",
    "classify",
    "describe",
    "resolve_provider",
    "validate",
]
