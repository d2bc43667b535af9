"""Registry of the providers the CLI can talk to."""

from __future__ import annotations

from typing import Dict, List, Optional, Type

import requests

from weathercli.config import Settings
from weathercli.errors import UnknownProvider
from weathercli.providers.base import CapabilityDescriptor, ProviderAdapter, build_session
from weathercli.providers.met_no import MetNoAdapter
from weathercli.providers.open_meteo import OpenMeteoAdapter
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="providers/factory")

PROVIDERS: Dict[str, Type[ProviderAdapter]] = {
    OpenMeteoAdapter.name: OpenMeteoAdapter,
    MetNoAdapter.name: MetNoAdapter,
}


def canonical_name(name: str) -> str:
    """Accept "met_no", "MET-NO" and "met-no" alike."""
    return name.strip().lower().replace("_", "-")


def available_providers() -> List[str]:
    return list(PROVIDERS)


def resolve_provider(name: str) -> Type[ProviderAdapter]:
    """Return the adapter class registered under `name`."""
    adapter_cls = PROVIDERS.get(canonical_name(name))
    if adapter_cls is None:
        raise UnknownProvider(name, available_providers())
    return adapter_cls


def describe(name: str) -> CapabilityDescriptor:
    """Static capability profile of a provider; never touches the network."""
    return resolve_provider(name).descriptor


def build_adapter(
    name: str,
    *,
    session: Optional[requests.Session] = None,
    settings: Optional[Settings] = None,
) -> ProviderAdapter:
    """Instantiate the adapter for `name` using the HTTP settings."""
    adapter_cls = resolve_provider(name)
    settings = settings or Settings()
    if session is None:
        session = build_session(user_agent=settings.user_agent, retries=settings.http_retries)
    logger.debug("Using provider", extra={"provider": adapter_cls.name})
    return adapter_cls(session, timeout=settings.http_timeout, user_agent=settings.user_agent)
