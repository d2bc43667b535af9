"""Resolve a provider and turn one request into a canonical WeatherReport."""
from __future__ import annotations

import datetime as dt
from typing import Optional

import requests

from weathercli.config import Settings
from weathercli.errors import CapabilityError, NormalizationError, TransportError
from weathercli.models import Coordinates, TimeSpec, WeatherReport
from weathercli.providers.base import WeatherRequest, as_utc, build_session
from weathercli.providers.factory import describe, resolve_provider
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="weather_service")


def get_weather(
    provider_name: str,
    coordinates: Coordinates,
    time_spec: TimeSpec,
    *,
    location_label: Optional[str] = None,
    session: Optional[requests.Session] = None,
    settings: Optional[Settings] = None,
    now: Optional[dt.datetime] = None,
) -> WeatherReport:
    """
    Fetch weather for `coordinates` at `time_spec` from one provider.

    The steps always run in this order and stop at the first failure:

    1. resolve the provider name (UnknownProvider)
    2. look up its capability profile
    3. classify the request as current / forecast / historical
    4. validate the kind against the profile (CapabilityError, no request sent)
    5. fetch, exactly one HTTP request (TransportError)
    6. normalize the payload (NormalizationError)

    `now` pins the clock for classification; it defaults to the current UTC
    time and is evaluated per call. A session passed in is left open;
    one created here is closed before returning.
    """
    adapter_cls = resolve_provider(provider_name)
    descriptor = describe(adapter_cls.name)
    now = as_utc(now)
    settings = settings or Settings()
    request = WeatherRequest(
        coordinates=coordinates,
        time_spec=time_spec,
        location_label=location_label or coordinates.label(),
    )

    owns_session = session is None
    if owns_session:
        session = build_session(user_agent=settings.user_agent, retries=settings.http_retries)
    adapter = adapter_cls(session, timeout=settings.http_timeout, user_agent=settings.user_agent)

    try:
        kind = adapter.classify(time_spec, descriptor, now=now)
        logger.info(
            "Classified request",
            extra={"provider": adapter.name, "time_spec": str(time_spec), "kind": kind.value},
        )

        try:
            adapter.validate(kind, descriptor, time_spec, now=now)
        except CapabilityError as exc:
            logger.info("Request rejected by capability check: %s", exc)
            raise

        try:
            raw = adapter.fetch(coordinates, time_spec, kind, now=now)
        except TransportError as exc:
            logger.warning("Provider request failed: %s", exc)
            raise

        try:
            report = adapter.normalize(raw, kind, request, now=now)
        except NormalizationError as exc:
            logger.warning("Could not normalize provider payload: %s (url=%s)", exc, raw.url)
            raise
    finally:
        if owns_session:
            session.close()

    logger.info(
        "Fetched weather report",
        extra={"provider": adapter.name, "kind": report.kind.value, "points": len(report.points)},
    )
    return report
