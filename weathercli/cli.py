"""Command-line entry point: `weathercli get ADDRESS [DATE]`, `configure`, `providers`."""
from __future__ import annotations

import argparse
import sys
from typing import List, Optional, TextIO

import requests
from pydantic import ValidationError

from weathercli.config import ConfigStore, Settings, StoredConfig, selected_provider
from weathercli.dates import parse_time_spec
from weathercli.errors import (
    CapabilityError,
    NormalizationError,
    TransportError,
    UnknownProvider,
    WeatherError,
)
from weathercli.geocoding import Geocoder, resolve_location
from weathercli.providers.base import build_session
from weathercli.providers.factory import PROVIDERS, resolve_provider
from weathercli.render import render_report
from weathercli.weather_service import get_weather
from utils.logging_utils import get_tagged_logger, setup_logging

logger = get_tagged_logger(__name__, tag="cli")

EXIT_OK = 0
EXIT_USAGE = 2
EXIT_CAPABILITY = 3
EXIT_TRANSPORT = 4
EXIT_NORMALIZATION = 5


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="weathercli",
        description="Current, forecast and historical weather in your terminal.",
    )
    parser.add_argument("-v", "--verbose", action="count", default=0, help="More logging (-v info, -vv debug)")
    sub = parser.add_subparsers(dest="command", required=True)

    get = sub.add_parser("get", help="Show weather for an address or 'lat,lon'")
    get.add_argument("address", help="Free-text address or 'lat,lon'")
    get.add_argument("date", nargs="?", default="now", help="'now' (default), 'today', YYYY-MM-DD or ISO datetime")
    get.add_argument("-p", "--provider", help="Provider to use for this call only")

    configure = sub.add_parser("configure", help="Set the default provider")
    configure.add_argument("provider", help=f"One of: {', '.join(PROVIDERS)}")

    sub.add_parser("providers", help="List providers and what they can serve")
    return parser


def _exit_code(exc: WeatherError) -> int:
    if isinstance(exc, CapabilityError):
        return EXIT_CAPABILITY
    if isinstance(exc, TransportError):
        return EXIT_TRANSPORT
    if isinstance(exc, NormalizationError):
        return EXIT_NORMALIZATION
    return EXIT_USAGE


def _describe_failure(exc: WeatherError) -> str:
    if isinstance(exc, UnknownProvider):
        return f"No such provider: {exc}"
    if isinstance(exc, CapabilityError):
        return f"This provider cannot serve the request: {exc}"
    if isinstance(exc, TransportError):
        return f"Request to provider failed: {exc}"
    if isinstance(exc, NormalizationError):
        return f"Provider returned unexpected data: {exc}"
    return f"Error: {exc}"


def cmd_get(args: argparse.Namespace, settings: Settings, out: TextIO, session: requests.Session) -> int:
    provider = args.provider or selected_provider(settings)
    # reject unknown names before any geocoding request
    resolve_provider(provider)
    time_spec = parse_time_spec(args.date)
    geocoder = Geocoder(
        session,
        base_url=settings.geocoder_url,
        timeout=settings.http_timeout,
        user_agent=settings.user_agent,
    )
    location = resolve_location(args.address, geocoder)
    report = get_weather(
        provider,
        location.coordinates,
        time_spec,
        location_label=location.label,
        session=session,
        settings=settings,
    )
    print(render_report(report), file=out)
    return EXIT_OK


def cmd_configure(args: argparse.Namespace, settings: Settings, out: TextIO) -> int:
    adapter_cls = resolve_provider(args.provider)
    store = ConfigStore.from_settings(settings)
    store.save(StoredConfig(provider=adapter_cls.name))
    print(f"Default provider set to {adapter_cls.name} ({store.path})", file=out)
    return EXIT_OK


def cmd_providers(out: TextIO) -> int:
    for name, adapter_cls in PROVIDERS.items():
        descriptor = adapter_cls.descriptor
        kinds = ", ".join(sorted(kind.value for kind in descriptor.supports))
        print(f"{name:<12} {kinds:<30} forecast up to {descriptor.max_forecast_horizon.days} days ahead", file=out)
    return EXIT_OK


def main(argv: Optional[List[str]] = None, *, out: TextIO = sys.stdout, err: TextIO = sys.stderr) -> int:
    args = build_parser().parse_args(argv)
    try:
        settings = Settings()
        level = {0: settings.log_level.upper(), 1: "INFO"}.get(args.verbose, "DEBUG")
        setup_logging(level=level, job_name="weathercli", override_existing=True)
    except (ValidationError, ValueError) as exc:
        print(f"Invalid configuration: {exc}", file=err)
        return EXIT_USAGE

    try:
        if args.command == "configure":
            return cmd_configure(args, settings, out)
        if args.command == "providers":
            return cmd_providers(out)
        with build_session(user_agent=settings.user_agent, retries=settings.http_retries) as session:
            return cmd_get(args, settings, out, session)
    except WeatherError as exc:
        logger.debug("Command failed", exc_info=exc)
        print(_describe_failure(exc), file=err)
        return _exit_code(exc)


if __name__ == "__main__":
    sys.exit(main())
