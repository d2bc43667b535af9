"""Provider adapter interface, capability profiles and shared HTTP handling."""

from __future__ import annotations

import datetime as dt
import json
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, FrozenSet, Iterable, List, Optional

import requests
from pydantic import ValidationError
from requests.adapters import HTTPAdapter

from weathercli.errors import (
    DateOutOfRange,
    HttpError,
    MalformedPayload,
    NetworkError,
    UnsupportedKind,
)
from weathercli.models import Coordinates, DataKind, TimeSpec, WeatherPoint, WeatherReport
from utils.logging_utils import get_tagged_logger

DEFAULT_TIMEOUT = 10.0
DEFAULT_USER_AGENT = "weathercli/0.1.0"


@dataclass(frozen=True)
class CapabilityDescriptor:
    """Static description of what a provider can serve."""
    supports: FrozenSet[DataKind]
    historical_allowed: bool
    max_forecast_horizon: dt.timedelta

    def forecast_limit(self, now: dt.datetime) -> dt.datetime:
        """Latest instant a forecast request may target."""
        return now + self.max_forecast_horizon


@dataclass(frozen=True)
class WeatherRequest:
    """Caller-side context a report is built for."""
    coordinates: Coordinates
    time_spec: TimeSpec
    location_label: str


@dataclass(frozen=True)
class ProviderRequest:
    """A fully described HTTP GET against a provider."""
    url: str
    params: Dict[str, Any] = field(default_factory=dict)
    headers: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class RawResponse:
    """Undecoded provider answer; decoding belongs to normalization."""
    url: str
    status_code: int
    text: str

    def json(self) -> Any:
        return json.loads(self.text)


def utc_now() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


def as_utc(value: Optional[dt.datetime]) -> dt.datetime:
    """Current time for None, otherwise `value` in UTC (naive read as UTC)."""
    if value is None:
        return utc_now()
    if value.tzinfo is None:
        return value.replace(tzinfo=dt.timezone.utc)
    return value.astimezone(dt.timezone.utc)


def build_session(*, user_agent: str = DEFAULT_USER_AGENT, retries: int = 0) -> requests.Session:
    """Create the HTTP session adapters share.

    Retries are a property of the transport (urllib3 via HTTPAdapter); the
    adapters themselves issue exactly one request.
    """
    session = requests.Session()
    session.headers.update({"User-Agent": user_agent, "Accept": "application/json"})
    if retries:
        adapter = HTTPAdapter(max_retries=retries)
        session.mount("https://", adapter)
        session.mount("http://", adapter)
    return session


def classify(time_spec: TimeSpec, descriptor: CapabilityDescriptor, now: Optional[dt.datetime] = None) -> DataKind:
    """Derive the data kind of a request from the clock.

    Date-only instants compare by UTC calendar day, so "today" is a forecast
    and "yesterday" is history. Instants with a time compare exactly.
    """
    if time_spec.is_now:
        return DataKind.CURRENT
    now = as_utc(now)
    if time_spec.has_time:
        return DataKind.HISTORICAL if time_spec.instant < now else DataKind.FORECAST
    return DataKind.HISTORICAL if time_spec.day < now.date() else DataKind.FORECAST


def validate(
    provider: str,
    kind: DataKind,
    descriptor: CapabilityDescriptor,
    time_spec: Optional[TimeSpec] = None,
    now: Optional[dt.datetime] = None,
) -> None:
    """Raise a CapabilityError if the provider cannot serve `kind` for `time_spec`."""
    if kind not in descriptor.supports:
        raise UnsupportedKind(provider, kind)

    requested = time_spec.day if time_spec is not None else None

    if kind is DataKind.HISTORICAL and not descriptor.historical_allowed:
        raise DateOutOfRange(provider, kind, requested)

    if kind is DataKind.FORECAST and time_spec is not None and not time_spec.is_now:
        limit = descriptor.forecast_limit(as_utc(now))
        if time_spec.has_time:
            beyond = time_spec.instant > limit
        else:
            beyond = time_spec.day > limit.date()
        if beyond:
            raise DateOutOfRange(provider, kind, requested, limit.date())


def closest_point(points: Iterable[WeatherPoint], instant: dt.datetime) -> Optional[WeatherPoint]:
    """Point whose timestamp is nearest to `instant` (earlier wins ties)."""
    best: Optional[WeatherPoint] = None
    for point in points:
        if best is None or abs(point.timestamp - instant) < abs(best.timestamp - instant):
            best = point
    return best


class ProviderAdapter(ABC):
    """One weather provider: capability checks, request shape and response mapping.

    Subclasses declare `name` and `descriptor` and implement `build_request`
    and `normalize`. The steps are meant to be driven by
    `weathercli.weather_service.get_weather`, which guarantees that
    `validate` runs before `fetch`.
    """

    name: ClassVar[str]
    descriptor: ClassVar[CapabilityDescriptor]

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        user_agent: str = DEFAULT_USER_AGENT,
    ) -> None:
        self.session = session or build_session(user_agent=user_agent)
        self.timeout = timeout
        self.user_agent = user_agent
        self._log = get_tagged_logger(self.__class__.__module__, tag=f"providers/{self.name}")

    # Capability checks --------------------------------------------------
    def classify(
        self,
        time_spec: TimeSpec,
        descriptor: Optional[CapabilityDescriptor] = None,
        *,
        now: Optional[dt.datetime] = None,
    ) -> DataKind:
        return classify(time_spec, descriptor or self.descriptor, now)

    def validate(
        self,
        kind: DataKind,
        descriptor: Optional[CapabilityDescriptor] = None,
        time_spec: Optional[TimeSpec] = None,
        *,
        now: Optional[dt.datetime] = None,
    ) -> None:
        validate(self.name, kind, descriptor or self.descriptor, time_spec, now)

    # Network ------------------------------------------------------------
    @abstractmethod
    def build_request(
        self,
        coordinates: Coordinates,
        time_spec: TimeSpec,
        kind: DataKind,
        *,
        now: Optional[dt.datetime] = None,
    ) -> ProviderRequest:
        """Describe the single HTTP request serving `kind`."""

    def fetch(
        self,
        coordinates: Coordinates,
        time_spec: TimeSpec,
        kind: DataKind,
        *,
        now: Optional[dt.datetime] = None,
    ) -> RawResponse:
        """Issue exactly one GET and return the undecoded answer."""
        request = self.build_request(coordinates, time_spec, kind, now=now)
        self._log.debug(
            "Requesting %s", request.url,
            extra={"params": request.params, "kind": kind.value},
        )
        try:
            response = self.session.get(
                request.url,
                params=request.params,
                headers=request.headers,
                timeout=self.timeout,
            )
        except requests.Timeout as exc:
            raise NetworkError(self.name, "timed out") from exc
        except requests.RequestException as exc:
            raise NetworkError(self.name, str(exc) or exc.__class__.__name__) from exc

        if not 200 <= response.status_code < 300:
            self._log.error("Provider returned %s: %s", response.status_code, response.text[:200])
            raise HttpError(self.name, response.status_code, response.url)
        return RawResponse(url=response.url, status_code=response.status_code, text=response.text)

    # Normalization ------------------------------------------------------
    @abstractmethod
    def normalize(
        self,
        raw: RawResponse,
        kind: DataKind,
        request: WeatherRequest,
        *,
        now: Optional[dt.datetime] = None,
    ) -> WeatherReport:
        """Map the provider payload onto the canonical report."""

    def _decode(self, raw: RawResponse) -> Dict[str, Any]:
        try:
            data = raw.json()
        except ValueError as exc:
            raise MalformedPayload(self.name, "response is not valid JSON") from exc
        if not isinstance(data, dict):
            raise MalformedPayload(self.name, f"expected a JSON object, got {type(data).__name__}")
        return data

    def _report(self, kind: DataKind, request: WeatherRequest, points: List[WeatherPoint]) -> WeatherReport:
        try:
            return WeatherReport(
                provider=self.name,
                location_label=request.location_label,
                coordinates=request.coordinates,
                kind=kind,
                points=tuple(points),
            )
        except ValidationError as exc:
            raise MalformedPayload(self.name, str(exc.errors()[0]["msg"])) from exc

    def _point(self, **values: Any) -> WeatherPoint:
        try:
            return WeatherPoint(**values)
        except ValidationError as exc:
            error = exc.errors()[0]
            location = ".".join(str(part) for part in error["loc"])
            raise MalformedPayload(self.name, f"{location}: {error['msg']}") from exc
