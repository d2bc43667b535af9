"""MET Norway Locationforecast adapter (forecast only, no history)."""
from __future__ import annotations

import datetime as dt
from typing import Any, Dict, List, Optional

from weathercli.errors import MalformedPayload, MissingField
from weathercli.models import Condition, Coordinates, DataKind, TimeSpec, WeatherPoint, WeatherReport
from weathercli.providers.base import (
    CapabilityDescriptor,
    ProviderAdapter,
    ProviderRequest,
    RawResponse,
    WeatherRequest,
    as_utc,
    closest_point,
)

MET_NO_COMPLETE_URL = "https://api.met.no/weatherapi/locationforecast/2.0/complete"

# Checked in order: "lightrainandthunder" is a storm before it is rain.
_SYMBOL_KEYWORDS = (
    ("thunder", Condition.STORM),
    ("snow", Condition.SNOW),
    ("sleet", Condition.SNOW),
    ("rain", Condition.RAIN),
    ("fog", Condition.FOG),
    ("cloudy", Condition.CLOUDY),
    ("clearsky", Condition.CLEAR),
    ("fair", Condition.CLEAR),
)


def condition_from_symbol(symbol_code: Optional[str]) -> Condition:
    """Map a met.no symbol code (e.g. "lightrainshowers_day") onto a Condition."""
    if not symbol_code:
        return Condition.UNKNOWN
    symbol = str(symbol_code).lower()
    for keyword, condition in _SYMBOL_KEYWORDS:
        if keyword in symbol:
            return condition
    return Condition.UNKNOWN


class MetNoAdapter(ProviderAdapter):
    """Adapter for https://api.met.no.

    The Locationforecast product only looks ahead, so historical requests are
    rejected before any request is made. met.no's terms require an identifying
    User-Agent on every call.
    """

    name = "met-no"
    descriptor = CapabilityDescriptor(
        supports=frozenset({DataKind.CURRENT, DataKind.FORECAST}),
        historical_allowed=False,
        max_forecast_horizon=dt.timedelta(days=9),
    )

    def build_request(
        self,
        coordinates: Coordinates,
        time_spec: TimeSpec,
        kind: DataKind,
        *,
        now: Optional[dt.datetime] = None,
    ) -> ProviderRequest:
        # met.no asks clients to truncate coordinates to 4 decimals
        return ProviderRequest(
            url=MET_NO_COMPLETE_URL,
            params={
                "lat": round(coordinates.latitude, 4),
                "lon": round(coordinates.longitude, 4),
            },
            headers={"User-Agent": self.user_agent, "Accept": "application/json"},
        )

    def normalize(
        self,
        raw: RawResponse,
        kind: DataKind,
        request: WeatherRequest,
        *,
        now: Optional[dt.datetime] = None,
    ) -> WeatherReport:
        data = self._decode(raw)
        points = [self._entry(entry) for entry in self._timeseries(data)]
        points.sort(key=lambda p: p.timestamp)

        if kind is DataKind.CURRENT:
            selected = self._current(points, as_utc(now))
        elif request.time_spec.has_time:
            nearest = closest_point(points, request.time_spec.instant)
            selected = [nearest] if nearest is not None else []
        else:
            day = request.time_spec.day
            selected = [p for p in points if p.timestamp.date() == day]
            if points and not selected:
                raise MalformedPayload(
                    self.name,
                    f"{day.isoformat()} is outside the current forecast series "
                    f"({points[0].timestamp.date().isoformat()} to {points[-1].timestamp.date().isoformat()})",
                )
        return self._report(kind, request, selected)

    # helpers ------------------------------------------------------------
    def _timeseries(self, data: Dict[str, Any]) -> List[Dict[str, Any]]:
        properties = data.get("properties")
        if properties is None:
            raise MissingField(self.name, "properties")
        if not isinstance(properties, dict):
            raise MalformedPayload(self.name, "'properties' is not an object")
        series = properties.get("timeseries")
        if series is None:
            raise MissingField(self.name, "properties.timeseries")
        if not isinstance(series, list) or not all(isinstance(e, dict) for e in series):
            raise MalformedPayload(self.name, "'properties.timeseries' is not a list of objects")
        return series

    def _current(self, points: List[WeatherPoint], now: dt.datetime) -> List[WeatherPoint]:
        """Latest step that is not in the future, else the first one."""
        if not points:
            return []
        past = [p for p in points if p.timestamp <= now]
        return [past[-1] if past else points[0]]

    def _entry(self, entry: Dict[str, Any]) -> WeatherPoint:
        stamp = entry.get("time")
        if stamp is None:
            raise MissingField(self.name, "timeseries.time")
        try:
            timestamp = dt.datetime.fromisoformat(str(stamp).replace("Z", "+00:00"))
        except ValueError as exc:
            raise MalformedPayload(self.name, f"bad timestamp {stamp!r}") from exc

        data = self._mapping(entry.get("data"), "timeseries.data")
        instant = self._mapping(data.get("instant"), "timeseries.data.instant")
        details = self._mapping(instant.get("details"), "timeseries.data.instant.details")
        temperature = details.get("air_temperature")
        if temperature is None:
            raise MissingField(self.name, "timeseries.data.instant.details.air_temperature")

        # Summary and precipitation come from the shortest period available.
        key = "next_1_hours" if data.get("next_1_hours") else "next_6_hours"
        period = self._mapping(data.get(key), f"timeseries.data.{key}")
        symbol = self._mapping(period.get("summary"), f"timeseries.data.{key}.summary").get("symbol_code")
        precipitation = self._mapping(period.get("details"), f"timeseries.data.{key}.details").get("precipitation_amount")

        return self._point(
            timestamp=timestamp,
            temperature_c=temperature,
            condition=condition_from_symbol(symbol),
            wind_speed_ms=details.get("wind_speed"),
            humidity_pct=details.get("relative_humidity"),
            precipitation_mm=precipitation,
            wind_direction_deg=details.get("wind_from_direction"),
        )

    def _mapping(self, value: Any, field: str) -> Dict[str, Any]:
        """Nested payload object; absent means empty, anything but an object is malformed."""
        if value is None:
            return {}
        if not isinstance(value, dict):
            raise MalformedPayload(self.name, f"'{field}' is not an object")
        return value
