"""Open-Meteo adapter: current conditions, forecasts and the historical archive."""
from __future__ import annotations

import datetime as dt
from typing import Any, Callable, Dict, List, Optional

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

OPEN_METEO_FORECAST_URL = "https://api.open-meteo.com/v1/forecast"
OPEN_METEO_ARCHIVE_URL = "https://archive-api.open-meteo.com/v1/archive"
# The archive lags behind real time; more recent past days are served by the
# forecast endpoint.
ARCHIVE_LAG = dt.timedelta(days=2)

WEATHER_VARS = [
    "temperature_2m",
    "relative_humidity_2m",
    "precipitation",
    "weather_code",
    "wind_speed_10m",
    "wind_direction_10m",
]

# Units we ask for; the API echoes them back in `current_units`/`hourly_units`.
REQUESTED_UNITS = {
    "temperature_unit": "celsius",
    "wind_speed_unit": "ms",
    "precipitation_unit": "mm",
}

# Converters from units the API may echo into canonical units.
UNIT_CONVERTERS: Dict[str, Dict[str, Callable[[float], float]]] = {
    "temperature_2m": {
        "°C": lambda v: v,
        "°F": lambda v: round((v - 32.0) * 5.0 / 9.0, 2),
    },
    "wind_speed_10m": {
        "m/s": lambda v: v,
        "km/h": lambda v: round(v / 3.6, 2),
        "mph": lambda v: round(v * 0.44704, 2),
        "kn": lambda v: round(v * 0.514444, 2),
    },
    "precipitation": {
        "mm": lambda v: v,
        "inch": lambda v: round(v * 25.4, 2),
    },
}

_WMO_CONDITIONS = (
    ((0, 1), Condition.CLEAR),
    ((2, 3), Condition.CLOUDY),
    ((45, 48), Condition.FOG),
    (tuple(range(51, 68)) + (80, 81, 82), Condition.RAIN),
    (tuple(range(71, 78)) + (85, 86), Condition.SNOW),
    ((95, 96, 99), Condition.STORM),
)


def archive_cutoff(now: Optional[dt.datetime] = None) -> dt.date:
    """Latest day the archive endpoint is expected to hold."""
    return (as_utc(now) - ARCHIVE_LAG).date()


def condition_from_wmo(code: Optional[object]) -> Condition:
    """Map a WMO weather interpretation code onto a Condition."""
    if code is None:
        return Condition.UNKNOWN
    try:
        code = int(code)
    except (TypeError, ValueError):
        return Condition.UNKNOWN
    for codes, condition in _WMO_CONDITIONS:
        if code in codes:
            return condition
    return Condition.UNKNOWN


class OpenMeteoAdapter(ProviderAdapter):
    """Adapter for https://open-meteo.com (no API key required)."""

    name = "open-meteo"
    descriptor = CapabilityDescriptor(
        supports=frozenset({DataKind.CURRENT, DataKind.FORECAST, DataKind.HISTORICAL}),
        historical_allowed=True,
        # 16 forecast days including today
        max_forecast_horizon=dt.timedelta(days=15),
    )

    def build_request(
        self,
        coordinates: Coordinates,
        time_spec: TimeSpec,
        kind: DataKind,
        *,
        now: Optional[dt.datetime] = None,
    ) -> ProviderRequest:
        params: Dict[str, Any] = {
            "latitude": coordinates.latitude,
            "longitude": coordinates.longitude,
            "timezone": "UTC",
            **REQUESTED_UNITS,
        }
        if kind is DataKind.CURRENT:
            params["current"] = ",".join(WEATHER_VARS)
            return ProviderRequest(url=OPEN_METEO_FORECAST_URL, params=params)

        day = time_spec.day.isoformat()
        params["hourly"] = ",".join(WEATHER_VARS)
        params["start_date"] = day
        params["end_date"] = day
        url = OPEN_METEO_FORECAST_URL
        if kind is DataKind.HISTORICAL and time_spec.day <= archive_cutoff(now):
            url = OPEN_METEO_ARCHIVE_URL
        return ProviderRequest(url=url, params=params)

    def normalize(
        self,
        raw: RawResponse,
        kind: DataKind,
        request: WeatherRequest,
        *,
        now: Optional[dt.datetime] = None,
    ) -> WeatherReport:
        data = self._decode(raw)
        tz = self._timezone(data)

        if kind is DataKind.CURRENT:
            block = self._block(data, "current")
            convert = self._converters(data.get("current_units"), context="current")
            points = [self._row(block, convert, tz, context="current")]
            return self._report(kind, request, points)

        block = self._block(data, "hourly")
        convert = self._converters(data.get("hourly_units"), context="hourly")
        points = self._rows(block, convert, tz)

        if request.time_spec.has_time:
            nearest = closest_point(points, request.time_spec.instant)
            points = [nearest] if nearest is not None else []
        return self._report(kind, request, points)

    # helpers ------------------------------------------------------------
    def _block(self, data: Dict[str, Any], key: str) -> Dict[str, Any]:
        block = data.get(key)
        if block is None:
            raise MissingField(self.name, key)
        if not isinstance(block, dict):
            raise MalformedPayload(self.name, f"'{key}' is not an object")
        return block

    def _timezone(self, data: Dict[str, Any]) -> dt.tzinfo:
        offset = data.get("utc_offset_seconds") or 0
        try:
            return dt.timezone(dt.timedelta(seconds=int(offset)))
        except (TypeError, ValueError, OverflowError) as exc:
            raise MalformedPayload(self.name, f"bad utc_offset_seconds {offset!r}") from exc

    def _converters(self, units: Optional[Dict[str, Any]], *, context: str) -> Dict[str, Callable[[float], float]]:
        """Pick a canonical-unit converter per variable from the echoed units."""
        converters: Dict[str, Callable[[float], float]] = {}
        for variable, known in UNIT_CONVERTERS.items():
            unit = (units or {}).get(variable)
            if unit is None:
                continue
            converter = known.get(unit)
            if converter is None:
                self._log.warning(
                    "Unexpected Open-Meteo unit",
                    extra={"context": context, "field": variable, "unit": unit, "allowed": sorted(known)},
                )
                continue
            converters[variable] = converter
        return converters

    def _parse_time(self, value: Any, tz: dt.tzinfo, field: str) -> dt.datetime:
        if value is None:
            raise MissingField(self.name, field)
        try:
            parsed = dt.datetime.fromisoformat(str(value))
        except ValueError as exc:
            raise MalformedPayload(self.name, f"bad timestamp {value!r} in '{field}'") from exc
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=tz)
        return parsed

    def _row(self, values: Dict[str, Any], convert: Dict[str, Callable[[float], float]], tz: dt.tzinfo, *, context: str) -> WeatherPoint:
        temperature = values.get("temperature_2m")
        if temperature is None:
            raise MissingField(self.name, f"{context}.temperature_2m")
        return self._point(
            timestamp=self._parse_time(values.get("time"), tz, f"{context}.time"),
            temperature_c=self._number(temperature, convert.get("temperature_2m"), f"{context}.temperature_2m"),
            condition=condition_from_wmo(values.get("weather_code")),
            wind_speed_ms=self._number(values.get("wind_speed_10m"), convert.get("wind_speed_10m"), f"{context}.wind_speed_10m"),
            humidity_pct=values.get("relative_humidity_2m"),
            precipitation_mm=self._number(values.get("precipitation"), convert.get("precipitation"), f"{context}.precipitation"),
            wind_direction_deg=values.get("wind_direction_10m"),
        )

    def _number(self, value: Any, converter: Optional[Callable[[float], float]], field: str) -> Optional[float]:
        if value is None:
            return None
        try:
            value = float(value)
        except (TypeError, ValueError) as exc:
            raise MalformedPayload(self.name, f"'{field}' is not a number: {value!r}") from exc
        return converter(value) if converter else value

    def _rows(self, block: Dict[str, Any], convert: Dict[str, Callable[[float], float]], tz: dt.tzinfo) -> List[WeatherPoint]:
        """Zip Open-Meteo's column arrays into points, skipping hours without a temperature."""
        times = block.get("time")
        if times is None:
            raise MissingField(self.name, "hourly.time")
        if "temperature_2m" not in block:
            raise MissingField(self.name, "hourly.temperature_2m")

        columns = {var: block.get(var) for var in WEATHER_VARS}
        for var, column in [("time", times)] + list(columns.items()):
            if column is None:
                continue
            if not isinstance(column, list):
                raise MalformedPayload(self.name, f"'hourly.{var}' is not a list")
            if len(column) != len(times):
                raise MalformedPayload(self.name, f"'hourly.{var}' has {len(column)} values for {len(times)} hours")

        points: List[WeatherPoint] = []
        skipped = 0
        for i, stamp in enumerate(times):
            row = {var: (column[i] if column is not None else None) for var, column in columns.items()}
            if row["temperature_2m"] is None:
                skipped += 1
                continue
            row["time"] = stamp
            points.append(self._row(row, convert, tz, context="hourly"))

        if skipped:
            self._log.debug("Skipped hours without temperature", extra={"skipped": skipped})
        if times and not points:
            raise MissingField(self.name, "hourly.temperature_2m")
        return points
