"""Canonical, provider-agnostic weather vocabulary.

Every adapter produces these values and the renderer consumes only these
values. All models are frozen: adapters build them once and hand them off
read-only. Units are fixed:

- temperature in degrees Celsius
- wind speed in metres per second
- relative humidity in percent
- precipitation in millimetres
"""

from __future__ import annotations

import datetime as dt
from enum import Enum
from typing import Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class _FrozenModel(BaseModel):
    """Base model that is immutable and rejects unknown fields."""

    model_config = ConfigDict(frozen=True, extra="forbid")


class DataKind(str, Enum):
    """What a request asks a provider for."""
    CURRENT = "current"
    FORECAST = "forecast"
    HISTORICAL = "historical"


class Condition(str, Enum):
    """Coarse sky/precipitation condition shared by all providers."""
    CLEAR = "clear"
    CLOUDY = "cloudy"
    RAIN = "rain"
    SNOW = "snow"
    FOG = "fog"
    STORM = "storm"
    UNKNOWN = "unknown"


class WindDirection(str, Enum):
    """16-point compass rose."""
    N = "N"
    NNE = "NNE"
    NE = "NE"
    ENE = "ENE"
    E = "E"
    ESE = "ESE"
    SE = "SE"
    SSE = "SSE"
    S = "S"
    SSW = "SSW"
    SW = "SW"
    WSW = "WSW"
    W = "W"
    WNW = "WNW"
    NW = "NW"
    NNW = "NNW"

    @classmethod
    def from_degrees(cls, degrees: float) -> "WindDirection":
        """Map a meteorological bearing (0 = from north) onto the compass rose.

        Each sector is 22.5 degrees wide and centred on its heading, so N
        covers [348.75, 11.25).
        """
        members = list(cls)
        index = int(((degrees % 360.0) + 11.25) // 22.5) % len(members)
        return members[index]


class Coordinates(_FrozenModel):
    """A resolved point on the globe."""

    latitude: float = Field(ge=-90.0, le=90.0)
    longitude: float = Field(ge=-180.0, le=180.0)

    @classmethod
    def parse(cls, text: str) -> Optional["Coordinates"]:
        """Parse an explicit "lat,lon" pair; return None for anything else."""
        parts = [p.strip() for p in text.split(",")]
        if len(parts) != 2:
            return None
        try:
            latitude, longitude = float(parts[0]), float(parts[1])
        except ValueError:
            return None
        return cls(latitude=latitude, longitude=longitude)

    def label(self) -> str:
        """Fallback display label when no address is known."""
        return f"{self.latitude:.4f}, {self.longitude:.4f}"


class TimeSpec(_FrozenModel):
    """Either the sentinel "now" or a concrete instant.

    `instant` holds a `date` (whole day) or a `datetime` (specific time);
    naive datetimes are read as UTC.
    """

    is_now: bool = False
    instant: Optional[Union[dt.datetime, dt.date]] = None

    @model_validator(mode="after")
    def _exactly_one_shape(self) -> "TimeSpec":
        if self.is_now == (self.instant is not None):
            raise ValueError("TimeSpec must be either 'now' or a concrete instant")
        return self

    @field_validator("instant", mode="after")
    @classmethod
    def _assume_utc(cls, value: Optional[dt.date]) -> Optional[dt.date]:
        if isinstance(value, dt.datetime):
            if value.tzinfo is None:
                return value.replace(tzinfo=dt.timezone.utc)
            return value.astimezone(dt.timezone.utc)
        return value

    @classmethod
    def now(cls) -> "TimeSpec":
        return cls(is_now=True)

    @classmethod
    def at(cls, value: dt.date) -> "TimeSpec":
        return cls(instant=value)

    @property
    def has_time(self) -> bool:
        return isinstance(self.instant, dt.datetime)

    @property
    def day(self) -> Optional[dt.date]:
        """Calendar day (UTC) of the instant, or None for "now"."""
        if self.instant is None:
            return None
        if isinstance(self.instant, dt.datetime):
            return self.instant.date()
        return self.instant

    def __str__(self) -> str:
        if self.is_now:
            return "now"
        return self.instant.isoformat()


class WeatherPoint(_FrozenModel):
    """A single observation or forecast step in canonical units."""

    timestamp: dt.datetime
    temperature_c: float
    condition: Condition = Condition.UNKNOWN
    wind_speed_ms: Optional[float] = None
    humidity_pct: Optional[float] = None
    precipitation_mm: Optional[float] = None
    wind_direction_deg: Optional[float] = None

    @field_validator("timestamp", mode="after")
    @classmethod
    def _utc_timestamp(cls, value: dt.datetime) -> dt.datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=dt.timezone.utc)
        return value.astimezone(dt.timezone.utc)

    @property
    def wind_direction(self) -> Optional[WindDirection]:
        if self.wind_direction_deg is None:
            return None
        return WindDirection.from_degrees(self.wind_direction_deg)


class WeatherReport(_FrozenModel):
    """Normalized provider answer handed to the renderer."""

    provider: str
    location_label: str
    coordinates: Coordinates
    kind: DataKind
    points: Tuple[WeatherPoint, ...]

    @field_validator("points", mode="after")
    @classmethod
    def _chronological(cls, points: Tuple[WeatherPoint, ...]) -> Tuple[WeatherPoint, ...]:
        if not points:
            raise ValueError("a weather report needs at least one point")
        return tuple(sorted(points, key=lambda p: p.timestamp))

    @model_validator(mode="after")
    def _single_current_point(self) -> "WeatherReport":
        if self.kind is DataKind.CURRENT and len(self.points) != 1:
            raise ValueError("a current report carries exactly one point")
        return self
