"""Exception hierarchy for weathercli.

Every failure of the weather pipeline is a `WeatherError`. The four direct
families map onto the four failure domains of a request so callers can
branch on them:

- `UnknownProvider`      - the provider name does not resolve
- `CapabilityError`      - the provider cannot serve this kind of request/date
- `TransportError`       - the HTTP request itself failed
- `NormalizationError`   - the provider answered with data we cannot map

Collaborators outside the pipeline (geocoding, date parsing, config storage)
raise their own errors from the same root.
"""

from __future__ import annotations

import datetime as dt
from typing import Iterable, Optional

from weathercli.models import DataKind


class WeatherError(RuntimeError):
    """Base error for anything the weather CLI reports to the user."""


class UnknownProvider(WeatherError):
    """Raised when a provider name does not match any registered provider."""

    def __init__(self, name: str, available: Iterable[str] = ()) -> None:
        self.name = name
        self.available = list(available)
        message = f"no such provider '{name}'"
        if self.available:
            message += f" (available: {', '.join(self.available)})"
        super().__init__(message)


class CapabilityError(WeatherError):
    """The provider's capability profile rules this request out."""

    def __init__(self, provider: str, kind: DataKind, message: str) -> None:
        self.provider = provider
        self.kind = kind
        super().__init__(message)


class UnsupportedKind(CapabilityError):
    def __init__(self, provider: str, kind: DataKind) -> None:
        super().__init__(provider, kind, f"{provider} does not provide {kind.value} data")


class DateOutOfRange(CapabilityError):
    def __init__(
        self,
        provider: str,
        kind: DataKind,
        requested: Optional[dt.date],
        limit: Optional[dt.date] = None,
    ) -> None:
        self.requested = requested
        self.limit = limit
        requested_text = requested.isoformat() if requested else "the requested date"
        if kind is DataKind.FORECAST and limit is not None:
            message = (
                f"{provider} cannot forecast {requested_text}; "
                f"its forecast reaches {limit.isoformat()} at most"
            )
        else:
            message = f"{provider} cannot serve {kind.value} data for {requested_text}"
        super().__init__(provider, kind, message)


class TransportError(WeatherError):
    """The request to the provider did not produce a usable HTTP answer."""

    def __init__(self, provider: str, message: str) -> None:
        self.provider = provider
        super().__init__(message)


class NetworkError(TransportError):
    def __init__(self, provider: str, reason: str) -> None:
        self.reason = reason
        super().__init__(provider, f"request to {provider} failed: {reason}")


class HttpError(TransportError):
    def __init__(self, provider: str, status: int, url: str = "") -> None:
        self.status = status
        self.url = url
        super().__init__(provider, f"request to {provider} failed with HTTP {status}")

    @property
    def is_client_error(self) -> bool:
        return 400 <= self.status < 500

    @property
    def is_server_error(self) -> bool:
        return self.status >= 500


class NormalizationError(WeatherError):
    """The provider answered, but not in the shape we rely on."""

    def __init__(self, provider: str, message: str) -> None:
        self.provider = provider
        super().__init__(message)


class MissingField(NormalizationError):
    def __init__(self, provider: str, field: str) -> None:
        self.field = field
        super().__init__(provider, f"{provider} returned unexpected data: missing '{field}'")


class MalformedPayload(NormalizationError):
    def __init__(self, provider: str, detail: str) -> None:
        self.detail = detail
        super().__init__(provider, f"{provider} returned unexpected data: {detail}")


class GeocodingError(WeatherError):
    """An address could not be turned into coordinates (or back)."""


class DateParseError(WeatherError):
    """A date argument could not be understood."""


class ConfigError(WeatherError):
    """The persisted configuration could not be read or written."""
