"""Turn free-text addresses (or "lat,lon" pairs) into coordinates via Nominatim."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

import requests
from pydantic import ValidationError

from weathercli.errors import GeocodingError
from weathercli.models import Coordinates
from weathercli.providers.base import DEFAULT_TIMEOUT, DEFAULT_USER_AGENT
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="geocoding")

NOMINATIM_URL = "https://nominatim.openstreetmap.org"


@dataclass(frozen=True)
class Location:
    """Coordinates plus the label shown to the user."""
    coordinates: Coordinates
    label: str


class Geocoder:
    """Minimal OpenStreetMap Nominatim client (search and reverse)."""

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        *,
        base_url: str = NOMINATIM_URL,
        timeout: float = DEFAULT_TIMEOUT,
        user_agent: str = DEFAULT_USER_AGENT,
    ) -> None:
        self.session = session or requests.Session()
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.user_agent = user_agent

    def forward(self, address: str) -> Location:
        """Best match for `address`."""
        results = self._get("search", {"q": address, "format": "jsonv2", "limit": 1})
        if not isinstance(results, list) or not results:
            raise GeocodingError(f"could not find location '{address}'")
        best = results[0]
        try:
            coordinates = Coordinates(latitude=float(best["lat"]), longitude=float(best["lon"]))
        except (KeyError, TypeError, ValueError, ValidationError) as exc:
            raise GeocodingError(f"geocoder returned an unusable result for '{address}'") from exc
        return Location(coordinates=coordinates, label=best.get("display_name") or address)

    def reverse(self, coordinates: Coordinates) -> str:
        """Display name of the place at `coordinates`."""
        result = self._get(
            "reverse",
            {"lat": coordinates.latitude, "lon": coordinates.longitude, "format": "jsonv2"},
        )
        if not isinstance(result, dict) or not result.get("display_name"):
            raise GeocodingError(f"could not reverse-geocode {coordinates.label()}")
        return result["display_name"]

    def _get(self, path: str, params: Dict[str, Any]) -> Any:
        url = f"{self.base_url}/{path}"
        try:
            resp = self.session.get(
                url,
                params=params,
                headers={"User-Agent": self.user_agent},
                timeout=self.timeout,
            )
            resp.raise_for_status()
            return resp.json()
        except requests.RequestException as exc:
            raise GeocodingError(f"geocoding request failed: {exc}") from exc
        except ValueError as exc:
            raise GeocodingError("geocoder returned invalid JSON") from exc


def resolve_location(text: str, geocoder: Geocoder) -> Location:
    """
    Resolve user input into a Location.

    "53.22, 6.56" is used as-is and only reverse-geocoded for a label; if that
    lookup fails the coordinates themselves become the label. Anything else is
    forward-geocoded.
    """
    text = text.strip()
    if not text:
        raise GeocodingError("empty location")

    try:
        coordinates = Coordinates.parse(text)
    except ValidationError as exc:
        raise GeocodingError(f"coordinates out of range: '{text}'") from exc

    if coordinates is None:
        location = geocoder.forward(text)
        logger.info("Geocoded address", extra={"address": text, "label": location.label})
        return location

    try:
        label = geocoder.reverse(coordinates)
    except GeocodingError as exc:
        logger.warning("Reverse geocoding failed, labelling by coordinates: %s", exc)
        label = coordinates.label()
    return Location(coordinates=coordinates, label=label)
