"""Plain-text rendering of a WeatherReport for the terminal."""
from __future__ import annotations

from typing import List, Optional

from weathercli.models import DataKind, WeatherPoint, WeatherReport

BAR_WIDTH = 40
POSITIVE_BAR = "█"
NEGATIVE_BAR = "░"

_TITLES = {
    DataKind.CURRENT: "Current conditions",
    DataKind.FORECAST: "Forecast",
    DataKind.HISTORICAL: "Historical data",
}


def _fmt(val: Optional[float], unit: str, fmt: str) -> str:
    """Format a value/unit pair or return an empty string."""
    if val is None:
        return ""
    return f"{fmt.format(val)} {unit}"


def _wind(point: WeatherPoint) -> str:
    speed = _fmt(point.wind_speed_ms, "m/s", "{:.1f}")
    direction = point.wind_direction
    if speed and direction is not None:
        return f"{speed} {direction.value}"
    return speed


def _bar(value: float, span: float, width: int) -> str:
    """Bar proportional to |value|; below-zero temperatures use a lighter glyph."""
    length = int(round(abs(value) / span * width)) if span else 0
    return (NEGATIVE_BAR if value < 0 else POSITIVE_BAR) * length


def _header(report: WeatherReport) -> List[str]:
    coords = report.coordinates
    first_day = report.points[0].timestamp.date().isoformat()
    title = _TITLES[report.kind]
    if report.kind is not DataKind.CURRENT:
        title = f"{title} for {first_day} (UTC)"
    return [
        f"Weather in {report.location_label} ({coords.latitude:.4f}, {coords.longitude:.4f})"
        f" (Provider: {report.provider})",
        title,
        "",
    ]


def _render_current(point: WeatherPoint) -> List[str]:
    rows = [
        ("Time", point.timestamp.strftime("%Y-%m-%d %H:%M UTC")),
        ("Temperature", _fmt(point.temperature_c, "°C", "{:.1f}")),
        ("Condition", point.condition.value),
        ("Wind", _wind(point)),
        ("Humidity", _fmt(point.humidity_pct, "%", "{:.0f}")),
        ("Precipitation", _fmt(point.precipitation_mm, "mm", "{:.1f}")),
    ]
    label_width = max(len(label) for label, _ in rows)
    return [f"{label:<{label_width}}  {value}".rstrip() for label, value in rows]


def _render_series(points: List[WeatherPoint], width: int) -> List[str]:
    span = max(abs(p.temperature_c) for p in points)
    multi_day = len({p.timestamp.date() for p in points}) > 1
    lines = []
    for p in points:
        stamp = p.timestamp.strftime("%m-%d %H:%M" if multi_day else "%H:%M")
        columns = [
            stamp,
            f"{_bar(p.temperature_c, span, width):<{width}}",
            f"{p.temperature_c:6.1f} °C",
            f"{p.condition.value:<7}",
            f"{_wind(p):<14}",
            f"{_fmt(p.humidity_pct, '%', '{:.0f}'):<5}",
            _fmt(p.precipitation_mm, "mm", "{:.1f}"),
        ]
        lines.append("  ".join(columns).rstrip())
    return lines


def render_report(report: WeatherReport, *, width: int = BAR_WIDTH) -> str:
    """Single point as a detail table, series as a temperature bar chart."""
    lines = _header(report)
    if report.kind is DataKind.CURRENT:
        lines.extend(_render_current(report.points[0]))
    else:
        lines.extend(_render_series(list(report.points), width))
    return "\n".join(lines)
