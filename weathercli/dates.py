"""Parse the DATE argument of the CLI into a TimeSpec."""
from __future__ import annotations

import datetime as dt
from typing import Optional

from dateutil import parser as date_parser

from weathercli.errors import DateParseError
from weathercli.models import TimeSpec

_RELATIVE_DAYS = {"today": 0, "tomorrow": 1, "yesterday": -1}


def _parse_free_text(value: str, today: dt.date) -> TimeSpec:
    """Free-text dates ("Feb 24 2023", "2023/02/24 15:00") via dateutil.

    dateutil always returns a datetime; parsing against two defaults that
    differ only in the hour tells whether the input named a time at all.
    Missing date parts are taken from `today`.
    """
    midnight = dt.datetime.combine(today, dt.time(0))
    one_am = dt.datetime.combine(today, dt.time(1))
    first = date_parser.parse(value, default=midnight)
    second = date_parser.parse(value, default=one_am)
    if first.hour != second.hour:
        return TimeSpec.at(first.date())
    return TimeSpec.at(first)


def parse_time_spec(text: str, *, today: Optional[dt.date] = None) -> TimeSpec:
    """
    Accept "now", "today"/"tomorrow"/"yesterday", ISO dates ("2023-02-24"),
    ISO datetimes ("2023-02-24T15:00", "2023-02-24 15:00+01:00") and other
    free-text dates ("Feb 24 2023", "24/02/2023").
    """
    value = (text or "").strip()
    lowered = value.lower()
    today = today or dt.datetime.now(dt.timezone.utc).date()
    if lowered == "now":
        return TimeSpec.now()
    if lowered in _RELATIVE_DAYS:
        return TimeSpec.at(today + dt.timedelta(days=_RELATIVE_DAYS[lowered]))

    try:
        return TimeSpec.at(dt.date.fromisoformat(value))
    except ValueError:
        pass
    try:
        return TimeSpec.at(dt.datetime.fromisoformat(value.replace("Z", "+00:00")))
    except ValueError:
        pass

    if value:
        try:
            return _parse_free_text(value, today)
        except (ValueError, OverflowError) as exc:
            raise DateParseError(
                f"could not understand date '{text}' (use 'now', 'today', YYYY-MM-DD or a date like 'Feb 24 2023')"
            ) from exc
    raise DateParseError("empty date (use 'now', 'today', YYYY-MM-DD or a date like 'Feb 24 2023')")
