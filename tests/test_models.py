import datetime as dt
import unittest

from pydantic import ValidationError

from weathercli.models import (
    Condition,
    Coordinates,
    DataKind,
    TimeSpec,
    WeatherPoint,
    WeatherReport,
    WindDirection,
)

UTC = dt.timezone.utc


def _point(hour, temp=10.0):
    return WeatherPoint(timestamp=dt.datetime(2023, 2, 24, hour, tzinfo=UTC), temperature_c=temp)


class TestCoordinates(unittest.TestCase):
    def test_rejects_out_of_range(self):
        with self.assertRaises(ValidationError):
            Coordinates(latitude=91.0, longitude=0.0)
        with self.assertRaises(ValidationError):
            Coordinates(latitude=0.0, longitude=-180.5)

    def test_parse_lat_lon_pair(self):
        coords = Coordinates.parse(" 53.22 , 6.56 ")
        self.assertEqual(coords, Coordinates(latitude=53.22, longitude=6.56))

    def test_parse_returns_none_for_addresses(self):
        self.assertIsNone(Coordinates.parse("Groningen"))
        self.assertIsNone(Coordinates.parse("Groningen, Netherlands"))
        self.assertIsNone(Coordinates.parse("1,2,3"))

    def test_immutable(self):
        coords = Coordinates(latitude=1.0, longitude=2.0)
        with self.assertRaises(ValidationError):
            coords.latitude = 3.0


class TestTimeSpec(unittest.TestCase):
    def test_now_sentinel(self):
        spec = TimeSpec.now()
        self.assertTrue(spec.is_now)
        self.assertIsNone(spec.instant)
        self.assertIsNone(spec.day)
        self.assertEqual(str(spec), "now")

    def test_requires_exactly_one_shape(self):
        with self.assertRaises(ValidationError):
            TimeSpec()
        with self.assertRaises(ValidationError):
            TimeSpec(is_now=True, instant=dt.date(2023, 2, 24))

    def test_date_instant(self):
        spec = TimeSpec.at(dt.date(2023, 2, 24))
        self.assertFalse(spec.has_time)
        self.assertEqual(spec.day, dt.date(2023, 2, 24))

    def test_naive_datetime_is_read_as_utc(self):
        spec = TimeSpec.at(dt.datetime(2023, 2, 24, 15, 30))
        self.assertTrue(spec.has_time)
        self.assertEqual(spec.instant.tzinfo, UTC)
        self.assertEqual(spec.instant.hour, 15)

    def test_aware_datetime_is_converted_to_utc(self):
        plus_two = dt.timezone(dt.timedelta(hours=2))
        spec = TimeSpec.at(dt.datetime(2023, 2, 25, 1, 0, tzinfo=plus_two))
        self.assertEqual(spec.instant, dt.datetime(2023, 2, 24, 23, 0, tzinfo=UTC))
        self.assertEqual(spec.day, dt.date(2023, 2, 24))


class TestWeatherPoint(unittest.TestCase):
    def test_optional_fields_default_to_none(self):
        point = _point(0)
        self.assertIsNone(point.wind_speed_ms)
        self.assertIsNone(point.humidity_pct)
        self.assertIsNone(point.precipitation_mm)
        self.assertIsNone(point.wind_direction)
        self.assertEqual(point.condition, Condition.UNKNOWN)

    def test_wind_direction_from_degrees(self):
        point = WeatherPoint(
            timestamp=dt.datetime(2023, 2, 24, tzinfo=UTC),
            temperature_c=1.0,
            wind_direction_deg=250.0,
        )
        self.assertEqual(point.wind_direction, WindDirection.WSW)


class TestWindDirection(unittest.TestCase):
    def test_sectors(self):
        self.assertEqual(WindDirection.from_degrees(0), WindDirection.N)
        self.assertEqual(WindDirection.from_degrees(350), WindDirection.N)
        self.assertEqual(WindDirection.from_degrees(360), WindDirection.N)
        self.assertEqual(WindDirection.from_degrees(12), WindDirection.NNE)
        self.assertEqual(WindDirection.from_degrees(90), WindDirection.E)
        self.assertEqual(WindDirection.from_degrees(180), WindDirection.S)
        self.assertEqual(WindDirection.from_degrees(300), WindDirection.WNW)


class TestWeatherReport(unittest.TestCase):
    def _report(self, kind, points):
        return WeatherReport(
            provider="open-meteo",
            location_label="Groningen",
            coordinates=Coordinates(latitude=53.22, longitude=6.56),
            kind=kind,
            points=points,
        )

    def test_points_are_sorted(self):
        report = self._report(DataKind.HISTORICAL, [_point(3, 3.0), _point(1, 1.0), _point(2, 2.0)])
        self.assertEqual([p.temperature_c for p in report.points], [1.0, 2.0, 3.0])

    def test_rejects_empty_points(self):
        with self.assertRaises(ValidationError):
            self._report(DataKind.FORECAST, [])

    def test_current_has_exactly_one_point(self):
        self.assertEqual(len(self._report(DataKind.CURRENT, [_point(1)]).points), 1)
        with self.assertRaises(ValidationError):
            self._report(DataKind.CURRENT, [_point(1), _point(2)])

    def test_structural_equality(self):
        a = self._report(DataKind.HISTORICAL, [_point(1), _point(2)])
        b = self._report(DataKind.HISTORICAL, [_point(2), _point(1)])
        self.assertEqual(a, b)


if __name__ == "__main__":
    unittest.main()
