import datetime as dt
import unittest

from weathercli.dates import parse_time_spec
from weathercli.errors import DateParseError

TODAY = dt.date(2024, 6, 15)


class TestParseTimeSpec(unittest.TestCase):
    def test_now(self):
        self.assertTrue(parse_time_spec("now").is_now)
        self.assertTrue(parse_time_spec(" NOW ").is_now)

    def test_relative_days(self):
        self.assertEqual(parse_time_spec("today", today=TODAY).day, TODAY)
        self.assertEqual(parse_time_spec("tomorrow", today=TODAY).day, dt.date(2024, 6, 16))
        self.assertEqual(parse_time_spec("yesterday", today=TODAY).day, dt.date(2024, 6, 14))

    def test_iso_date(self):
        spec = parse_time_spec("2023-02-24")
        self.assertFalse(spec.has_time)
        self.assertEqual(spec.day, dt.date(2023, 2, 24))

    def test_iso_datetime(self):
        spec = parse_time_spec("2023-02-24T15:00")
        self.assertTrue(spec.has_time)
        self.assertEqual(spec.instant, dt.datetime(2023, 2, 24, 15, 0, tzinfo=dt.timezone.utc))

    def test_zulu_and_offsets(self):
        self.assertEqual(parse_time_spec("2023-02-24T15:00Z").instant.hour, 15)
        self.assertEqual(parse_time_spec("2023-02-24T15:00+02:00").instant.hour, 13)

    def test_free_text_dates(self):
        for text in ("Feb 24 2023", "24 February 2023", "2023/02/24", "24/02/2023"):
            with self.subTest(text=text):
                spec = parse_time_spec(text, today=TODAY)
                self.assertFalse(spec.has_time)
                self.assertEqual(spec.day, dt.date(2023, 2, 24))

    def test_free_text_with_time(self):
        spec = parse_time_spec("Feb 24 2023 3pm", today=TODAY)
        self.assertTrue(spec.has_time)
        self.assertEqual(spec.instant, dt.datetime(2023, 2, 24, 15, 0, tzinfo=dt.timezone.utc))

    def test_free_text_midnight_keeps_time(self):
        spec = parse_time_spec("Feb 24 2023 00:00", today=TODAY)
        self.assertTrue(spec.has_time)
        self.assertEqual(spec.instant.hour, 0)

    def test_missing_year_uses_current_year(self):
        self.assertEqual(parse_time_spec("March 3", today=TODAY).day, dt.date(2024, 3, 3))

    def test_garbage(self):
        for text in ("next week", "someday", "", "   "):
            with self.subTest(text=text):
                with self.assertRaises(DateParseError):
                    parse_time_spec(text, today=TODAY)


if __name__ == "__main__":
    unittest.main()
