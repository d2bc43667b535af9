import datetime as dt
import unittest

from weathercli.errors import CapabilityError, DateOutOfRange, UnsupportedKind
from weathercli.models import DataKind, TimeSpec
from weathercli.providers import MetNoAdapter, OpenMeteoAdapter, describe
from weathercli.providers.base import CapabilityDescriptor, classify, validate

UTC = dt.timezone.utc
NOW = dt.datetime(2024, 6, 15, 12, 0, tzinfo=UTC)
TODAY = NOW.date()

ADAPTERS = (OpenMeteoAdapter, MetNoAdapter)


class TestClassify(unittest.TestCase):
    def test_now_is_current_for_every_provider(self):
        for adapter_cls in ADAPTERS:
            self.assertEqual(classify(TimeSpec.now(), adapter_cls.descriptor, NOW), DataKind.CURRENT)

    def test_past_day_is_historical(self):
        spec = TimeSpec.at(dt.date(2023, 2, 24))
        for adapter_cls in ADAPTERS:
            self.assertEqual(classify(spec, adapter_cls.descriptor, NOW), DataKind.HISTORICAL)

    def test_today_and_future_days_are_forecast(self):
        for day in (TODAY, TODAY + dt.timedelta(days=1), TODAY + dt.timedelta(days=60)):
            for adapter_cls in ADAPTERS:
                self.assertEqual(
                    classify(TimeSpec.at(day), adapter_cls.descriptor, NOW), DataKind.FORECAST
                )

    def test_datetimes_compare_with_the_clock(self):
        descriptor = OpenMeteoAdapter.descriptor
        earlier = TimeSpec.at(NOW - dt.timedelta(hours=1))
        later = TimeSpec.at(NOW + dt.timedelta(hours=1))
        self.assertEqual(classify(earlier, descriptor, NOW), DataKind.HISTORICAL)
        self.assertEqual(classify(later, descriptor, NOW), DataKind.FORECAST)

    def test_same_spec_changes_kind_as_clock_moves(self):
        spec = TimeSpec.at(dt.date(2024, 6, 16))
        descriptor = OpenMeteoAdapter.descriptor
        self.assertEqual(classify(spec, descriptor, NOW), DataKind.FORECAST)
        self.assertEqual(classify(spec, descriptor, NOW + dt.timedelta(days=2)), DataKind.HISTORICAL)

    def test_adapter_method_uses_own_descriptor(self):
        adapter = MetNoAdapter(session=object())
        self.assertEqual(adapter.classify(TimeSpec.now(), now=NOW), DataKind.CURRENT)


class TestValidate(unittest.TestCase):
    def test_supported_kinds_pass(self):
        for adapter_cls in ADAPTERS:
            for kind in adapter_cls.descriptor.supports:
                spec = TimeSpec.now() if kind is DataKind.CURRENT else TimeSpec.at(
                    TODAY + dt.timedelta(days=1) if kind is DataKind.FORECAST else dt.date(2023, 2, 24)
                )
                validate(adapter_cls.name, kind, adapter_cls.descriptor, spec, NOW)

    def test_every_unsupported_kind_is_rejected(self):
        for adapter_cls in ADAPTERS:
            for kind in DataKind:
                if kind in adapter_cls.descriptor.supports:
                    continue
                with self.assertRaises(UnsupportedKind) as ctx:
                    validate(adapter_cls.name, kind, adapter_cls.descriptor)
                self.assertEqual(ctx.exception.kind, kind)
                self.assertEqual(ctx.exception.provider, adapter_cls.name)

    def test_met_no_rejects_history(self):
        with self.assertRaises(UnsupportedKind) as ctx:
            MetNoAdapter(session=object()).validate(DataKind.HISTORICAL, time_spec=TimeSpec.at(dt.date(2023, 2, 24)))
        self.assertIsInstance(ctx.exception, CapabilityError)
        self.assertIn("historical", str(ctx.exception))

    def test_open_meteo_forecast_horizon(self):
        descriptor = OpenMeteoAdapter.descriptor
        last_day = TimeSpec.at(TODAY + dt.timedelta(days=15))
        validate("open-meteo", DataKind.FORECAST, descriptor, last_day, NOW)

        too_far = TimeSpec.at(TODAY + dt.timedelta(days=16))
        with self.assertRaises(DateOutOfRange) as ctx:
            validate("open-meteo", DataKind.FORECAST, descriptor, too_far, NOW)
        self.assertEqual(ctx.exception.limit, TODAY + dt.timedelta(days=15))
        self.assertEqual(ctx.exception.requested, TODAY + dt.timedelta(days=16))

    def test_met_no_forecast_horizon(self):
        descriptor = MetNoAdapter.descriptor
        validate("met-no", DataKind.FORECAST, descriptor, TimeSpec.at(TODAY + dt.timedelta(days=9)), NOW)
        with self.assertRaises(DateOutOfRange):
            validate("met-no", DataKind.FORECAST, descriptor, TimeSpec.at(TODAY + dt.timedelta(days=10)), NOW)

    def test_datetime_beyond_horizon(self):
        descriptor = OpenMeteoAdapter.descriptor
        spec = TimeSpec.at(NOW + dt.timedelta(days=15, hours=1))
        kind = classify(spec, descriptor, NOW)
        self.assertEqual(kind, DataKind.FORECAST)
        with self.assertRaises(DateOutOfRange):
            validate("open-meteo", kind, descriptor, spec, NOW)

    def test_historical_not_allowed_is_out_of_range(self):
        descriptor = CapabilityDescriptor(
            supports=frozenset(DataKind),
            historical_allowed=False,
            max_forecast_horizon=dt.timedelta(days=3),
        )
        with self.assertRaises(DateOutOfRange):
            validate("custom", DataKind.HISTORICAL, descriptor, TimeSpec.at(dt.date(2023, 2, 24)), NOW)


class TestDescribe(unittest.TestCase):
    def test_profiles(self):
        open_meteo = describe("open-meteo")
        self.assertEqual(open_meteo.supports, frozenset(DataKind))
        self.assertTrue(open_meteo.historical_allowed)
        self.assertEqual(open_meteo.max_forecast_horizon, dt.timedelta(days=15))

        met_no = describe("met-no")
        self.assertEqual(met_no.supports, frozenset({DataKind.CURRENT, DataKind.FORECAST}))
        self.assertFalse(met_no.historical_allowed)

    def test_describe_is_static(self):
        self.assertIs(describe("met-no"), describe("met_no"))


if __name__ == "__main__":
    unittest.main()
