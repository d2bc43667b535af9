import logging
import unittest

from utils import logging_utils
from utils.logging_utils import EnsureTagFilter, build_logging_config, get_tagged_logger


class _ListHandler(logging.Handler):
    def __init__(self):
        super().__init__()
        self.records = []

    def emit(self, record: logging.LogRecord) -> None:  # type: ignore[override]
        self.records.append(record)


class TestLoggingUtils(unittest.TestCase):
    def test_build_logging_config_routes_everything_to_stderr(self):
        cfg = build_logging_config(job_name="jobtest")
        self.assertEqual(list(cfg["handlers"]), ["stderr"])
        self.assertEqual(cfg["handlers"]["stderr"]["stream"], "ext://sys.stderr")
        self.assertEqual(cfg["root"]["handlers"], ["stderr"])
        self.assertEqual(cfg["filters"]["job_name"]["job_name"], "jobtest")

    def test_default_level_is_warning(self):
        cfg = build_logging_config()
        self.assertEqual(cfg["root"]["level"], "WARNING")

    def test_get_tagged_logger_injects_tag(self):
        handler = _ListHandler()
        logger = get_tagged_logger("weathercli.test", tag="custom_tag")
        base_logger = logger.logger
        base_logger.setLevel(logging.DEBUG)
        base_logger.addHandler(handler)
        base_logger.propagate = False
        try:
            logger.info("hello world")
        finally:
            base_logger.removeHandler(handler)
            base_logger.propagate = True

        self.assertTrue(handler.records)
        self.assertEqual(handler.records[-1].tag, "custom_tag")

    def test_default_tag_is_last_name_segment(self):
        logger = get_tagged_logger("weathercli.providers.met_no")
        self.assertEqual(logger.extra["tag"], "met_no")

    def test_ensure_tag_filter_derives_tag_from_logger_name(self):
        record = logging.LogRecord("urllib3.connectionpool", logging.DEBUG, __file__, 1, "msg", None, None)
        self.assertTrue(EnsureTagFilter().filter(record))
        self.assertEqual(record.tag, "connectionpool")

    def test_setup_logging_override_applies_filters(self):
        root = logging.getLogger()
        orig_handlers = root.handlers[:]
        orig_level = root.level
        try:
            logging_utils.setup_logging(level="INFO", job_name="jobtest", override_existing=True)
            self.assertTrue(root.handlers)
            self.assertEqual(root.level, logging.INFO)
            self.assertTrue(
                any(
                    any(f.__class__.__name__ == "JobNameFilter" for f in h.filters)
                    for h in root.handlers
                )
            )
        finally:
            root.handlers = orig_handlers
            root.setLevel(orig_level)
            logging_utils._CONFIGURED = False  # reset for other tests


if __name__ == "__main__":
    unittest.main()
