"""
Central logging configuration for weathercli.

Usage
-----
In the entrypoint:

    from utils.logging_utils import setup_logging

    def main() -> None:
        setup_logging(level="WARNING", job_name="weathercli")
        ...

In a module:

    from utils.logging_utils import get_tagged_logger

    logger = get_tagged_logger(__name__, tag="providers/open_meteo")

Charts and tables are printed on stdout, so every log record goes to stderr
and never interleaves with rendered output.
"""

from __future__ import annotations

import logging
import logging.config
from typing import Any, Mapping, Optional


DEFAULT_LOG_FORMAT = "%(asctime)s | %(levelname)s | %(job_name)s | %(tag)s | %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
DEFAULT_JOB_NAME = "weathercli"

_CONFIGURED: bool = False


class EnsureTagFilter(logging.Filter):
    """
    Ensure every LogRecord has a `tag` attribute.

    Records coming from a tagged LoggerAdapter keep their tag; anything else
    (third-party loggers such as urllib3) gets the last segment of its logger
    name, e.g. "urllib3.connectionpool" -> "connectionpool".
    """

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        """Ensure the record has a tag attribute."""
        if not hasattr(record, "tag"):
            logger_name = getattr(record, "name", "")
            record.tag = logger_name.split(".")[-1] if logger_name else "-"
        return True


class JobNameFilter(logging.Filter):
    """Inject a `job_name` attribute into every LogRecord."""

    def __init__(self, job_name: Optional[str] = None) -> None:
        """Initialize with a fixed job name."""
        super().__init__()
        self._job_name = job_name or DEFAULT_JOB_NAME

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        """Inject the job_name attribute when missing."""
        if not hasattr(record, "job_name"):
            record.job_name = self._job_name
        return True


def build_logging_config(
    *,
    level: str | int = "WARNING",
    log_format: str = DEFAULT_LOG_FORMAT,
    date_format: str = DEFAULT_DATE_FORMAT,
    job_name: Optional[str] = None,
) -> Mapping[str, Any]:
    """
    Build a dictConfig-style logging configuration.

    Parameters
    ----------
    level:
        Root logger level (e.g., "DEBUG", "WARNING", logging.INFO).
    log_format:
        Formatter pattern for log messages.
    date_format:
        Formatter pattern for timestamps.
    job_name:
        Logical name of the process, rendered as `%(job_name)s`.

    Returns
    -------
    dict suitable for logging.config.dictConfig().
    """
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {
            "ensure_tag": {"()": EnsureTagFilter},
            "job_name": {"()": JobNameFilter, "job_name": job_name},
        },
        "formatters": {
            "standard": {
                "format": log_format,
                "datefmt": date_format,
            },
        },
        "handlers": {
            "stderr": {
                "class": "logging.StreamHandler",
                "formatter": "standard",
                "filters": ["ensure_tag", "job_name"],
                "level": "DEBUG",
                "stream": "ext://sys.stderr",
            },
        },
        "root": {
            "level": level,
            "handlers": ["stderr"],
        },
    }


def setup_logging(
    *,
    level: str | int = "WARNING",
    log_format: str = DEFAULT_LOG_FORMAT,
    date_format: str = DEFAULT_DATE_FORMAT,
    job_name: Optional[str] = None,
    override_existing: bool = False,
) -> None:
    """
    Configure process-wide logging once.

    Calling it again is a no-op unless `override_existing` is True, which the
    CLI uses when `--verbose` raises the level after settings were loaded.
    """
    global _CONFIGURED

    if _CONFIGURED and not override_existing:
        return

    logging.config.dictConfig(
        build_logging_config(
            level=level,
            log_format=log_format,
            date_format=date_format,
            job_name=job_name,
        )
    )
    _CONFIGURED = True


def get_tagged_logger(
    name: str,
    *,
    tag: Optional[str] = None,
) -> logging.LoggerAdapter:
    """
    Return a LoggerAdapter that always carries a `tag` field.

    If `tag` is omitted it defaults to the last segment of `name`.
    """
    base_logger = logging.getLogger(name)
    if tag is None:
        tag = name.split(".")[-1]
    return logging.LoggerAdapter(base_logger, {"tag": tag})
