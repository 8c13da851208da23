"""Logging setup shared by the CLI and library consumers."""

from __future__ import annotations

import logging
import sys

from synthtext.config.settings import Settings

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"
CLI_LOG_FORMAT = "%(levelname)s: %(message)s"


def configure_logging(settings: Settings, *, cli: bool = False) -> None:
    """Configure the ``synthtext`` logger hierarchy from ``settings.log_level``.

    Log records go to stderr so that completion text on stdout stays clean.
    """
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(CLI_LOG_FORMAT if cli else LOG_FORMAT))

    package_logger = logging.getLogger("synthtext")
    for existing in list(package_logger.handlers):
        package_logger.removeHandler(existing)
    package_logger.addHandler(handler)
    package_logger.setLevel(settings.log_level)
    package_logger.propagate = False

    # httpx logs every request at INFO; keep it quiet unless debugging.
    logging.getLogger("httpx").setLevel(logging.DEBUG if settings.log_level == "DEBUG" else logging.WARNING)
