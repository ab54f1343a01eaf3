"""Logging setup for the CLI.

Handlers are attached to the ``patch_hub`` logger only, so the root logger
and any host application handlers are left alone. Poller work runs on pool
threads, which is why the file format carries the thread name.
"""

import logging
import sys
from pathlib import Path

PACKAGE_LOGGER = "patch_hub"
CONSOLE_FORMAT = "%(levelname)s %(name)s: %(message)s"
FILE_FORMAT = "%(asctime)s %(levelname)-8s [%(threadName)s] %(name)s: %(message)s"

# HTTP client chatter from the package service calls
NOISY_LOGGERS = ("urllib3", "requests")


def parse_level(name: str | int) -> int:
    """Map a level name such as "debug" to its logging constant; unknown names give INFO."""
    if isinstance(name, int):
        return name
    level = logging.getLevelName(name.strip().upper())
    return level if isinstance(level, int) else logging.INFO


def configure_logging(level: str | int = logging.INFO, log_file: Path | None = None) -> logging.Logger:
    """Route patch_hub records to stderr, and to log_file when one is given.

    Calling it again replaces the handlers installed by the previous call.
    """
    level = parse_level(level)

    package_logger = logging.getLogger(PACKAGE_LOGGER)
    package_logger.setLevel(level)
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    package_logger.addHandler(console)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
        package_logger.addHandler(file_handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    return package_logger
