"""Logging configuration for vault-watch."""

import logging
import sys

# Below DEBUG; multicall uses it for every failed call in a batch
TRACE = 5
logging.addLevelName(TRACE, "TRACE")

# HTTP and RPC libraries that log each request at DEBUG
NOISY_LOGGERS = ("web3", "urllib3", "backoff")


class ColoredFormatter(logging.Formatter):
    """Colored log formatter using ANSI escape codes."""

    COLORS = {
        "TRACE": "\033[90m",
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"
    BOLD = "\033[1m"

    def format(self, record: logging.LogRecord) -> str:
        plain = record.levelname
        color = self.COLORS.get(plain)
        if color:
            record.levelname = f"{color}{self.BOLD}{plain}{self.RESET}"
        try:
            return super().format(record)
        finally:
            record.levelname = plain


def resolve_level(log_level: str) -> int:
    """Map a level name (case-insensitive, TRACE included) to its number.

    Unknown names fall back to INFO.
    """
    name = log_level.upper()
    if name == "TRACE":
        return TRACE
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO


def tune_library_loggers(level: int) -> None:
    """Set the level of the request-per-line library loggers.

    At TRACE they follow the root level so each RPC and index request is
    visible. At any other level they are capped at WARNING, which keeps
    ``--log-level DEBUG`` readable while a batch of several hundred calls
    runs.
    """
    library_level = TRACE if level <= TRACE else max(level, logging.WARNING)
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(library_level)


def setup_logging(log_level: str = "INFO") -> None:
    """Send colored records to stderr at ``log_level``.

    stdout is reserved for ``--json`` output.
    """
    level = resolve_level(log_level)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        ColoredFormatter(
            fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    logging.basicConfig(level=level, handlers=[handler], force=True)

    tune_library_loggers(level)


def get_logger(name: str) -> logging.Logger:
    """Return the module logger for ``name`` (usually ``__name__``)."""
    return logging.getLogger(name)
