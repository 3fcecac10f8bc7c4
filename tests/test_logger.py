import logging

import pytest

from vault_watch.logger import (
    NOISY_LOGGERS,
    TRACE,
    ColoredFormatter,
    resolve_level,
    tune_library_loggers,
)


@pytest.fixture
def library_levels():
    saved = {name: logging.getLogger(name).level for name in NOISY_LOGGERS}
    yield
    for name, level in saved.items():
        logging.getLogger(name).setLevel(level)


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("trace", TRACE),
        ("DEBUG", logging.DEBUG),
        ("warning", logging.WARNING),
        ("loud", logging.INFO),
    ],
)
def test_resolve_level(name, expected):
    assert resolve_level(name) == expected


@pytest.mark.parametrize(
    ("level", "expected"),
    [
        (TRACE, TRACE),
        (logging.DEBUG, logging.WARNING),
        (logging.INFO, logging.WARNING),
        (logging.ERROR, logging.ERROR),
    ],
)
def test_library_loggers_follow_trace_only(library_levels, level, expected):
    tune_library_loggers(level)

    assert {logging.getLogger(n).level for n in NOISY_LOGGERS} == {expected}


def test_colored_formatter_leaves_record_untouched():
    record = logging.LogRecord("vault_watch", logging.WARNING, __file__, 1, "hi", None, None)

    line = ColoredFormatter("%(levelname)s %(message)s").format(record)

    assert "WARNING" in line and line.endswith("hi")
    assert "\033[33m" in line
    assert record.levelname == "WARNING"
