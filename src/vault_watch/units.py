from __future__ import annotations

from datetime import datetime, timezone
from decimal import ROUND_DOWN, Decimal, InvalidOperation

from .constants import MAX_BPS

HUMAN_DATE_FORMAT = "%Y-%m-%d %H:%M:%S UTC"
NEVER_REPORTED = "never"


def parse_fixed_point(value: object) -> int:
    """Convert a decimal string (or number) to an integer amount.

    Args:
        value: Amount in base units, possibly with a fractional part or in
            scientific notation, e.g. ``"1000000000000000000.75"`` or ``"1e18"``.

    Returns:
        The amount truncated toward zero.

    Raises:
        ValueError: If ``value`` is not a finite decimal.

    Notes:
        - Floats are converted through ``str`` so that ``1e18`` does not pick up
          binary rounding noise.
        - Never routes through ``float``; values may exceed 2**64.
    """
    if isinstance(value, bool):
        raise ValueError(f"Not a decimal amount: {value!r}")
    if isinstance(value, int):
        return value
    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation as e:
        raise ValueError(f"Not a decimal amount: {value!r}") from e
    if not amount.is_finite():
        raise ValueError(f"Not a finite amount: {value!r}")
    return int(amount.to_integral_value(rounding=ROUND_DOWN))


def bps_share(part: int, whole: int) -> int:
    """Return ``part`` as basis points of ``whole`` using integer division.

    Returns 0 when ``whole`` is not positive.
    """
    if whole <= 0:
        return 0
    return part * MAX_BPS // whole


def to_human_date_text(timestamp: int | str | None) -> str:
    """Format a unix timestamp (seconds) as a UTC date string.

    ``0``, ``None`` and unparsable values render as ``"never"``.
    """
    if timestamp is None:
        return NEVER_REPORTED
    try:
        seconds = int(timestamp)
    except (TypeError, ValueError):
        return NEVER_REPORTED
    if seconds <= 0:
        return NEVER_REPORTED
    try:
        moment = datetime.fromtimestamp(seconds, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return NEVER_REPORTED
    return moment.strftime(HUMAN_DATE_FORMAT)
