
import re
from datetime import timedelta


_LIFETIME_PATTERN = re.compile(r"^(\d+)\s*([SMHDWY]?)$")

_UNIT_SECONDS = {
    "": 1,
    "S": 1,
    "M": 60,
    "H": 60 * 60,
    "D": 24 * 60 * 60,
    "W": 7 * 24 * 60 * 60,
    "Y": 365 * 24 * 60 * 60,
}


def parse_lifetime(lifetime: str) -> timedelta:
    """
    Parse a token lifetime string (3600, 30m, 12h, 7d, 2w, 1y) into a timedelta.

    A bare number is a count of seconds. Units are case insensitive and
    may be separated from the amount by a space.

    Args:
        lifetime: Lifetime format string (e.g., "7d", "12h", "3600").

    Returns:
        timedelta: Duration the token stays valid.

    Raises:
        ValueError: If lifetime format is invalid or not positive.
    """
    if not lifetime:
        raise ValueError("Lifetime string cannot be empty")

    match = _LIFETIME_PATTERN.match(lifetime.strip().upper())
    if not match:
        raise ValueError("Invalid lifetime format. Use: 3600, 30m, 12h, 7d, 2w, 1y")

    amount = int(match.group(1))
    if amount <= 0:
        raise ValueError("Lifetime must be positive")

    return timedelta(seconds=amount * _UNIT_SECONDS[match.group(2)])


def validate_lifetime_format(lifetime: str) -> bool:
    """
    Validate lifetime format without converting.

    Args:
        lifetime: Lifetime format string.

    Returns:
        bool: True if format is valid.
    """
    try:
        parse_lifetime(lifetime)
        return True
    except ValueError:
        return False
