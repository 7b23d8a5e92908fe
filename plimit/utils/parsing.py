"""
Numeric literal parsing for command-line and profile values.
"""

import re
from decimal import Decimal, InvalidOperation
from typing import Optional

from ..constants import Limits
from ..exceptions import ParseError

# Binary-unit multipliers (base 1024)
SIZE_MULTIPLIERS = {
    '': 1,
    'K': 1024,
    'M': 1024 ** 2,
    'G': 1024 ** 3,
    'T': 1024 ** 4,
    'P': 1024 ** 5,
    'E': 1024 ** 6,
}

_SIZE_RE = re.compile(r'^([+-]?)(\d+(?:\.\d*)?|\.\d+)([KMGTPE]?)$', re.IGNORECASE)
_INT_RE = re.compile(r'^[+-]?\d+$')


def parse_byte_size(text: Optional[str]) -> int:
    """
    Parse a size such as "512M", "1.5G" or "4096" into bytes.

    The magnitude may be fractional; the result is truncated to a whole
    number of bytes. Suffixes are case-insensitive.

    Raises:
        ParseError: empty, negative, malformed or larger than 2**63-1
    """
    if text is None or not text.strip():
        raise ParseError("size is empty")

    match = _SIZE_RE.match(text.strip())
    if not match:
        raise ParseError(f"invalid size: '{text}' (expected N[K|M|G|T|P|E])")

    sign, magnitude, suffix = match.groups()
    if sign == '-':
        raise ParseError(f"size must not be negative: '{text}'")

    try:
        value = Decimal(magnitude) * SIZE_MULTIPLIERS[suffix.upper()]
    except InvalidOperation as e:
        raise ParseError(f"invalid size: '{text}'") from e

    if value > Limits.BYTES_MAX:
        raise ParseError(f"size out of range: '{text}'")

    return int(value)


def parse_integer(text: Optional[str], name: str = "value") -> int:
    """
    Parse a base-10 integer.

    Raises:
        ParseError: empty or not an integer
    """
    if text is None or not text.strip():
        raise ParseError(f"{name} is empty")

    text = text.strip()
    if not _INT_RE.match(text):
        raise ParseError(f"invalid value for {name}: '{text}'")

    return int(text)


__all__ = [
    'SIZE_MULTIPLIERS',
    'parse_byte_size',
    'parse_integer',
]
