"""Conversion between cpufreq attribute text and typed values."""

import re

from freqctl.lib.errors import InvalidArgument, InvalidGovernor, ParseError

# Longest token a list attribute may carry
MAX_TOKEN_LEN = 256

# Governor names live in a 20 byte kernel buffer, terminator included
MAX_GOVERNOR_LEN = 19

# Same number forms strtoul() accepts with base 0, minus the sign
UINT_PATTERN = re.compile(r"\s*(0[xX][0-9a-fA-F]+|0[0-7]*|[1-9][0-9]*)")

TOKEN_DELIMITERS = re.compile(r"[ \0\n]")

GOVERNOR_PATTERN = re.compile(r"[A-Za-z0-9_-]+")


def parse_uint(text: str, bits: int = 64) -> int:
    """
    Parse the leading unsigned integer of an attribute value.

    Args:
        text: Attribute text, e.g. "2400000\\n"
        bits: Width of the target integer

    Returns:
        Parsed value

    Raises:
        ParseError: If no leading unsigned integer exists or it overflows
    """
    match = UINT_PATTERN.match(text)
    if match is None:
        raise ParseError(f"No unsigned integer in {text!r}")

    digits = match.group(1)
    if digits[:2] in ("0x", "0X"):
        value = int(digits, 16)
    elif len(digits) > 1 and digits.startswith("0"):
        value = int(digits, 8)
    else:
        value = int(digits)

    if value >= 1 << bits:
        raise ParseError(f"Value {digits} overflows {bits} bits")
    return value


def parse_token_list(text: str, min_token_len: int) -> list[str]:
    """
    Split a list attribute into tokens.

    Tokens are separated by space, NUL or newline. Tokens shorter than
    min_token_len are dropped as noise.

    Raises:
        ParseError: If any token is too long; no partial list is returned
    """
    tokens = []
    for token in TOKEN_DELIMITERS.split(text):
        if len(token) < min_token_len:
            continue
        if len(token) >= MAX_TOKEN_LEN:
            raise ParseError(f"List entry of {len(token)} characters is too long")
        tokens.append(token)
    return tokens


def parse_string(text: str) -> str:
    """Strip the newline the kernel appends to string attributes."""
    if text.endswith("\n"):
        return text[:-1]
    return text


def validate_governor(raw: str) -> str:
    """
    Validate a governor name before it is written.

    The first NUL ends the name, as it would in the kernel's fixed
    buffer; anything after it is ignored.

    Returns:
        The name up to the first NUL

    Raises:
        InvalidGovernor: If empty, too long or containing other characters
    """
    name = raw.split("\0", 1)[0]
    if not name:
        raise InvalidGovernor(f"Empty governor name: {raw!r}")
    if len(name) > MAX_GOVERNOR_LEN:
        raise InvalidGovernor(f"Governor name must be 1-{MAX_GOVERNOR_LEN} characters: {name!r}")
    if not GOVERNOR_PATTERN.fullmatch(name):
        raise InvalidGovernor(f"Invalid characters in governor name: {name!r}")
    return name


def encode_uint(value: int, bits: int = 64) -> str:
    """Encode a value in the canonical decimal form sysfs expects."""
    if value < 0 or value >= 1 << bits:
        raise InvalidArgument(f"Value out of range: {value}")
    return str(value)
