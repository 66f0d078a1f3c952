"""Token amount scaling and bytes32 string encoding.

Amounts are converted with integer arithmetic only: a decimal string is split
into whole and fractional digits and scaled by ``10**decimals``.
"""

import re

from gamebridge.core.exceptions import ValidationError

BYTES32_LENGTH = 32
MAX_UINT256 = 2**256 - 1

_DECIMAL_PATTERN = re.compile(r"^([0-9]*)(?:\.([0-9]*))?$")


def parse_units(amount: str, decimals: int) -> int:
    """Convert a human-readable decimal string to integer base units.

    Args:
        amount: Decimal string such as ``"1.5"``
        decimals: Token decimals

    Returns:
        ``amount * 10**decimals`` as an exact integer

    Raises:
        ValidationError: If the string is empty, non-numeric, negative, has
            more fractional digits than ``decimals`` or does not fit in uint256
    """
    if decimals < 0:
        raise ValidationError(f"Invalid token decimals: {decimals}")

    text = str(amount).strip() if amount is not None else ""
    if not text:
        raise ValidationError("Amount is required")
    if text.startswith("-"):
        raise ValidationError(f"Amount must not be negative: {text}")

    match = _DECIMAL_PATTERN.match(text)
    if not match or text == ".":
        raise ValidationError(f"Invalid decimal amount: {text}")

    whole, fraction = match.group(1), (match.group(2) or "")
    fraction = fraction.rstrip("0")
    if len(fraction) > decimals:
        raise ValidationError(
            f"Amount {text} exceeds {decimals} decimal places"
        )

    value = int(whole or "0") * 10**decimals + int(fraction.ljust(decimals, "0") or "0")
    if value > MAX_UINT256:
        raise ValidationError(f"Amount {text} exceeds the uint256 range")
    return value


def format_units(value: int, decimals: int) -> str:
    """Format integer base units as a decimal string (inverse of parse_units)."""
    sign = "-" if value < 0 else ""
    whole, fraction = divmod(abs(value), 10**decimals)
    if decimals == 0:
        return f"{sign}{whole}"
    fraction_text = str(fraction).rjust(decimals, "0").rstrip("0") or "0"
    return f"{sign}{whole}.{fraction_text}"


def encode_bytes32_string(text: str) -> bytes:
    """Encode a short string as a zero-padded bytes32 value.

    At most 31 UTF-8 bytes fit, leaving room for the terminating zero byte.

    Raises:
        ValidationError: If the string is empty or too long
    """
    if not text:
        raise ValidationError("Identifier must not be empty")
    encoded = text.encode("utf-8")
    if len(encoded) > BYTES32_LENGTH - 1:
        raise ValidationError(
            f"Identifier '{text}' is {len(encoded)} bytes; at most "
            f"{BYTES32_LENGTH - 1} bytes fit in bytes32"
        )
    return encoded.ljust(BYTES32_LENGTH, b"\x00")


def decode_bytes32_string(value: bytes) -> str:
    """Decode a bytes32 string produced by encode_bytes32_string.

    Raises:
        ValueError: If the value is not 32 bytes, lacks a zero terminator or
            is not valid UTF-8
    """
    raw = bytes(value)
    if len(raw) != BYTES32_LENGTH:
        raise ValueError(f"Expected {BYTES32_LENGTH} bytes, got {len(raw)}")
    if raw[-1] != 0:
        raise ValueError("Invalid bytes32 string: no null terminator")

    end = raw.index(0)
    return raw[:end].decode("utf-8")
