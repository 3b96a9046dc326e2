"""Identifier and amount types shared by events and API bodies.

Accounts, assets and pools are all named by 0x-prefixed 20-byte addresses,
compared case-insensitively. Amounts are uint256 values, carried on the
wire as decimal strings.
"""

import re
from typing import Annotated, Any

from pydantic import BeforeValidator, Field

from exchange.constants import ZERO_ADDRESS
from exchange.safe_int import SafeInt, SafeIntError

ADDRESS_PATTERN = r"^0x[a-fA-F0-9]{40}$"
_ADDRESS_RE = re.compile(ADDRESS_PATTERN)


def validate_uint256(value: Any) -> str:
    """Coerce an int or decimal string to a canonical uint256 string.

    Raises:
        ValueError: If value is not a non-negative integer within uint256 range
    """
    if isinstance(value, str):
        try:
            value = int(value)
        except ValueError as err:
            raise ValueError(f"Uint256 must be a decimal integer string: '{value}'") from err
    try:
        return str(SafeInt(value))
    except (TypeError, SafeIntError) as err:
        raise ValueError(f"Invalid uint256 {value!r}: {err}") from err


Address = Annotated[str, Field(pattern=ADDRESS_PATTERN)]

Uint256 = Annotated[
    str,
    BeforeValidator(validate_uint256),
    Field(description="256-bit unsigned integer as decimal string"),
]


def normalize_address(address: str, *, validate: bool = False) -> str:
    """Lowercase an address and make sure it carries the 0x prefix.

    Raises:
        ValueError: If validate=True and the result is not a 20-byte address
    """
    addr = address.lower()
    if not addr.startswith("0x"):
        addr = "0x" + addr
    if validate and not is_valid_address(addr):
        raise ValueError(f"Invalid address: {address}")
    return addr


def is_valid_address(address: str) -> bool:
    return isinstance(address, str) and _ADDRESS_RE.fullmatch(address) is not None


def is_null_address(address: str | None) -> bool:
    """True for None, the empty string, or the all-zero address."""
    if not address:
        return True
    return normalize_address(address) == ZERO_ADDRESS
