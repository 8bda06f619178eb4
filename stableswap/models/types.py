"""Shared identity and amount types.

Accounts and assets are plain address strings compared case-insensitively.
Integer amounts cross the HTTP boundary as decimal strings because JSON
numbers cannot carry 256-bit values without loss.
"""

from typing import Annotated, Any

from pydantic import BeforeValidator, Field

from stableswap.safe_int import UINT256_MAX


def validate_uint256(value: Any) -> str:
    """Coerce an int or decimal string into a canonical uint256 string.

    Raises:
        ValueError: If value is not an integer in [0, 2**256 - 1]
    """
    if isinstance(value, bool) or not isinstance(value, (int, str)):
        raise ValueError(f"Uint256 must be string or int, got {type(value).__name__}")
    try:
        amount = int(value)
    except ValueError as err:
        raise ValueError(f"Uint256 must be a decimal integer string: '{value}'") from err
    if not 0 <= amount <= UINT256_MAX:
        raise ValueError(f"Uint256 out of range: {value}")
    return str(amount)


# 20-byte hex account or asset identifier
Address = Annotated[str, Field(pattern=r"^0x[a-fA-F0-9]{40}$")]

# Integer amount carried as a decimal string
Uint256 = Annotated[
    str,
    BeforeValidator(validate_uint256),
    Field(description="256-bit unsigned integer as decimal string"),
]


def normalize_address(address: str) -> str:
    """Lowercase an address and ensure the 0x prefix."""
    normalized = address.lower()
    if not normalized.startswith("0x"):
        normalized = "0x" + normalized
    return normalized
