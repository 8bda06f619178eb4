"""Identity and amount types shared across the engine."""

from stableswap.models.types import Address, Uint256, normalize_address, validate_uint256

__all__ = [
    "Address",
    "Uint256",
    "normalize_address",
    "validate_uint256",
]
