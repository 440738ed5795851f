"""
ERC-20 calldata encoding.

Hand-rolled ABI encoding for the one call the wallet flow makes; no
web3.py dependency.
"""

from __future__ import annotations

import re

from kryptopay.core.exceptions import ValidationError

_ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")

UINT256_MAX = 2**256 - 1

_FUNCTION_SELECTORS: dict[str, str] = {
    "transfer(address,uint256)": "a9059cbb",
    "balanceOf(address)": "70a08231",
}


def is_address(value: str) -> bool:
    """Check for a 0x-prefixed 20-byte hex address (checksum not verified)."""
    return isinstance(value, str) and bool(_ADDRESS_RE.match(value))


def encode_address(addr: str) -> str:
    """Encode address as 32-byte hex (left-padded)."""
    if not is_address(addr):
        raise ValidationError(f"Invalid address: {addr!r}", details={"address": addr})
    return addr.lower()[2:].rjust(64, "0")


def encode_uint256(val: int) -> str:
    """Encode uint256 as 32-byte hex."""
    if isinstance(val, bool) or not isinstance(val, int) or not 0 <= val <= UINT256_MAX:
        raise ValidationError(f"Value does not fit uint256: {val!r}", details={"value": val})
    return f"{val:064x}"


def encode_erc20_transfer(to: str, amount_units: int) -> str:
    """
    Build calldata for ``transfer(address to, uint256 amount)``.

    Returns:
        0x-prefixed hex calldata (4-byte selector + two 32-byte words)
    """
    selector = _FUNCTION_SELECTORS["transfer(address,uint256)"]
    return f"0x{selector}{encode_address(to)}{encode_uint256(amount_units)}"
