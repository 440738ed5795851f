"""Utility functions for KryptoPay SDK."""

from kryptopay.utils.formatting import (
    format_amount,
    format_chain,
    mode_badge,
    short_address,
    status_label,
)

__all__ = [
    # Renderer helpers
    "format_amount",
    "format_chain",
    "mode_badge",
    "short_address",
    "status_label",
]
