"""
Normalize errors into the public on_error shape.

Wallet providers, the resolve endpoint and plain Python failures all end up
as a PublicError(code, message, recoverable) so renderers only ever deal
with one shape.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from kryptopay.core.types import PublicError

# EIP-1193 / MetaMask-style numeric codes
WALLET_CODE_MESSAGES: dict[int, tuple[str, str]] = {
    4001: (
        "wallet_user_rejected",
        "You cancelled the request in your wallet.",
    ),
    -32002: (
        "wallet_request_pending",
        "A wallet request is already pending. Open your wallet to continue "
        "or cancel the pending request.",
    ),
    4902: (
        "wallet_chain_not_added",
        "Your wallet doesn't have this network added. Please switch networks "
        "manually in your wallet or use manual payment.",
    ),
}

GENERIC_WALLET_MESSAGE = "Wallet error"
GENERIC_MESSAGE = "Unknown error"


def _field(err: Any, name: str) -> Any:
    if isinstance(err, Mapping):
        return err.get(name)
    return getattr(err, name, None)


def _message_or(err: Any, fallback: str) -> str:
    message = _field(err, "message")
    if isinstance(message, str) and message.strip():
        return message
    return fallback


def to_public_error(err: Any) -> PublicError:
    """
    Convert any raised value into a PublicError.

    Order matters:
    1. numeric ``code`` -> wallet error mapping (4001, -32002, 4902, other)
    2. string ``code`` with a boolean ``recoverable`` -> structured, kept as is
    3. string ``code`` alone -> passed through, recoverable
    4. anything else -> unknown_error, not recoverable
    """
    if isinstance(err, PublicError):
        return err

    code = _field(err, "code")

    # bool is an int subclass but never a wallet code
    if isinstance(code, int) and not isinstance(code, bool):
        if code in WALLET_CODE_MESSAGES:
            public_code, message = WALLET_CODE_MESSAGES[code]
            return PublicError(code=public_code, message=message, recoverable=True)
        return PublicError(
            code="wallet_error",
            message=_message_or(err, GENERIC_WALLET_MESSAGE),
            recoverable=True,
        )

    if isinstance(code, str):
        recoverable = _field(err, "recoverable")
        if isinstance(recoverable, bool):
            return PublicError(
                code=code,
                message=_message_or(err, GENERIC_MESSAGE),
                recoverable=recoverable,
            )
        return PublicError(code=code, message=_message_or(err, GENERIC_MESSAGE), recoverable=True)

    if isinstance(err, BaseException) and str(err):
        message = str(err)
    else:
        message = GENERIC_MESSAGE
    return PublicError(code="unknown_error", message=message, recoverable=False)
