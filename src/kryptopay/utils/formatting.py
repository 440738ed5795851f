"""Display helpers shared by checkout renderers."""

from __future__ import annotations

from kryptopay.checkout.state import CheckoutState, CheckoutStateType
from kryptopay.core.types import Mode, PaymentIntentStatus

CHAIN_NAMES: dict[str, str] = {
    "base": "Base",
    "polygon": "Polygon",
}

STATUS_LABELS: dict[PaymentIntentStatus, str] = {
    PaymentIntentStatus.REQUIRES_PAYMENT: "Awaiting payment",
    PaymentIntentStatus.PENDING_CONFIRMATIONS: "Awaiting confirmations",
    PaymentIntentStatus.SUCCEEDED: "Successful",
    PaymentIntentStatus.EXPIRED: "Expired",
}

# States that show the test/live badge in the modal header
_BADGE_STATES = frozenset(
    {
        CheckoutStateType.CHOOSE_METHOD,
        CheckoutStateType.MANUAL_INSTRUCTIONS,
        CheckoutStateType.WALLET_CONNECTING,
        CheckoutStateType.WALLET_SWITCHING_CHAIN,
        CheckoutStateType.WALLET_SENDING,
        CheckoutStateType.WALLET_SUBMITTED,
        CheckoutStateType.WAITING,
        CheckoutStateType.AWAITING_CONFIRMATION,
        CheckoutStateType.SUCCESS,
    }
)


def format_amount(amount_units: int, decimals: int) -> str:
    """
    Render base units as a decimal string with trailing zeros trimmed.

    >>> format_amount(1_500_000, 6)
    '1.5'
    >>> format_amount(2_000_000, 6)
    '2'
    """
    if decimals <= 0:
        return str(amount_units)
    sign = "-" if amount_units < 0 else ""
    digits = str(abs(amount_units)).rjust(decimals + 1, "0")
    whole = digits[:-decimals]
    frac = digits[-decimals:].rstrip("0")
    return f"{sign}{whole}.{frac}" if frac else f"{sign}{whole}"


def short_address(address: str) -> str:
    """Shorten an address to ``0x1234…abcd`` (addresses up to 12 chars are kept)."""
    if not address:
        return ""
    if len(address) <= 12:
        return address
    return f"{address[:6]}…{address[-4:]}"


def format_chain(chain: str) -> str:
    return CHAIN_NAMES.get(chain, chain)


def status_label(status: PaymentIntentStatus | str) -> str:
    try:
        return STATUS_LABELS[PaymentIntentStatus(status)]
    except ValueError:
        return "Updating"


def mode_badge(state: CheckoutState) -> str | None:
    """Header badge text for ``state``, or None before an intent is loaded."""
    if state.type not in _BADGE_STATES:
        return None
    intent = getattr(state, "intent", None)
    if intent is None:
        return None
    if intent.mode == Mode.TESTNET:
        return "Test mode"
    if intent.mode == Mode.MAINNET:
        return "Live mode"
    return None
