"""
Checkout states.

A closed set of mutually exclusive states. Each carries only what a
renderer needs at that moment; React, vanilla DOM or terminal renderers all
render from these.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, ClassVar, Union

from kryptopay.core.types import PaymentIntent, PaymentMethod, PublicError


class CheckoutStateType(str, Enum):
    """Discriminator of the checkout state variants."""

    IDLE = "idle"
    LOADING_INTENT = "loading_intent"
    CHOOSE_METHOD = "choose_method"
    MANUAL_INSTRUCTIONS = "manual_instructions"
    WALLET_CONNECTING = "wallet_connecting"
    WALLET_SWITCHING_CHAIN = "wallet_switching_chain"
    WALLET_SENDING = "wallet_sending"
    WALLET_SUBMITTED = "wallet_submitted"
    WAITING = "waiting"
    AWAITING_CONFIRMATION = "awaiting_confirmation"
    SUCCESS = "success"
    EXPIRED = "expired"
    ERROR = "error"

    def is_terminal(self) -> bool:
        return self in (CheckoutStateType.SUCCESS, CheckoutStateType.EXPIRED, CheckoutStateType.ERROR)


@dataclass(frozen=True)
class IdleState:
    type: ClassVar[CheckoutStateType] = CheckoutStateType.IDLE

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type.value}


@dataclass(frozen=True)
class LoadingIntentState:
    type: ClassVar[CheckoutStateType] = CheckoutStateType.LOADING_INTENT

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type.value}


@dataclass(frozen=True)
class ChooseMethodState:
    """The shopper picks wallet or manual; ``message`` is an optional banner."""

    type: ClassVar[CheckoutStateType] = CheckoutStateType.CHOOSE_METHOD

    intent: PaymentIntent
    selected_method: PaymentMethod
    message: str | None = None

    def with_method(self, method: PaymentMethod) -> ChooseMethodState:
        return replace(self, selected_method=method)

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type.value,
            "intent": self.intent.to_dict(),
            "selected_method": self.selected_method.value,
            "message": self.message,
        }


@dataclass(frozen=True)
class _IntentState:
    intent: PaymentIntent

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type.value, "intent": self.intent.to_dict()}  # type: ignore[attr-defined]


@dataclass(frozen=True)
class ManualInstructionsState(_IntentState):
    type: ClassVar[CheckoutStateType] = CheckoutStateType.MANUAL_INSTRUCTIONS


@dataclass(frozen=True)
class WalletConnectingState(_IntentState):
    type: ClassVar[CheckoutStateType] = CheckoutStateType.WALLET_CONNECTING


@dataclass(frozen=True)
class WalletSwitchingChainState(_IntentState):
    type: ClassVar[CheckoutStateType] = CheckoutStateType.WALLET_SWITCHING_CHAIN


@dataclass(frozen=True)
class WalletSendingState:
    type: ClassVar[CheckoutStateType] = CheckoutStateType.WALLET_SENDING

    intent: PaymentIntent
    from_address: str

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type.value, "intent": self.intent.to_dict(), "from_address": self.from_address}


@dataclass(frozen=True)
class WalletSubmittedState:
    type: ClassVar[CheckoutStateType] = CheckoutStateType.WALLET_SUBMITTED

    intent: PaymentIntent
    tx_hash: str

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type.value, "intent": self.intent.to_dict(), "tx_hash": self.tx_hash}


@dataclass(frozen=True)
class WaitingState:
    """
    Watching the intent.

    ``pending_since`` is when pending_confirmations was first observed in the
    current dwell (seconds, controller clock), None while unpaid.
    """

    type: ClassVar[CheckoutStateType] = CheckoutStateType.WAITING

    intent: PaymentIntent
    pending_since: float | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type.value,
            "intent": self.intent.to_dict(),
            "pending_since": self.pending_since,
        }


@dataclass(frozen=True)
class AwaitingConfirmationState(_IntentState):
    type: ClassVar[CheckoutStateType] = CheckoutStateType.AWAITING_CONFIRMATION


@dataclass(frozen=True)
class SuccessState(_IntentState):
    type: ClassVar[CheckoutStateType] = CheckoutStateType.SUCCESS


@dataclass(frozen=True)
class ExpiredState(_IntentState):
    type: ClassVar[CheckoutStateType] = CheckoutStateType.EXPIRED


@dataclass(frozen=True)
class ErrorState:
    type: ClassVar[CheckoutStateType] = CheckoutStateType.ERROR

    error: PublicError
    last_intent: PaymentIntent | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type.value,
            "error": self.error.to_dict(),
            "last_intent": self.last_intent.to_dict() if self.last_intent else None,
        }


CheckoutState = Union[
    IdleState,
    LoadingIntentState,
    ChooseMethodState,
    ManualInstructionsState,
    WalletConnectingState,
    WalletSwitchingChainState,
    WalletSendingState,
    WalletSubmittedState,
    WaitingState,
    AwaitingConfirmationState,
    SuccessState,
    ExpiredState,
    ErrorState,
]


def state_intent(state: CheckoutState) -> PaymentIntent | None:
    """The intent a state carries, if any (ErrorState: its last known intent)."""
    if isinstance(state, ErrorState):
        return state.last_intent
    return getattr(state, "intent", None)
