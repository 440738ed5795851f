"""
Checkout orchestration.

Example:
    >>> from kryptopay.checkout import CheckoutController
    >>> from kryptopay.core.config import CheckoutConfig
    >>>
    >>> controller = CheckoutController(CheckoutConfig("cs_test_123"), resolver, wallet)
    >>> controller.subscribe(lambda state: print(state.type.value))
    >>> await controller.open()
"""

from kryptopay.checkout.controller import CheckoutController
from kryptopay.checkout.errors import to_public_error
from kryptopay.checkout.state import (
    AwaitingConfirmationState,
    CheckoutState,
    CheckoutStateType,
    ChooseMethodState,
    ErrorState,
    ExpiredState,
    IdleState,
    LoadingIntentState,
    ManualInstructionsState,
    SuccessState,
    WaitingState,
    WalletConnectingState,
    WalletSendingState,
    WalletSubmittedState,
    WalletSwitchingChainState,
    state_intent,
)
from kryptopay.checkout.subscribers import SubscriberRegistry

__all__ = [
    "CheckoutController",
    "SubscriberRegistry",
    "to_public_error",
    # States
    "CheckoutState",
    "CheckoutStateType",
    "IdleState",
    "LoadingIntentState",
    "ChooseMethodState",
    "ManualInstructionsState",
    "WalletConnectingState",
    "WalletSwitchingChainState",
    "WalletSendingState",
    "WalletSubmittedState",
    "WaitingState",
    "AwaitingConfirmationState",
    "SuccessState",
    "ExpiredState",
    "ErrorState",
    "state_intent",
]
