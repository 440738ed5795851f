"""
KryptoPay - Crypto checkout SDK for Python

Resolves a payment intent, lets the shopper pay with an injected wallet or
by manual transfer, and watches the intent until it settles.

Usage:
    >>> from kryptopay import KryptoPay
    >>>
    >>> async with KryptoPay(base_url="https://api.kryptopay.xyz") as kp:
    ...     controller = kp.checkout(
    ...         "cs_test_123",
    ...         on_success=lambda event: print("paid", event.tx_hash),
    ...     )
    ...     controller.subscribe(lambda state: print(state.type.value))
    ...     await controller.open()
    ...     await controller.continue_()
"""

from kryptopay.checkout import (
    CheckoutController,
    CheckoutState,
    CheckoutStateType,
    to_public_error,
)
from kryptopay.client import KryptoPay
from kryptopay.core.config import CheckoutConfig, Config
from kryptopay.core.exceptions import (
    ConfigurationError,
    IntentError,
    InvalidResponseError,
    KryptoPayError,
    NetworkError,
    ValidationError,
    WalletError,
    WalletProviderError,
)
from kryptopay.core.types import (
    AwaitingConfirmationEvent,
    Lane,
    Mode,
    PaymentIntent,
    PaymentIntentStatus,
    PaymentMethod,
    PublicError,
    SuccessEvent,
)
from kryptopay.intents.polling import WatchOutcome, WatchResult, wait_for_final_status
from kryptopay.intents.resolver import HttpIntentResolver, IntentResolver, decode_intent
from kryptopay.wallet import Eip1193Provider, Eip1193Wallet, JsonRpcProvider, WalletAdapter

__version__ = "0.1.0"
__all__ = [
    # Main Client
    "KryptoPay",
    # Checkout
    "CheckoutController",
    "CheckoutState",
    "CheckoutStateType",
    "to_public_error",
    # Types
    "PaymentIntent",
    "PaymentIntentStatus",
    "PaymentMethod",
    "Mode",
    "Lane",
    "PublicError",
    "SuccessEvent",
    "AwaitingConfirmationEvent",
    # Config
    "Config",
    "CheckoutConfig",
    # Intents
    "IntentResolver",
    "HttpIntentResolver",
    "decode_intent",
    "WatchOutcome",
    "WatchResult",
    "wait_for_final_status",
    # Wallet
    "WalletAdapter",
    "Eip1193Provider",
    "Eip1193Wallet",
    "JsonRpcProvider",
    # Exceptions
    "KryptoPayError",
    "ConfigurationError",
    "ValidationError",
    "IntentError",
    "NetworkError",
    "InvalidResponseError",
    "WalletError",
    "WalletProviderError",
]
