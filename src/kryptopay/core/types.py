"""
Type definitions for KryptoPay SDK.

This module contains the enums and data classes shared by the resolver,
the wallet flow and the checkout controller.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any


class PaymentIntentStatus(str, Enum):
    """Status of a payment intent, as stored by the payments API."""

    REQUIRES_PAYMENT = "requires_payment"  # Nothing seen on-chain yet
    PENDING_CONFIRMATIONS = "pending_confirmations"  # Transfer seen, confirming
    SUCCEEDED = "succeeded"
    EXPIRED = "expired"

    def is_terminal(self) -> bool:
        return self in (PaymentIntentStatus.SUCCEEDED, PaymentIntentStatus.EXPIRED)


class Mode(str, Enum):
    """Whether the intent settles on a test network or on mainnet."""

    TESTNET = "testnet"
    MAINNET = "mainnet"


class Lane(str, Enum):
    """How the payment is being fulfilled."""

    SDK = "sdk"
    MANUAL = "manual"


class PaymentMethod(str, Enum):
    """Payment methods offered on the choose-method screen."""

    WALLET = "wallet"  # Injected wallet sends the token transfer
    MANUAL = "manual"  # Shopper sends the transfer themselves

    @classmethod
    def from_string(cls, value: str) -> PaymentMethod:
        value_lower = value.strip().lower()
        for member in cls:
            if member.value == value_lower:
                return member
        raise ValueError(f"Unknown payment method: {value}. Supported: {[m.value for m in cls]}")


@dataclass(frozen=True)
class PaymentIntent:
    """
    Snapshot of a payment intent returned by the resolve endpoint.

    Read-only to the SDK. Instances are only built by
    ``kryptopay.intents.resolver.decode_intent`` (or directly in tests), so
    every field is always populated.
    """

    id: str
    status: PaymentIntentStatus
    mode: Mode
    chain: str
    chain_id: int
    confirmations_required: int
    amount_units: int
    decimals: int
    token_symbol: str
    token_address: str
    expected_wallet: str
    expires_at: datetime
    lane: Lane
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def amount(self) -> Decimal:
        """Amount in whole tokens (amount_units / 10**decimals)."""
        return Decimal(self.amount_units).scaleb(-self.decimals)

    @property
    def destination(self) -> str:
        """Alias for the address the shopper must pay."""
        return self.expected_wallet

    def is_terminal(self) -> bool:
        return self.status.is_terminal()

    def is_expired(self, now: datetime | None = None) -> bool:
        """Check the expiry timestamp (independent of the API status)."""
        now = now or datetime.now(timezone.utc)
        return now >= self.expires_at

    def with_status(self, status: PaymentIntentStatus) -> PaymentIntent:
        """Copy of this snapshot with another status (handy for fakes)."""
        return replace(self, status=status)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "status": self.status.value,
            "mode": self.mode.value,
            "chain": self.chain,
            "chain_id": self.chain_id,
            "confirmations_required": self.confirmations_required,
            "amount_units": self.amount_units,
            "decimals": self.decimals,
            "token_symbol": self.token_symbol,
            "token_address": self.token_address,
            "expected_wallet": self.expected_wallet,
            "expires_at": self.expires_at.isoformat(),
            "lane": self.lane.value,
            "metadata": dict(self.metadata),
        }


@dataclass(frozen=True)
class PublicError:
    """Normalized error shape delivered to on_error and renderers."""

    code: str
    message: str
    recoverable: bool

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message, "recoverable": self.recoverable}


@dataclass(frozen=True)
class SuccessEvent:
    """Payload of on_success."""

    payment_intent_id: str
    tx_hash: str
    chain: str
    mode: Mode


@dataclass(frozen=True)
class AwaitingConfirmationEvent:
    """Payload of on_awaiting_confirmation."""

    payment_intent_id: str
