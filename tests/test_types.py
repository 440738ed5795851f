"""Unit tests for types and checkout states."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from conftest import make_intent
from kryptopay.checkout.state import (
    AwaitingConfirmationState,
    CheckoutStateType,
    ChooseMethodState,
    ErrorState,
    IdleState,
    LoadingIntentState,
    WaitingState,
    WalletSendingState,
    state_intent,
)
from kryptopay.core.types import PaymentIntentStatus, PaymentMethod, PublicError


class TestPaymentIntent:
    def test_amount_in_whole_tokens(self) -> None:
        intent = make_intent(amount_units=1_500_000, decimals=6)

        assert intent.amount == Decimal("1.5")

    def test_destination_is_expected_wallet(self) -> None:
        intent = make_intent()

        assert intent.destination == intent.expected_wallet

    def test_is_terminal(self) -> None:
        assert make_intent(status=PaymentIntentStatus.SUCCEEDED).is_terminal()
        assert make_intent(status=PaymentIntentStatus.EXPIRED).is_terminal()
        assert not make_intent(status=PaymentIntentStatus.PENDING_CONFIRMATIONS).is_terminal()

    def test_is_expired(self) -> None:
        expires_at = datetime(2030, 1, 1, tzinfo=timezone.utc)
        intent = make_intent(expires_at=expires_at)

        assert intent.is_expired(now=expires_at + timedelta(seconds=1))
        assert not intent.is_expired(now=expires_at - timedelta(seconds=1))

    def test_with_status_copies(self) -> None:
        intent = make_intent()
        paid = intent.with_status(PaymentIntentStatus.SUCCEEDED)

        assert paid.status == PaymentIntentStatus.SUCCEEDED
        assert intent.status == PaymentIntentStatus.REQUIRES_PAYMENT
        assert paid.id == intent.id

    def test_to_dict(self) -> None:
        data = make_intent(expires_at=datetime(2030, 1, 1, tzinfo=timezone.utc)).to_dict()

        assert data["status"] == "requires_payment"
        assert data["mode"] == "mainnet"
        assert data["lane"] == "sdk"
        assert data["expires_at"] == "2030-01-01T00:00:00+00:00"
        assert data["metadata"] == {"order_id": "order_42"}


class TestPaymentMethod:
    def test_from_string(self) -> None:
        assert PaymentMethod.from_string(" WALLET ") == PaymentMethod.WALLET

    def test_from_string_unknown(self) -> None:
        with pytest.raises(ValueError, match="Unknown payment method"):
            PaymentMethod.from_string("card")


class TestCheckoutStates:
    def test_state_types(self) -> None:
        assert IdleState().type == CheckoutStateType.IDLE
        assert LoadingIntentState().type == CheckoutStateType.LOADING_INTENT
        assert AwaitingConfirmationState(make_intent()).type == CheckoutStateType.AWAITING_CONFIRMATION

    def test_terminal_types(self) -> None:
        terminal = {t for t in CheckoutStateType if t.is_terminal()}

        assert terminal == {CheckoutStateType.SUCCESS, CheckoutStateType.EXPIRED, CheckoutStateType.ERROR}

    def test_with_method_keeps_banner(self) -> None:
        state = ChooseMethodState(make_intent(), PaymentMethod.MANUAL, message="Wallet error")
        toggled = state.with_method(PaymentMethod.WALLET)

        assert toggled.selected_method == PaymentMethod.WALLET
        assert toggled.message == "Wallet error"
        assert state.selected_method == PaymentMethod.MANUAL

    def test_to_dict(self) -> None:
        assert IdleState().to_dict() == {"type": "idle"}

        choose = ChooseMethodState(make_intent(), PaymentMethod.WALLET).to_dict()
        assert choose["type"] == "choose_method"
        assert choose["selected_method"] == "wallet"
        assert choose["intent"]["id"] == "pi_123"

        waiting = WaitingState(make_intent(), pending_since=12.5).to_dict()
        assert waiting["pending_since"] == 12.5

        sending = WalletSendingState(make_intent(), from_address="0xabc").to_dict()
        assert sending["from_address"] == "0xabc"

    def test_error_state_to_dict(self) -> None:
        error = PublicError("intent_not_found", "Payment intent not found.", False)

        assert ErrorState(error).to_dict() == {
            "type": "error",
            "error": {"code": "intent_not_found", "message": "Payment intent not found.", "recoverable": False},
            "last_intent": None,
        }

    def test_state_intent(self) -> None:
        intent = make_intent()
        error = PublicError("server_error", "boom", True)

        assert state_intent(IdleState()) is None
        assert state_intent(WaitingState(intent)) is intent
        assert state_intent(ErrorState(error, last_intent=intent)) is intent
