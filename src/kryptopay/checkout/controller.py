"""
CheckoutController - the checkout state machine.

Framework-agnostic controller behind every checkout renderer. It owns:
- resolving the intent from the client secret
- the choose-method screen (wallet / manual)
- the wallet flow, with fallback to manual payment
- status polling and the "awaiting confirmation" escalation

Renderers subscribe to state and call the public methods in response to
user actions; nothing else mutates controller state.
"""

from __future__ import annotations

import time
from typing import Any, Callable

from kryptopay.checkout.errors import to_public_error
from kryptopay.checkout.state import (
    AwaitingConfirmationState,
    CheckoutState,
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
from kryptopay.checkout.subscribers import SubscriberRegistry, Unsubscribe
from kryptopay.core.config import CheckoutConfig
from kryptopay.core.exceptions import WalletError
from kryptopay.core.logging import get_logger
from kryptopay.core.types import (
    AwaitingConfirmationEvent,
    PaymentIntent,
    PaymentMethod,
    SuccessEvent,
)
from kryptopay.intents.polling import (
    DEFAULT_AWAITING_THRESHOLD,
    DEFAULT_POLL_INTERVAL,
    DEFAULT_POLL_TIMEOUT,
    CancellationToken,
    Clock,
    IntentWatcher,
    Sleep,
    WatchOutcome,
)
from kryptopay.intents.resolver import IntentResolver
from kryptopay.wallet.base import WalletAdapter

logger = get_logger("checkout.controller")


class CheckoutController:
    """
    State machine for one checkout session (one client secret).

    Lifecycle:
        idle -> loading_intent -> choose_method -> manual / wallet flow
        -> waiting -> (awaiting_confirmation) -> success / expired / error
        -> idle on close()

    A closed controller cannot be reopened; create a new one.

    Example:
        >>> controller = CheckoutController(CheckoutConfig("cs_test_123"), resolver)
        >>> unsubscribe = controller.subscribe(render)
        >>> await controller.open()
        >>> controller.select_method("manual")
        >>> await controller.continue_()
    """

    def __init__(
        self,
        config: CheckoutConfig,
        resolver: IntentResolver,
        wallet: WalletAdapter | None = None,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        poll_timeout: float = DEFAULT_POLL_TIMEOUT,
        awaiting_threshold: float = DEFAULT_AWAITING_THRESHOLD,
        clock: Clock | None = None,
        sleep: Sleep | None = None,
    ) -> None:
        """
        Args:
            config: Session configuration (client secret, methods, callbacks)
            resolver: Intent resolver used for open() and polling
            wallet: Injected wallet; None means no wallet is available
            poll_interval: Seconds between status polls
            poll_timeout: Total seconds a single watch may run
            awaiting_threshold: Seconds in pending_confirmations before
                switching to awaiting_confirmation
            clock: Time source in seconds (default time.time)
            sleep: Async sleep used between polls (default asyncio.sleep)
        """
        self._config = config
        self._resolver = resolver
        self._wallet = wallet
        self._clock = clock or time.time
        self._watcher = IntentWatcher(
            resolver,
            poll_interval=poll_interval,
            poll_timeout=poll_timeout,
            awaiting_threshold=awaiting_threshold,
            clock=self._clock,
            sleep=sleep,
        )

        self._state: CheckoutState = IdleState()
        self._subscribers: SubscriberRegistry[CheckoutState] = SubscriberRegistry()

        self._token = CancellationToken()
        self._started = False
        self._closed = False
        self._in_flight: str | None = None

        # Hash of the current wallet attempt, reported in on_success
        self._last_tx_hash: str | None = None

    @property
    def config(self) -> CheckoutConfig:
        return self._config

    @property
    def state(self) -> CheckoutState:
        return self._state

    @property
    def is_closed(self) -> bool:
        return self._closed

    @property
    def last_tx_hash(self) -> str | None:
        return self._last_tx_hash

    # ==================== Subscription ====================

    def subscribe(self, listener: Callable[[CheckoutState], None]) -> Unsubscribe:
        """
        Register a state listener.

        The current state is delivered immediately, then every later
        transition in publication order.

        Returns:
            Idempotent unsubscribe handle
        """
        unsubscribe = self._subscribers.add(listener)
        self._subscribers.deliver(listener, self._state)
        return unsubscribe

    def get_state(self) -> CheckoutState:
        return self._state

    def _set_state(self, next_state: CheckoutState) -> None:
        if self._closed and not isinstance(next_state, IdleState):
            logger.debug(f"Dropped {next_state.type.value} state after close")
            return

        previous = self._state
        self._state = next_state
        if previous.type == next_state.type:
            logger.debug(f"state: {next_state.type.value} (updated)")
        else:
            logger.info(f"state: {previous.type.value} -> {next_state.type.value}")
        self._subscribers.publish(next_state)

    # ==================== Guards ====================

    @property
    def _cancelled(self) -> bool:
        return self._token.cancelled

    def _begin(self, operation: str) -> bool:
        if self._in_flight is not None:
            logger.debug(f"{operation}() ignored: {self._in_flight}() already in flight")
            return False
        self._in_flight = operation
        return True

    def _end(self) -> None:
        self._in_flight = None

    def _fire(self, callback: Callable[..., Any] | None, *args: Any) -> None:
        if callback is None:
            return
        try:
            callback(*args)
        except Exception:
            logger.exception(f"Checkout callback {callback!r} raised")

    # ==================== Public operations ====================

    async def open(self) -> None:
        """Resolve the intent and enter choose_method (no-op once started)."""
        if self._closed:
            logger.warning("open() called on a closed checkout; create a new controller instead")
            return
        if self._started or not self._begin("open"):
            return

        self._started = True
        try:
            self._set_state(LoadingIntentState())
            try:
                intent = await self._resolver.resolve(self._config.client_secret)
            except Exception as e:
                if self._cancelled:
                    return
                error = to_public_error(e)
                logger.error(
                    f"Could not resolve intent for {self._config.masked_client_secret()}: "
                    f"{error.code} ({error.message})"
                )
                self._fire(self._config.on_error, error)
                self._set_state(ErrorState(error))
                return

            if self._cancelled:
                return
            self._set_state(ChooseMethodState(intent, self._initial_method()))
        finally:
            self._end()

    def select_method(self, method: PaymentMethod | str) -> None:
        """Switch the selected tab on the choose-method screen."""
        state = self._state
        if not isinstance(state, ChooseMethodState):
            return
        if not isinstance(method, PaymentMethod):
            method = PaymentMethod.from_string(method)
        if not self._config.is_enabled(method):
            logger.debug(f"select_method({method.value}) ignored: method disabled")
            return

        self._set_state(state.with_method(method))

    async def continue_(self) -> None:
        """Proceed from choose_method into the selected flow."""
        state = self._state
        if not isinstance(state, ChooseMethodState):
            return
        if not self._begin("continue"):
            return

        try:
            # New attempt: forget the previous wallet hash
            self._last_tx_hash = None

            if state.selected_method == PaymentMethod.MANUAL:
                await self._run_manual_flow(state.intent)
            else:
                await self._run_wallet_flow(state.intent)
        finally:
            self._end()

    async def keep_waiting(self) -> None:
        """From awaiting_confirmation, go back to watching with a fresh dwell."""
        state = self._state
        if not isinstance(state, AwaitingConfirmationState):
            return
        if not self._begin("keep_waiting"):
            return

        try:
            await self._watch(state.intent, pending_since=self._clock())
        finally:
            self._end()

    def close(self) -> None:
        """
        End the session: stop polling, call on_close, go back to idle.

        Idempotent. An in-flight wallet or resolver call still runs to
        completion, but nothing it produces is published.
        """
        if self._closed:
            return

        self._closed = True
        self._token.cancel()
        self._fire(self._config.on_close)
        self._set_state(IdleState())

    # ==================== Flows ====================

    def _initial_method(self) -> PaymentMethod:
        preferred = self._config.default_method
        if isinstance(preferred, PaymentMethod) and self._config.is_enabled(preferred):
            return preferred
        if self._config.allow_wallet:
            return PaymentMethod.WALLET
        return PaymentMethod.MANUAL

    async def _run_manual_flow(self, intent: PaymentIntent) -> None:
        self._set_state(ManualInstructionsState(intent))
        await self._watch(intent)

    async def _run_wallet_flow(self, intent: PaymentIntent) -> None:
        """
        Wallet flow (injected EOA wallets):
        1) connect
        2) make sure the wallet is on intent.chain_id (switch, never add)
        3) send the ERC-20 transfer to expected_wallet
        4) watch until succeeded/expired

        Any failure in 1-3 falls back to manual payment when it is allowed.
        """
        try:
            tx_hash = await self._submit_wallet_payment(intent)
        except Exception as e:
            if self._cancelled:
                logger.debug(f"Wallet flow failed after close: {e}")
                return
            error = to_public_error(e)
        else:
            if tx_hash is not None:
                await self._watch(intent)
            return

        if self._config.allow_manual:
            logger.warning(f"Wallet payment failed ({error.code}), falling back to manual payment")
            self._set_state(ChooseMethodState(intent, PaymentMethod.MANUAL, message=error.message))
            await self._run_manual_flow(intent)
            return

        logger.error(f"Wallet payment failed: {error.code} ({error.message})")
        self._fire(self._config.on_error, error)
        self._set_state(ErrorState(error, last_intent=intent))

    async def _submit_wallet_payment(self, intent: PaymentIntent) -> str | None:
        """Run wallet steps 1-3; returns the tx hash, or None if closed meanwhile."""
        wallet = self._wallet
        if wallet is None:
            raise WalletError(
                "No injected wallet found. Install a wallet or use manual payment.",
                code="wallet_not_found",
            )

        self._set_state(WalletConnectingState(intent))

        accounts = await wallet.request_accounts()
        if self._cancelled:
            return None
        from_address = accounts[0] if accounts else None
        if not from_address:
            raise WalletError("No wallet account available.", code="wallet_no_account")

        chain_id = await wallet.get_chain_id()
        if self._cancelled:
            return None

        if chain_id != intent.chain_id:
            self._set_state(WalletSwitchingChainState(intent))

            await wallet.request_chain_switch(intent.chain_id)
            if self._cancelled:
                return None

            chain_id = await wallet.get_chain_id()
            if self._cancelled:
                return None
            if chain_id != intent.chain_id:
                raise WalletError(
                    "Wallet did not switch to the correct network.",
                    code="wallet_wrong_network",
                    details={"expected_chain_id": intent.chain_id, "chain_id": chain_id},
                )

        self._set_state(WalletSendingState(intent, from_address))

        tx_hash = await wallet.send_token_transfer(
            from_address,
            intent.token_address,
            intent.expected_wallet,
            intent.amount_units,
        )
        if self._cancelled:
            return None

        self._last_tx_hash = tx_hash
        logger.info(f"Submitted transfer {tx_hash} for {intent.id}")
        self._set_state(WalletSubmittedState(intent, tx_hash))
        return tx_hash

    # ==================== Polling ====================

    def _on_waiting(self, intent: PaymentIntent, pending_since: float | None) -> None:
        if self._cancelled:
            return
        self._set_state(WaitingState(intent, pending_since))

    async def _watch(self, intent: PaymentIntent, pending_since: float | None = None) -> None:
        if self._cancelled:
            return

        try:
            result = await self._watcher.watch(
                self._config.client_secret,
                intent,
                token=self._token,
                on_waiting=self._on_waiting,
                pending_since=pending_since,
            )
        except Exception as e:
            if self._cancelled:
                return
            error = to_public_error(e)
            logger.error(f"Polling failed: {error.code} ({error.message})")
            self._fire(self._config.on_error, error)
            self._set_state(ErrorState(error, last_intent=state_intent(self._state) or intent))
            return

        final = result.intent

        if result.outcome == WatchOutcome.CANCELLED:
            return

        if result.outcome == WatchOutcome.SUCCEEDED:
            self._fire(
                self._config.on_success,
                SuccessEvent(
                    payment_intent_id=final.id,
                    tx_hash=self._last_tx_hash or "",
                    chain=final.chain,
                    mode=final.mode,
                ),
            )
            self._set_state(SuccessState(final))
            return

        if result.outcome == WatchOutcome.EXPIRED:
            self._set_state(ExpiredState(final))
            return

        if result.outcome == WatchOutcome.AWAITING_CONFIRMATION:
            self._fire(
                self._config.on_awaiting_confirmation,
                AwaitingConfirmationEvent(payment_intent_id=final.id),
            )
            self._set_state(AwaitingConfirmationState(final))
            return

        # Timed out while unpaid: the last waiting state stays up
        logger.info(f"Stopped polling {final.id} after timeout; still {final.status.value}")
