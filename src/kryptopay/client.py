"""KryptoPay - Main SDK entry point."""

from __future__ import annotations

from typing import Any, Callable

import httpx

from kryptopay.checkout.controller import CheckoutController
from kryptopay.core.config import CheckoutConfig, Config
from kryptopay.core.logging import configure_logging, get_logger
from kryptopay.core.types import PaymentIntent
from kryptopay.intents.polling import WatchResult, wait_for_final_status
from kryptopay.intents.resolver import HttpIntentResolver, IntentResolver
from kryptopay.wallet.base import WalletAdapter


class KryptoPay:
    """
    Main client for KryptoPay SDK.

    Owns the SDK configuration, logging setup and one intent resolver shared
    by every checkout it creates.

    Example:
        >>> async with KryptoPay(base_url="https://api.kryptopay.xyz") as kp:
        ...     controller = kp.checkout("cs_test_123", wallet=wallet)
        ...     controller.subscribe(render)
        ...     await controller.open()
    """

    def __init__(
        self,
        base_url: str | None = None,
        config: Config | None = None,
        http_client: httpx.AsyncClient | None = None,
        resolver: IntentResolver | None = None,
        log_level: int | str | None = None,
        **overrides: Any,
    ) -> None:
        """
        Initialize KryptoPay client.

        Args:
            base_url: Payments API base URL (or KRYPTOPAY_BASE_URL env)
            config: Full configuration; skips environment loading
            http_client: Shared httpx client for the resolver
            resolver: Custom intent resolver (replaces the HTTP one)
            log_level: Logging level (or KRYPTOPAY_LOG_LEVEL env, default INFO)
            **overrides: Other Config fields (poll_interval, poll_timeout, ...)
        """
        if base_url:
            overrides["base_url"] = base_url
        if config is None:
            if log_level is not None and not isinstance(log_level, int):
                overrides["log_level"] = log_level
            config = Config.from_env(**overrides)
        elif overrides:
            config = config.with_updates(**overrides)
        self._config = config

        # Configure logging immediately
        configure_logging(level=log_level if log_level is not None else config.log_level)
        self._logger = get_logger("client")
        self._logger.info(f"Initializing KryptoPay SDK (API: {config.base_url}, env: {config.env})")

        self._resolver = resolver or HttpIntentResolver(
            base_url=config.base_url,
            http_client=http_client,
            timeout=config.request_timeout,
        )

    @property
    def config(self) -> Config:
        """Get SDK configuration."""
        return self._config

    @property
    def resolver(self) -> IntentResolver:
        """Get the intent resolver used by checkouts."""
        return self._resolver

    async def __aenter__(self) -> KryptoPay:
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit, closes the resolver's HTTP client."""
        await self.close()

    async def close(self) -> None:
        await self._resolver.close()

    async def resolve_intent(self, client_secret: str) -> PaymentIntent:
        """Fetch the current snapshot of the intent behind ``client_secret``."""
        return await self._resolver.resolve(client_secret)

    async def wait_for_final_status(
        self,
        client_secret: str,
        interval: float | None = None,
        timeout: float | None = None,
        on_update: Callable[[PaymentIntent], None] | None = None,
    ) -> WatchResult:
        """
        Poll an intent until it succeeds, expires or ``timeout`` elapses.

        Args:
            client_secret: Secret of the intent to watch
            interval: Seconds between polls (default config.poll_interval)
            timeout: Total seconds (default config.poll_timeout)
            on_update: Called with every observed snapshot

        Returns:
            WatchResult with the last intent and ``timed_out``
        """
        return await wait_for_final_status(
            self._resolver,
            client_secret,
            interval=interval if interval is not None else self._config.poll_interval,
            timeout=timeout if timeout is not None else self._config.poll_timeout,
            on_update=on_update,
        )

    def checkout(
        self,
        client_secret: str,
        wallet: WalletAdapter | None = None,
        **options: Any,
    ) -> CheckoutController:
        """
        Create a checkout controller for one session.

        Args:
            client_secret: Secret of the intent to pay
            wallet: Injected wallet, or None when no wallet is available
            **options: CheckoutConfig fields (default_method, allow_wallet,
                allow_manual, on_close, on_success, on_awaiting_confirmation,
                on_error)

        Returns:
            A fresh CheckoutController in the idle state
        """
        session = CheckoutConfig(client_secret=client_secret, **options)
        self._logger.debug(f"Creating checkout for {session.masked_client_secret()}")
        return CheckoutController(
            session,
            self._resolver,
            wallet=wallet,
            poll_interval=self._config.poll_interval,
            poll_timeout=self._config.poll_timeout,
            awaiting_threshold=self._config.awaiting_threshold,
        )
