"""
Configuration management for KryptoPay SDK.

Handles loading SDK-wide settings from environment variables and the
per-checkout session configuration handed to the checkout controller.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields
from typing import Any, Callable

from kryptopay.core.exceptions import ConfigurationError
from kryptopay.core.types import (
    AwaitingConfirmationEvent,
    PaymentMethod,
    PublicError,
    SuccessEvent,
)

DEFAULT_BASE_URL = "http://localhost:3000"


def _get_env_var(name: str, default: str | None = None, required: bool = False) -> str | None:
    """Get environment variable with optional default."""
    value = os.environ.get(name, default)
    if required and not value:
        raise ConfigurationError(f"Required environment variable {name} is not set")
    return value


def _get_env_float(name: str, default: float) -> float:
    """Get a numeric environment variable."""
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigurationError(f"Environment variable {name} must be a number, got {raw!r}") from None


@dataclass(frozen=True)
class Config:
    """SDK configuration."""

    base_url: str = DEFAULT_BASE_URL
    # Timeouts (seconds)
    request_timeout: float = 30.0
    # Status polling (seconds)
    poll_interval: float = 2.5
    poll_timeout: float = 600.0
    # Dwell time in pending_confirmations before "awaiting confirmation"
    awaiting_threshold: float = 60.0

    # Environment & Logging
    log_level: str = "INFO"
    env: str = "development"

    def __post_init__(self) -> None:
        if not self.base_url:
            raise ConfigurationError("base_url is required")
        object.__setattr__(self, "base_url", self.base_url.rstrip("/"))
        for name in ("request_timeout", "poll_interval", "poll_timeout", "awaiting_threshold"):
            value = getattr(self, name)
            if value <= 0:
                raise ConfigurationError(f"{name} must be positive, got {value}")

    @classmethod
    def from_env(cls, **overrides: Any) -> Config:
        """Load configuration from environment variables."""
        base_url = overrides.get("base_url") or _get_env_var(
            "KRYPTOPAY_BASE_URL", default=DEFAULT_BASE_URL
        )
        log_level = overrides.get("log_level") or _get_env_var(
            "KRYPTOPAY_LOG_LEVEL", default="INFO"
        )
        env = overrides.get("env") or _get_env_var("KRYPTOPAY_ENV", default="development")

        return cls(
            base_url=base_url,  # type: ignore
            request_timeout=overrides.get(
                "request_timeout", _get_env_float("KRYPTOPAY_REQUEST_TIMEOUT", cls.request_timeout)
            ),
            poll_interval=overrides.get(
                "poll_interval", _get_env_float("KRYPTOPAY_POLL_INTERVAL", cls.poll_interval)
            ),
            poll_timeout=overrides.get(
                "poll_timeout", _get_env_float("KRYPTOPAY_POLL_TIMEOUT", cls.poll_timeout)
            ),
            awaiting_threshold=overrides.get(
                "awaiting_threshold",
                _get_env_float("KRYPTOPAY_AWAITING_THRESHOLD", cls.awaiting_threshold),
            ),
            log_level=log_level,  # type: ignore
            env=env,  # type: ignore
        )

    def with_updates(self, **updates: Any) -> Config:
        """Create a new Config with updated values."""
        current = {f.name: getattr(self, f.name) for f in fields(self)}
        current.update(updates)
        return Config(**current)


@dataclass(frozen=True)
class CheckoutConfig:
    """
    Per-session checkout configuration.

    One instance per client secret. The default method is resolved once
    here: a disabled method is never the default, and at least one method
    must be enabled.
    """

    client_secret: str
    default_method: PaymentMethod | str = PaymentMethod.WALLET
    allow_wallet: bool = True
    allow_manual: bool = True

    on_close: Callable[[], None] | None = None
    on_success: Callable[[SuccessEvent], None] | None = None
    on_awaiting_confirmation: Callable[[AwaitingConfirmationEvent], None] | None = None
    on_error: Callable[[PublicError], None] | None = None

    def __post_init__(self) -> None:
        if not self.client_secret:
            raise ConfigurationError("client_secret is required")
        if not self.allow_wallet and not self.allow_manual:
            raise ConfigurationError("At least one of allow_wallet or allow_manual must be enabled")

        method = self.default_method
        if isinstance(method, str) and not isinstance(method, PaymentMethod):
            try:
                method = PaymentMethod.from_string(method)
            except ValueError as e:
                raise ConfigurationError(str(e)) from None

        if not self.allow_wallet:
            method = PaymentMethod.MANUAL
        if not self.allow_manual:
            method = PaymentMethod.WALLET
        object.__setattr__(self, "default_method", method)

    def is_enabled(self, method: PaymentMethod) -> bool:
        """Whether the given method may be offered in this session."""
        if method == PaymentMethod.WALLET:
            return self.allow_wallet
        return self.allow_manual

    def masked_client_secret(self) -> str:
        """Return client secret with most characters masked for safe logging."""
        if len(self.client_secret) <= 8:
            return "****"
        return self.client_secret[:4] + "..." + self.client_secret[-4:]
