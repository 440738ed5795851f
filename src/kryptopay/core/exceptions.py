"""
Exception hierarchy for KryptoPay SDK.

All SDK-specific exceptions inherit from KryptoPayError for easy catching.
Every KryptoPayError carries a stable string ``code`` and a ``recoverable``
flag so it can be handed to a renderer without further translation.
"""

from __future__ import annotations

from typing import Any


class KryptoPayError(Exception):
    """
    Base exception for all KryptoPay SDK errors.

    Catch this to handle any SDK-related exception.

    Example:
        >>> try:
        ...     intent = await resolver.resolve("cs_test_123")
        ... except KryptoPayError as e:
        ...     print(f"{e.code}: {e.message} (recoverable={e.recoverable})")
    """

    default_code = "kryptopay_error"

    def __init__(
        self,
        message: str,
        code: str | None = None,
        recoverable: bool = False,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.recoverable = recoverable
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ConfigurationError(KryptoPayError):
    """
    Configuration is missing or invalid.

    Raised when:
    - The client secret is empty
    - Both payment methods are disabled
    - A configured duration or environment value is invalid
    """

    default_code = "configuration_error"


class ValidationError(KryptoPayError):
    """
    Input validation error.

    Raised when:
    - An address is not a 20-byte hex address
    - A token amount does not fit a uint256
    """

    default_code = "validation_error"


class IntentError(KryptoPayError):
    """
    Resolving a payment intent failed.

    Codes:
    - invalid_body, intent_not_found, intent_expired (non-recoverable)
    - rate_limited (recoverable)
    - server_error (recoverable iff the HTTP status is >= 500)
    """

    default_code = "server_error"

    def __init__(
        self,
        message: str,
        code: str | None = None,
        recoverable: bool = False,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, code=code, recoverable=recoverable, details=details)
        self.status_code = status_code

    def is_rate_limited(self) -> bool:
        """Check if this is a rate limit error."""
        return self.status_code == 429

    def is_server_error(self) -> bool:
        """Check if this is a server-side error."""
        return self.status_code is not None and 500 <= self.status_code < 600


class NetworkError(IntentError):
    """
    The resolve request never produced an HTTP response.

    Raised when:
    - Connection is refused or reset
    - The request times out
    """

    default_code = "network_error"

    def __init__(
        self,
        message: str,
        url: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, recoverable=True, details=details)
        self.url = url


class InvalidResponseError(IntentError):
    """
    The resolve endpoint answered 2xx with a body that is not a complete intent.

    A partially populated intent never escapes the decoder: any missing or
    malformed field raises this instead.
    """

    default_code = "invalid_response"

    def __init__(
        self,
        message: str,
        field: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, recoverable=False, details=details)
        self.field = field


class WalletError(KryptoPayError):
    """
    The wallet flow could not proceed.

    Codes:
    - wallet_not_found: no injected wallet handle
    - wallet_no_account: the wallet returned no account
    - wallet_wrong_network: the wallet is still on another chain after a switch
    """

    default_code = "wallet_error"

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, code=code, recoverable=True, details=details)


class WalletProviderError(Exception):
    """
    Error raised by a wallet provider request.

    Mirrors an EIP-1193 provider RPC error: ``code`` is numeric for standard
    wallet codes (4001, -32002, 4902, ...) and may be a string for providers
    that use named codes. It is intentionally not a KryptoPayError; the
    checkout error normalizer maps it by its raw code.
    """

    def __init__(self, code: int | str, message: str = "", data: Any = None) -> None:
        super().__init__(message or f"Wallet provider error {code}")
        self.code = code
        self.message = message
        self.data = data
