"""
Payment intent resolution.

The checkout controller only needs one query: given a client secret, return
the current snapshot of the payment intent. ``HttpIntentResolver`` calls the
public resolve endpoint of the payments API:

    POST {base_url}/v1/payment_intents/resolve
    {"client_secret": "..."}

and decodes the body strictly: either every field is present and well typed,
or InvalidResponseError is raised.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any

import httpx

from kryptopay.core.config import DEFAULT_BASE_URL
from kryptopay.core.exceptions import IntentError, InvalidResponseError, NetworkError
from kryptopay.core.logging import get_logger
from kryptopay.core.types import Lane, Mode, PaymentIntent, PaymentIntentStatus

logger = get_logger("intents.resolver")

RESOLVE_PATH = "/v1/payment_intents/resolve"

# snake_case key -> camelCase alias accepted from the API
_FIELD_ALIASES: dict[str, str | None] = {
    "id": None,
    "status": None,
    "mode": None,
    "chain": None,
    "chain_id": "chainId",
    "confirmations_required": "confirmationsRequired",
    "amount_units": "amountUnits",
    "decimals": None,
    "token_symbol": "tokenSymbol",
    "token_address": "tokenAddress",
    "expected_wallet": "expectedWallet",
    "expires_at": "expiresAt",
    "lane": None,
    "metadata": None,
}

# HTTP status -> (code, message, recoverable)
_STATUS_ERRORS: dict[int, tuple[str, str, bool]] = {
    400: ("invalid_body", "Invalid request body for resolve endpoint.", False),
    404: ("intent_not_found", "Payment intent not found.", False),
    410: ("intent_expired", "Payment intent has expired.", False),
    429: ("rate_limited", "Too many requests. Please try again shortly.", True),
}


class IntentResolver(ABC):
    """
    Abstract source of payment intent snapshots.

    Implementations must be idempotent and free of side effects: the
    controller calls ``resolve`` once on open and then on every poll.
    """

    @abstractmethod
    async def resolve(self, client_secret: str) -> PaymentIntent:
        """
        Fetch the current snapshot of the intent behind ``client_secret``.

        Raises:
            IntentError: network_error, invalid_body, intent_not_found,
                intent_expired, rate_limited, server_error or invalid_response
        """
        ...

    async def close(self) -> None:
        """Release any resources held by the resolver."""
        return None


class HttpIntentResolver(IntentResolver):
    """
    Resolver backed by the payments API over HTTP.

    Example:
        >>> resolver = HttpIntentResolver(base_url="https://api.kryptopay.xyz")
        >>> intent = await resolver.resolve("cs_test_123")
        >>> intent.status
        <PaymentIntentStatus.REQUIRES_PAYMENT: 'requires_payment'>
    """

    def __init__(
        self,
        base_url: str | None = None,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
    ) -> None:
        """
        Args:
            base_url: API base URL (default http://localhost:3000)
            http_client: Shared httpx client (for connection pooling and tests)
            timeout: Request timeout in seconds for an owned client
        """
        self._base_url = (base_url or DEFAULT_BASE_URL).rstrip("/")
        self._timeout = timeout
        self._http_client = http_client
        self._owns_http_client = False

    @property
    def base_url(self) -> str:
        return self._base_url

    async def _get_client(self) -> httpx.AsyncClient:
        """Lazy-init HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=self._timeout)
            self._owns_http_client = True
        return self._http_client

    async def close(self) -> None:
        """Close owned HTTP client."""
        if self._owns_http_client and self._http_client:
            await self._http_client.aclose()
            self._http_client = None
            self._owns_http_client = False

    async def resolve(self, client_secret: str) -> PaymentIntent:
        client = await self._get_client()
        url = f"{self._base_url}{RESOLVE_PATH}"
        logger.debug(f"POST {url}")

        try:
            response = await client.post(url, json={"client_secret": client_secret})
        except httpx.RequestError as e:
            logger.warning(f"Resolve request failed: {e}")
            raise NetworkError(
                "Network error while resolving payment intent.",
                url=url,
                details={"cause": str(e)},
            ) from e

        status_code = response.status_code
        payload = _safe_json(response)

        if status_code in _STATUS_ERRORS:
            code, message, recoverable = _STATUS_ERRORS[status_code]
            logger.warning(f"Resolve endpoint returned HTTP {status_code} ({code})")
            raise IntentError(
                message,
                code=code,
                recoverable=recoverable,
                status_code=status_code,
                details={"body": payload},
            )

        if not 200 <= status_code < 300:
            logger.warning(f"Resolve endpoint returned HTTP {status_code}")
            raise IntentError(
                f"Server error while resolving payment intent (HTTP {status_code}).",
                code="server_error",
                recoverable=status_code >= 500,
                status_code=status_code,
                details={"body": payload},
            )

        return decode_intent(payload)


def _safe_json(response: httpx.Response) -> Any:
    """Parse JSON safely (error responses may be empty or not JSON)."""
    try:
        return response.json()
    except ValueError:
        return None


def _invalid(field: str, reason: str, payload: Any) -> InvalidResponseError:
    return InvalidResponseError(
        f"Resolve endpoint response {reason}: {field}",
        field=field,
        details={"body": payload},
    )


def _as_str(field: str, value: Any, payload: Any) -> str:
    if not isinstance(value, str):
        raise _invalid(field, "has a non-string field", payload)
    return value


def _as_int(field: str, value: Any, payload: Any, minimum: int = 0) -> int:
    if isinstance(value, bool):
        raise _invalid(field, "has a non-integer field", payload)
    if isinstance(value, int):
        result = value
    elif isinstance(value, float) and value.is_integer():
        result = int(value)
    elif isinstance(value, str):
        try:
            result = int(value.strip(), 0) if value.strip().lower().startswith("0x") else int(value)
        except ValueError:
            raise _invalid(field, "has a non-integer field", payload) from None
    else:
        raise _invalid(field, "has a non-integer field", payload)
    if result < minimum:
        raise _invalid(field, "has an out-of-range field", payload)
    return result


def _as_datetime(field: str, value: Any, payload: Any) -> datetime:
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            raise _invalid(field, "has an invalid timestamp", payload) from None
    else:
        raise _invalid(field, "has an invalid timestamp", payload)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def decode_intent(payload: Any) -> PaymentIntent:
    """
    Decode a resolve response body into a PaymentIntent.

    Accepts snake_case keys and their camelCase aliases. Every field is
    mandatory.

    Raises:
        InvalidResponseError: the body is not an object, or a field is
            missing or malformed
    """
    if not isinstance(payload, Mapping):
        raise InvalidResponseError(
            "Resolve endpoint response is not a JSON object",
            details={"body": payload},
        )

    raw: dict[str, Any] = {}
    for name, alias in _FIELD_ALIASES.items():
        value = payload.get(name)
        if value is None and alias is not None:
            value = payload.get(alias)
        if value is None:
            raise _invalid(name, "missing field", payload)
        raw[name] = value

    try:
        status = PaymentIntentStatus(raw["status"])
    except ValueError:
        raise _invalid("status", "has an unknown value for field", payload) from None
    try:
        mode = Mode(raw["mode"])
    except ValueError:
        raise _invalid("mode", "has an unknown value for field", payload) from None
    try:
        lane = Lane(raw["lane"])
    except ValueError:
        raise _invalid("lane", "has an unknown value for field", payload) from None

    metadata = raw["metadata"]
    if not isinstance(metadata, Mapping):
        raise _invalid("metadata", "has a non-object field", payload)

    return PaymentIntent(
        id=_as_str("id", raw["id"], payload),
        status=status,
        mode=mode,
        chain=_as_str("chain", raw["chain"], payload),
        chain_id=_as_int("chain_id", raw["chain_id"], payload, minimum=1),
        confirmations_required=_as_int(
            "confirmations_required", raw["confirmations_required"], payload
        ),
        amount_units=_as_int("amount_units", raw["amount_units"], payload),
        decimals=_as_int("decimals", raw["decimals"], payload),
        token_symbol=_as_str("token_symbol", raw["token_symbol"], payload),
        token_address=_as_str("token_address", raw["token_address"], payload),
        expected_wallet=_as_str("expected_wallet", raw["expected_wallet"], payload),
        expires_at=_as_datetime("expires_at", raw["expires_at"], payload),
        lane=lane,
        metadata=dict(metadata),
    )
