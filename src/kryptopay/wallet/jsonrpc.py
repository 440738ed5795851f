"""
EIP-1193 provider over Ethereum JSON-RPC.

Forwards wallet requests to a node endpoint with httpx. Useful against
development nodes with unlocked accounts (anvil, hardhat) and for headless
checkouts; browser wallets implement Eip1193Provider themselves.
"""

from __future__ import annotations

import itertools
from typing import Any

import httpx

from kryptopay.core.exceptions import WalletProviderError
from kryptopay.core.logging import get_logger
from kryptopay.wallet.base import Eip1193Provider

logger = get_logger("wallet.jsonrpc")


class JsonRpcProvider(Eip1193Provider):
    """
    JSON-RPC provider.

    RPC ``error`` objects are raised as WalletProviderError with the node's
    numeric code; transport failures use the string code ``transport_error``.
    """

    RPC_TIMEOUT = 10.0  # seconds per JSON-RPC call

    def __init__(
        self,
        rpc_url: str,
        http_client: httpx.AsyncClient | None = None,
        timeout: float | None = None,
    ) -> None:
        """
        Args:
            rpc_url: Node endpoint URL
            http_client: Shared httpx client (for connection pooling and tests)
            timeout: Per-call timeout for an owned client
        """
        if not rpc_url:
            raise ValueError("rpc_url is required")
        self._rpc_url = rpc_url
        self._timeout = timeout or self.RPC_TIMEOUT
        self._http_client = http_client
        self._owns_client = False
        self._ids = itertools.count(1)

    async def _get_client(self) -> httpx.AsyncClient:
        """Lazy-init HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=self._timeout)
            self._owns_client = True
        return self._http_client

    async def close(self) -> None:
        """Close owned HTTP client."""
        if self._owns_client and self._http_client:
            await self._http_client.aclose()
            self._http_client = None
            self._owns_client = False

    async def request(self, method: str, params: list[Any] | dict[str, Any] | None = None) -> Any:
        client = await self._get_client()
        payload = {
            "jsonrpc": "2.0",
            "method": method,
            "params": params if params is not None else [],
            "id": next(self._ids),
        }
        logger.debug(f"RPC {method} -> {self._rpc_url}")

        try:
            response = await client.post(self._rpc_url, json=payload)
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPStatusError as e:
            logger.warning(f"RPC HTTP {e.response.status_code} for {method}")
            raise WalletProviderError(
                "transport_error", f"RPC endpoint returned HTTP {e.response.status_code}"
            ) from e
        except httpx.RequestError as e:
            logger.warning(f"RPC request failed for {method}: {e}")
            raise WalletProviderError("transport_error", f"RPC request failed: {e}") from e
        except ValueError as e:
            raise WalletProviderError("transport_error", "RPC endpoint returned invalid JSON") from e

        if not isinstance(body, dict):
            raise WalletProviderError("transport_error", "RPC endpoint returned a non-object body")

        error = body.get("error")
        if error:
            code = error.get("code", "rpc_error") if isinstance(error, dict) else "rpc_error"
            message = error.get("message", "") if isinstance(error, dict) else str(error)
            data = error.get("data") if isinstance(error, dict) else None
            logger.debug(f"RPC error for {method}: {code} {message}")
            raise WalletProviderError(code, message, data)

        return body.get("result")
