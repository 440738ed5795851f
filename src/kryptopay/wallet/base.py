"""
Base wallet interfaces.

The checkout controller drives a wallet through ``WalletAdapter``: four
fallible async steps (connect, read chain, switch chain, send transfer).
``Eip1193Provider`` is the lower-level request/response interface that
browser-style wallets and JSON-RPC nodes expose; ``Eip1193Wallet`` adapts
one to the other.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class Eip1193Provider(ABC):
    """
    Minimal EIP-1193 provider (MetaMask, Coinbase Wallet, a JSON-RPC node...).

    ``request`` raises WalletProviderError carrying the provider's numeric
    or string error code.
    """

    @abstractmethod
    async def request(self, method: str, params: list[Any] | dict[str, Any] | None = None) -> Any:
        """Send one RPC request and return its result."""
        ...


class WalletAdapter(ABC):
    """
    Abstract wallet used by the checkout wallet flow.

    Every method is one fallible async step. Failures are raised as
    WalletProviderError (numeric or string ``code``) or any other exception;
    the controller normalizes them.
    """

    @abstractmethod
    async def request_accounts(self) -> list[str]:
        """Ask the wallet for account access; returns addresses (may be empty)."""
        ...

    @abstractmethod
    async def get_chain_id(self) -> int:
        """Return the chain id the wallet is currently on."""
        ...

    @abstractmethod
    async def request_chain_switch(self, chain_id: int) -> None:
        """
        Ask the wallet to switch to ``chain_id``.

        Never adds an unknown chain; wallets answer 4902 for that.
        """
        ...

    @abstractmethod
    async def send_token_transfer(
        self,
        from_address: str,
        token_address: str,
        to_address: str,
        amount_units: int,
    ) -> str:
        """
        Submit an ERC-20 ``transfer(to, amount)`` from ``from_address``.

        Returns:
            Transaction hash
        """
        ...
