"""
WalletAdapter over an EIP-1193 provider.
"""

from __future__ import annotations

from kryptopay.core.logging import get_logger
from kryptopay.wallet.base import Eip1193Provider, WalletAdapter
from kryptopay.wallet.erc20 import encode_erc20_transfer

logger = get_logger("wallet.eip1193")


def to_hex_quantity(value: int) -> str:
    """Encode an integer as an RPC quantity ("0x1", "0x2105")."""
    return hex(value)


def parse_hex_quantity(value: object) -> int:
    """Parse an RPC quantity; tolerates plain ints and decimal strings."""
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    text = str(value).strip()
    if text.lower().startswith("0x"):
        return int(text, 16)
    return int(text)


class Eip1193Wallet(WalletAdapter):
    """
    Wallet adapter for injected (EOA) wallets speaking EIP-1193.

    Example:
        >>> wallet = Eip1193Wallet(provider)
        >>> accounts = await wallet.request_accounts()
        >>> tx_hash = await wallet.send_token_transfer(accounts[0], usdc, merchant, 1_500_000)
    """

    def __init__(self, provider: Eip1193Provider) -> None:
        self._provider = provider

    @property
    def provider(self) -> Eip1193Provider:
        return self._provider

    async def request_accounts(self) -> list[str]:
        accounts = await self._provider.request("eth_requestAccounts")
        return [str(a) for a in accounts or []]

    async def get_chain_id(self) -> int:
        raw = await self._provider.request("eth_chainId")
        return parse_hex_quantity(raw)

    async def request_chain_switch(self, chain_id: int) -> None:
        logger.debug(f"Requesting chain switch to {chain_id}")
        await self._provider.request(
            "wallet_switchEthereumChain",
            [{"chainId": to_hex_quantity(chain_id)}],
        )

    async def send_token_transfer(
        self,
        from_address: str,
        token_address: str,
        to_address: str,
        amount_units: int,
    ) -> str:
        # Gas is left for the wallet to estimate
        data = encode_erc20_transfer(to_address, amount_units)
        tx_hash = await self._provider.request(
            "eth_sendTransaction",
            [
                {
                    "from": from_address,
                    "to": token_address,
                    "data": data,
                    "value": "0x0",
                }
            ],
        )
        return str(tx_hash)
