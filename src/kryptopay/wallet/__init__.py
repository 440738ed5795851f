"""
Wallet integration for the checkout wallet flow.

Example:
    >>> from kryptopay.wallet import Eip1193Wallet, JsonRpcProvider
    >>>
    >>> wallet = Eip1193Wallet(JsonRpcProvider("http://127.0.0.1:8545"))
    >>> controller = client.checkout("cs_test_123", wallet=wallet)
"""

from kryptopay.core.exceptions import WalletProviderError
from kryptopay.wallet.base import Eip1193Provider, WalletAdapter
from kryptopay.wallet.eip1193 import Eip1193Wallet
from kryptopay.wallet.erc20 import encode_erc20_transfer, is_address
from kryptopay.wallet.jsonrpc import JsonRpcProvider

__all__ = [
    "Eip1193Provider",
    "Eip1193Wallet",
    "JsonRpcProvider",
    "WalletAdapter",
    "WalletProviderError",
    "encode_erc20_transfer",
    "is_address",
]
