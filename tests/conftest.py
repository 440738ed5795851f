import logging
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

from kryptopay.core.exceptions import WalletProviderError
from kryptopay.core.logging import LOGGER_NAME
from kryptopay.core.types import Lane, Mode, PaymentIntent, PaymentIntentStatus
from kryptopay.intents.resolver import IntentResolver
from kryptopay.wallet.base import Eip1193Provider, WalletAdapter

TOKEN_ADDRESS = "0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913"
MERCHANT_ADDRESS = "0x1111111111111111111111111111111111111111"
SHOPPER_ADDRESS = "0x2222222222222222222222222222222222222222"
TX_HASH = "0x" + "ab" * 32


def make_intent(**overrides: Any) -> PaymentIntent:
    """Build a fully populated intent (Base mainnet USDC by default)."""
    values: dict[str, Any] = {
        "id": "pi_123",
        "status": PaymentIntentStatus.REQUIRES_PAYMENT,
        "mode": Mode.MAINNET,
        "chain": "base",
        "chain_id": 8453,
        "confirmations_required": 3,
        "amount_units": 1_500_000,
        "decimals": 6,
        "token_symbol": "USDC",
        "token_address": TOKEN_ADDRESS,
        "expected_wallet": MERCHANT_ADDRESS,
        "expires_at": datetime.now(timezone.utc) + timedelta(minutes=30),
        "lane": Lane.SDK,
        "metadata": {"order_id": "order_42"},
    }
    values.update(overrides)
    return PaymentIntent(**values)


def intent_payload(**overrides: Any) -> dict[str, Any]:
    """Resolve-endpoint JSON body for ``make_intent()``."""
    payload = make_intent().to_dict()
    payload["expires_at"] = "2030-01-01T00:00:00Z"
    payload.update(overrides)
    return payload


class FakeClock:
    """Manual clock; ``sleep`` advances it instead of waiting."""

    def __init__(self, start: float = 1_000.0) -> None:
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class FakeResolver(IntentResolver):
    """
    Resolver answering from a script of statuses, intents or exceptions.

    The last entry repeats once the script is exhausted.
    """

    def __init__(self, *script: Any, intent: PaymentIntent | None = None) -> None:
        self.base_intent = intent or make_intent()
        self.script = list(script) or [PaymentIntentStatus.REQUIRES_PAYMENT]
        self.calls: list[str] = []
        self.closed = False
        self.hooks: list[Any] = []

    async def resolve(self, client_secret: str) -> PaymentIntent:
        self.calls.append(client_secret)
        index = min(len(self.calls) - 1, len(self.script) - 1)
        step = self.script[index]
        for hook in self.hooks:
            hook(len(self.calls))
        if isinstance(step, BaseException):
            raise step
        if isinstance(step, PaymentIntent):
            return step
        return self.base_intent.with_status(PaymentIntentStatus(step))

    async def close(self) -> None:
        self.closed = True


class FakeWallet(WalletAdapter):
    """Scriptable wallet; any attribute set to an exception is raised."""

    def __init__(
        self,
        accounts: Any = None,
        chain_ids: list[int] | None = None,
        tx_hash: str = TX_HASH,
    ) -> None:
        self.accounts = [SHOPPER_ADDRESS] if accounts is None else accounts
        self.chain_ids = list(chain_ids or [8453])
        self.tx_hash = tx_hash
        self.switch_error: BaseException | None = None
        self.send_error: BaseException | None = None
        self.calls: list[tuple[str, tuple[Any, ...]]] = []

    async def request_accounts(self) -> list[str]:
        self.calls.append(("request_accounts", ()))
        if isinstance(self.accounts, BaseException):
            raise self.accounts
        return self.accounts

    async def get_chain_id(self) -> int:
        self.calls.append(("get_chain_id", ()))
        if len(self.chain_ids) > 1:
            return self.chain_ids.pop(0)
        return self.chain_ids[0]

    async def request_chain_switch(self, chain_id: int) -> None:
        self.calls.append(("request_chain_switch", (chain_id,)))
        if self.switch_error:
            raise self.switch_error

    async def send_token_transfer(self, from_address, token_address, to_address, amount_units) -> str:
        self.calls.append(("send_token_transfer", (from_address, token_address, to_address, amount_units)))
        if self.send_error:
            raise self.send_error
        return self.tx_hash

    def called(self, name: str) -> bool:
        return any(call[0] == name for call in self.calls)


class FakeProvider(Eip1193Provider):
    """EIP-1193 provider answering from a method -> result map."""

    def __init__(self, responses: dict[str, Any] | None = None) -> None:
        self.responses = responses or {}
        self.requests: list[tuple[str, Any]] = []

    async def request(self, method, params=None):
        self.requests.append((method, params))
        result = self.responses.get(method)
        if isinstance(result, BaseException):
            raise result
        return result


@pytest.fixture(autouse=True)
def reset_kryptopay_logger():
    """Undo configure_logging() so caplog sees records in every test."""
    yield
    logger = logging.getLogger(LOGGER_NAME)
    logger.handlers.clear()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def intent() -> PaymentIntent:
    return make_intent()


@pytest.fixture
def wallet() -> FakeWallet:
    return FakeWallet()


@pytest.fixture
def rejected_error() -> WalletProviderError:
    return WalletProviderError(4001, "User rejected the request.")
