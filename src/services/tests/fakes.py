"""In-memory chain client for service tests."""

import threading
import time
from typing import Any, Callable, Optional, Sequence

from eth_utils import keccak, to_checksum_address


class FakeChainClient:
    """
    Chain client with scripted state.

    Args:
        balance_wei: Native balance reported for every address
        token_balances: contract -> balanceOf result
        call_results: (contract, method) -> result; exceptions are raised
        send_delay: Seconds each broadcast takes
        on_send: Hook run inside send_raw_transaction before it returns
    """

    def __init__(self, balance_wei: int = 0, token_balances: Optional[dict] = None,
                 call_results: Optional[dict] = None, gas_price_wei: int = 10 ** 9,
                 gas_limit: int = 21000, send_delay: float = 0.0,
                 on_send: Optional[Callable[[], None]] = None):
        self.balance_wei = balance_wei
        self.token_balances = {to_checksum_address(k): v for k, v in (token_balances or {}).items()}
        self.call_results = {(to_checksum_address(c), m): v for (c, m), v in (call_results or {}).items()}
        self.gas_price_wei = gas_price_wei
        self.gas_limit = gas_limit
        self.send_delay = send_delay
        self.on_send = on_send

        self.nonce = 0
        self.nonces: list[int] = []
        self.calls: list[tuple] = []
        self.estimates: list[dict] = []
        self.sent: list[bytes] = []
        self.active = 0
        self.max_active = 0
        self._lock = threading.Lock()

    @property
    def chain_id(self) -> int:
        return 1

    def get_balance(self, address: str) -> int:
        return self.balance_wei

    def call(self, contract_address: str, method: str, args: Sequence[Any] = ()) -> Any:
        contract = to_checksum_address(contract_address)
        self.calls.append((contract, method, tuple(args)))
        if method == "balanceOf" and (contract, method) not in self.call_results:
            return self.token_balances.get(contract, 0)
        result = self.call_results.get((contract, method))
        if isinstance(result, Exception):
            raise result
        return result

    def get_transaction_count(self, address: str) -> int:
        with self._lock:
            self.nonces.append(self.nonce)
            return self.nonce

    def gas_price(self) -> int:
        return self.gas_price_wei

    def estimate_gas(self, transaction: dict) -> int:
        self.estimates.append(dict(transaction))
        return self.gas_limit

    def send_raw_transaction(self, raw_transaction: bytes) -> str:
        with self._lock:
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        try:
            if self.send_delay:
                time.sleep(self.send_delay)
            if self.on_send is not None:
                self.on_send()
            with self._lock:
                self.sent.append(bytes(raw_transaction))
                self.nonce += 1
            return "0x" + keccak(bytes(raw_transaction)).hex()
        finally:
            with self._lock:
                self.active -= 1
