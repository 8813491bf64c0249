"""
Transaction records and price quotes from the history data sources.

Records are read-only: they are decoded from the explorer API and only
formatted for display.
"""

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Optional

from wallet.errors import ConversionFailure
from .amounts import ETHER_DECIMALS, format_amount, from_base_units

# Explorer field name -> record attribute
_FIELD_MAP = {
    "blockNumber": "block_number",
    "timeStamp": "timestamp",
    "hash": "hash",
    "nonce": "nonce",
    "blockHash": "block_hash",
    "transactionIndex": "transaction_index",
    "from": "from_address",
    "to": "to_address",
    "value": "value",
    "gas": "gas",
    "gasPrice": "gas_price",
    "isError": "is_error",
    "txreceipt_status": "receipt_status",
    "input": "input",
    "contractAddress": "contract_address",
    "cumulativeGasUsed": "cumulative_gas_used",
    "gasUsed": "gas_used",
    "confirmations": "confirmations",
    "methodId": "method_id",
    "functionName": "function_name",
}


def _preview(address: str) -> str:
    """Format for display: 0x12...cdef"""
    return f"{address[:4]}...{address[-4:]}"


@dataclass(frozen=True)
class TransactionRecord:
    """A historical transaction as reported by the explorer (all fields are strings)."""
    block_number: str
    timestamp: str                 # Unix seconds
    hash: str
    from_address: str
    to_address: str
    value: str                     # Wei
    nonce: str = ""
    block_hash: str = ""
    transaction_index: str = ""
    gas: str = ""
    gas_price: str = ""
    is_error: str = "0"
    receipt_status: str = ""
    input: str = ""
    contract_address: str = ""
    cumulative_gas_used: str = ""
    gas_used: str = ""
    confirmations: str = ""
    method_id: str = ""
    function_name: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> "TransactionRecord":
        """Decode an explorer JSON object; missing optional fields become ""."""
        values = {}
        for api_name, attr in _FIELD_MAP.items():
            raw = data.get(api_name)
            if raw is not None:
                values[attr] = str(raw)
        return cls(**values)

    def to_dict(self) -> dict:
        return asdict(self)

    @property
    def succeeded(self) -> bool:
        return self.is_error == "0"

    def date(self) -> Optional[datetime]:
        try:
            return datetime.fromtimestamp(int(self.timestamp), tz=timezone.utc)
        except (ValueError, OverflowError, OSError):
            return None

    def eth_amount(self) -> Optional[Decimal]:
        """Value in ether, exact."""
        try:
            return from_base_units(int(self.value), ETHER_DECIMALS)
        except (ValueError, InvalidOperation):
            return None

    def eth_amount_formatted(self) -> Optional[str]:
        amount = self.eth_amount()
        if amount is None:
            return None
        try:
            return f"{format_amount(amount)} ETH"
        except ConversionFailure:
            return None

    def from_preview(self) -> str:
        return _preview(self.from_address)

    def to_preview(self) -> str:
        return _preview(self.to_address)

    def is_outgoing(self, address: str) -> bool:
        return self.from_address.lower() == address.lower()

    def description(self, address: str) -> str:
        direction = "Sent" if self.is_outgoing(address) else "Received"
        return f"{direction} {self.eth_amount_formatted() or ''}"

    def secondary_description(self, address: str) -> str:
        return self.to_preview() if self.is_outgoing(address) else self.from_preview()


@dataclass(frozen=True)
class PriceQuote:
    """Spot price of an asset in one or more fiat currencies."""
    asset: str
    prices: dict[str, Decimal] = field(default_factory=dict)  # currency -> price

    def price(self, currency: str = "usd") -> Optional[Decimal]:
        return self.prices.get(currency.lower())

    @classmethod
    def from_dict(cls, asset: str, data: dict) -> "PriceQuote":
        """Decode CoinGecko simple/price output: {"ethereum": {"usd": 1234.5}}"""
        entry = data.get(asset) or {}
        return cls(
            asset=asset,
            prices={currency.lower(): Decimal(str(value)) for currency, value in entry.items()},
        )
