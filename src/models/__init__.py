"""
Models package - Shared value types.

Contains:
- Amount conversions between human units and base units
- TransactionRecord: explorer history entries
- PriceQuote: spot prices
"""

from .amounts import (
    ETHER_DECIMALS,
    format_amount,
    format_units,
    from_base_units,
    parse_amount,
    to_base_units,
)
from .transaction import PriceQuote, TransactionRecord

__all__ = [
    "ETHER_DECIMALS",
    "format_amount",
    "format_units",
    "from_base_units",
    "parse_amount",
    "to_base_units",
    "PriceQuote",
    "TransactionRecord",
]
