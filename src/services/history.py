"""
History - Transaction history and spot price REST clients.

Thin GET-and-decode wrappers around the Etherscan account API and the
CoinGecko simple price API.
"""

import json
import logging
import urllib.error
import urllib.parse
import urllib.request
from decimal import InvalidOperation

from models.transaction import PriceQuote, TransactionRecord
from wallet.errors import NetworkFailure, UnexpectedResult

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30  # seconds

ETHERSCAN_URL = "https://api.etherscan.io/api"
COINGECKO_URL = "https://api.coingecko.com/api/v3/simple/"

# Etherscan answers status "0" with this message for empty histories
NO_TRANSACTIONS_MESSAGE = "No transactions found"


def fetch_json(url: str, timeout: float = DEFAULT_TIMEOUT, headers: dict = None):
    """
    GET a URL and decode its JSON body.

    Raises:
        NetworkFailure: On connection errors, timeouts and non-2xx responses
        UnexpectedResult: If the body is not JSON
    """
    req = urllib.request.Request(url, headers={"Accept": "application/json", **(headers or {})})
    try:
        with urllib.request.urlopen(req, timeout=timeout) as resp:
            body = resp.read()
    except urllib.error.HTTPError as e:
        raise NetworkFailure(f"HTTP {e.code} from {urllib.parse.urlsplit(url).netloc}") from e
    except (urllib.error.URLError, OSError) as e:
        raise NetworkFailure(f"Request failed: {e}") from e

    try:
        return json.loads(body.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise UnexpectedResult("Response is not JSON") from e


class EtherscanClient:
    """Transaction history for an address."""

    def __init__(self, base_url: str = ETHERSCAN_URL, api_key: str = "",
                 timeout: float = DEFAULT_TIMEOUT, fetch=fetch_json):
        self.base_url = base_url
        self.api_key = api_key
        self.timeout = timeout
        self._fetch = fetch

    def transaction_url(self, address: str) -> str:
        query = urllib.parse.urlencode({
            "module": "account",
            "action": "txlist",
            "address": address,
            "startblock": 0,
            "endblock": "latest",
            "sort": "desc",
            "apikey": self.api_key,
        })
        return f"{self.base_url}?{query}"

    def get_transaction_list(self, address: str) -> list[TransactionRecord]:
        """
        Newest-first transactions of an address.

        Raises:
            NetworkFailure, UnexpectedResult
        """
        data = self._fetch(self.transaction_url(address), timeout=self.timeout)
        if not isinstance(data, dict):
            raise UnexpectedResult("Explorer response is not an object")

        result = data.get("result")
        if data.get("status") != "1":
            if data.get("message") == NO_TRANSACTIONS_MESSAGE:
                return []
            raise UnexpectedResult(f"Explorer error: {data.get('message')}: {result}")

        if not isinstance(result, list):
            raise UnexpectedResult("Explorer result is not a list")

        try:
            records = [TransactionRecord.from_dict(item) for item in result]
        except (TypeError, AttributeError) as e:
            raise UnexpectedResult(f"Malformed transaction record: {e}") from e

        logger.debug(f"Fetched {len(records)} transaction(s) for {address}")
        return records


class CoinGeckoClient:
    """Spot prices."""

    def __init__(self, base_url: str = COINGECKO_URL, api_key: str = "",
                 timeout: float = DEFAULT_TIMEOUT, fetch=fetch_json):
        self.base_url = base_url
        self.api_key = api_key
        self.timeout = timeout
        self._fetch = fetch

    def price_url(self, asset: str = "ethereum", vs_currency: str = "usd") -> str:
        query = urllib.parse.urlencode({"ids": asset, "vs_currencies": vs_currency})
        return f"{self.base_url}price?{query}"

    def get_price(self, asset: str = "ethereum", vs_currency: str = "usd") -> PriceQuote:
        headers = {"x-cg-demo-api-key": self.api_key} if self.api_key else None
        data = self._fetch(self.price_url(asset, vs_currency), timeout=self.timeout, headers=headers)
        if not isinstance(data, dict) or not isinstance(data.get(asset), dict):
            raise UnexpectedResult(f"No price for {asset}")
        try:
            quote = PriceQuote.from_dict(asset, data)
        except (InvalidOperation, ValueError, AttributeError) as e:
            raise UnexpectedResult(f"Malformed price for {asset}") from e
        if quote.price(vs_currency) is None:
            raise UnexpectedResult(f"No {vs_currency} price for {asset}")
        return quote

    def get_eth_price(self, vs_currency: str = "usd") -> PriceQuote:
        return self.get_price("ethereum", vs_currency)
