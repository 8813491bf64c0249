import unittest
import urllib.parse
from decimal import Decimal
from unittest import mock

from services.history import CoinGeckoClient, EtherscanClient, fetch_json
from wallet.errors import NetworkFailure, UnexpectedResult

ADDRESS = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"

TX = {
    "blockNumber": "100",
    "timeStamp": "1654646411",
    "hash": "0xabc",
    "from": ADDRESS.lower(),
    "to": "0x70997970c51812dc3a010c7d01b50e0d17dc79c8",
    "value": "1000000000000000000",
    "isError": "0",
}


class RecordingFetch:
    """Stands in for fetch_json and remembers each request."""

    def __init__(self, response):
        self.response = response
        self.requests = []

    def __call__(self, url, timeout=None, headers=None):
        self.requests.append({"url": url, "timeout": timeout, "headers": headers})
        if isinstance(self.response, Exception):
            raise self.response
        return self.response


class EtherscanClientTests(unittest.TestCase):
    def test_transaction_url(self) -> None:
        client = EtherscanClient("https://api.example.org/api", api_key="KEY")
        query = urllib.parse.parse_qs(urllib.parse.urlsplit(client.transaction_url(ADDRESS)).query)

        self.assertEqual(query["module"], ["account"])
        self.assertEqual(query["action"], ["txlist"])
        self.assertEqual(query["address"], [ADDRESS])
        self.assertEqual(query["sort"], ["desc"])
        self.assertEqual(query["apikey"], ["KEY"])

    def test_transaction_list(self) -> None:
        fetch = RecordingFetch({"status": "1", "message": "OK", "result": [TX, dict(TX, hash="0xdef")]})
        client = EtherscanClient(timeout=5, fetch=fetch)

        records = client.get_transaction_list(ADDRESS)

        self.assertEqual([r.hash for r in records], ["0xabc", "0xdef"])
        self.assertEqual(records[0].eth_amount(), Decimal(1))
        self.assertEqual(fetch.requests[0]["timeout"], 5)

    def test_empty_history(self) -> None:
        fetch = RecordingFetch({"status": "0", "message": "No transactions found", "result": []})
        self.assertEqual(EtherscanClient(fetch=fetch).get_transaction_list(ADDRESS), [])

    def test_explorer_error(self) -> None:
        fetch = RecordingFetch({"status": "0", "message": "NOTOK", "result": "Invalid API Key"})
        with self.assertRaises(UnexpectedResult):
            EtherscanClient(fetch=fetch).get_transaction_list(ADDRESS)

    def test_malformed_result(self) -> None:
        for response in ([], {"status": "1", "result": "nope"}, {"status": "1", "result": ["x"]}):
            with self.subTest(response=response):
                with self.assertRaises(UnexpectedResult):
                    EtherscanClient(fetch=RecordingFetch(response)).get_transaction_list(ADDRESS)

    def test_network_failure_propagates(self) -> None:
        fetch = RecordingFetch(NetworkFailure("timed out"))
        with self.assertRaises(NetworkFailure):
            EtherscanClient(fetch=fetch).get_transaction_list(ADDRESS)


class CoinGeckoClientTests(unittest.TestCase):
    def test_eth_price(self) -> None:
        fetch = RecordingFetch({"ethereum": {"usd": 1834.27}})
        quote = CoinGeckoClient(fetch=fetch).get_eth_price()

        self.assertEqual(quote.price(), Decimal("1834.27"))
        self.assertIn("ids=ethereum", fetch.requests[0]["url"])
        self.assertIn("vs_currencies=usd", fetch.requests[0]["url"])
        self.assertIsNone(fetch.requests[0]["headers"])

    def test_api_key_header(self) -> None:
        fetch = RecordingFetch({"ethereum": {"eur": 1700}})
        CoinGeckoClient(api_key="demo", fetch=fetch).get_eth_price("eur")
        self.assertEqual(fetch.requests[0]["headers"], {"x-cg-demo-api-key": "demo"})

    def test_missing_price(self) -> None:
        for response in ({}, {"ethereum": {"eur": 1}}, {"ethereum": {"usd": "n/a"}}, []):
            with self.subTest(response=response):
                with self.assertRaises(UnexpectedResult):
                    CoinGeckoClient(fetch=RecordingFetch(response)).get_eth_price()


class FetchJsonTests(unittest.TestCase):
    def _response(self, body: bytes) -> mock.MagicMock:
        response = mock.MagicMock()
        response.__enter__.return_value.read.return_value = body
        return response

    def test_decodes_json(self) -> None:
        with mock.patch("urllib.request.urlopen", return_value=self._response(b'{"a": 1}')) as urlopen:
            self.assertEqual(fetch_json("https://example.org", timeout=3), {"a": 1})
        self.assertEqual(urlopen.call_args.kwargs["timeout"], 3)

    def test_non_json_body(self) -> None:
        with mock.patch("urllib.request.urlopen", return_value=self._response(b"<html>")):
            with self.assertRaises(UnexpectedResult):
                fetch_json("https://example.org")

    def test_connection_error(self) -> None:
        with mock.patch("urllib.request.urlopen", side_effect=OSError("unreachable")):
            with self.assertRaises(NetworkFailure):
                fetch_json("https://example.org")


if __name__ == "__main__":
    unittest.main()
