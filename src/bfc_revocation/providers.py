"""
Blob data providers.

Each provider wraps one third-party API and offers some of three roles:

- transaction index: recent transactions sent by an address
- transaction lookup: blob versioned hashes of a transaction
- blob data: the hex payload of a blob by versioned hash

Every failure is raised as ProviderError so the BlobRetriever can fall
through to the next provider.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any

import httpx

from bfc_revocation.config import APIConfig
from bfc_revocation.errors import ProviderError

log = logging.getLogger(__name__)

_HEX_PAYLOAD = re.compile(r"(0x)?[0-9a-fA-F]+")

MORALIS_API_URL = "https://deep-index.moralis.io/api/v2.2"


@dataclass(frozen=True)
class BlobTransaction:
    """A transaction sent by the publisher, possibly carrying blobs."""

    hash: str
    block_number: int
    transaction_index: int = -1
    blob_versioned_hashes: tuple[str, ...] = ()

    @property
    def order_key(self) -> tuple[int, int]:
        return (self.block_number, self.transaction_index)


def to_int(value: Any, default: int = -1) -> int:
    """Parse an int from an int, a decimal string, or a 0x-prefixed hex string."""
    if value is None:
        return default
    if isinstance(value, int):
        return value
    text = str(value).strip()
    if text.lower().startswith("0x"):
        return int(text, 16)
    return int(text)


class BlobProvider:
    """Base class for blob data providers."""

    name = "provider"
    indexes_transactions = False
    looks_up_transactions = False
    serves_blobs = False

    def __init__(self, config: APIConfig) -> None:
        self.config = config

    async def latest_transactions(
        self, client: httpx.AsyncClient, address: str, limit: int
    ) -> list[BlobTransaction]:
        """Return recent transactions sent by address."""
        raise NotImplementedError

    async def blob_versioned_hashes(
        self, client: httpx.AsyncClient, tx_hash: str
    ) -> list[str]:
        """Return the blob versioned hashes of a transaction."""
        raise NotImplementedError

    async def blob_data(self, client: httpx.AsyncClient, versioned_hash: str) -> str:
        """Return the hex payload of a blob."""
        raise NotImplementedError

    async def _request(
        self,
        client: httpx.AsyncClient,
        method: str,
        url: str,
        raw: bool = False,
        **kwargs: Any,
    ) -> Any:
        """Send a request and return the decoded JSON (or text when raw)."""
        try:
            response = await client.request(method, url, **kwargs)
            # URLs may embed API keys; log the provider name only.
            log.debug("%s %s -> HTTP %s", self.name, method, response.status_code)
            response.raise_for_status()
            if raw:
                return response
            return response.json()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            if status == 429:
                raise ProviderError(f"{self.name} rate limit exceeded (HTTP 429)") from e
            raise ProviderError(f"HTTP error from {self.name}: {status}") from e
        except httpx.RequestError as e:
            raise ProviderError(f"Network error contacting {self.name}: {e!r}") from e
        except ValueError as e:
            raise ProviderError(f"Invalid JSON from {self.name}") from e

    async def _rpc(
        self, client: httpx.AsyncClient, url: str, method: str, params: list[Any]
    ) -> Any:
        """Call a JSON-RPC method and return its result."""
        body = await self._request(
            client,
            "POST",
            url,
            json={"jsonrpc": "2.0", "id": 1, "method": method, "params": params},
        )
        if not isinstance(body, dict):
            raise ProviderError(f"Malformed JSON-RPC response from {self.name}")
        if body.get("error"):
            error = body["error"]
            message = error.get("message", error) if isinstance(error, dict) else error
            raise ProviderError(f"{self.name} {method} failed: {message}")
        return body.get("result")

    async def _rpc_blob_versioned_hashes(
        self, client: httpx.AsyncClient, url: str, tx_hash: str
    ) -> list[str]:
        tx = await self._rpc(client, url, "eth_getTransactionByHash", [tx_hash])
        if tx is None:
            raise ProviderError(f"Transaction {tx_hash} not found by {self.name}")
        if not isinstance(tx, dict):
            raise ProviderError(f"Malformed transaction from {self.name}")
        hashes = tx.get("blobVersionedHashes") or []
        if not isinstance(hashes, list):
            raise ProviderError(f"Malformed blobVersionedHashes from {self.name}")
        return [str(h) for h in hashes]

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class MoralisProvider(BlobProvider):
    """Moralis Web3 Data API (indexing provider)."""

    name = "moralis"
    indexes_transactions = True

    async def latest_transactions(
        self, client: httpx.AsyncClient, address: str, limit: int
    ) -> list[BlobTransaction]:
        body = await self._request(
            client,
            "GET",
            f"{MORALIS_API_URL}/{address}",
            params={
                "chain": self.config.endpoints.moralis_chain,
                "order": "DESC",
                "limit": limit,
            },
            headers={"X-API-Key": self.config.moralis_api_key or "", "Accept": "application/json"},
        )
        try:
            transactions = [
                BlobTransaction(
                    hash=tx["hash"],
                    block_number=to_int(tx["block_number"]),
                    transaction_index=to_int(tx.get("transaction_index")),
                )
                for tx in body["result"]
                if str(tx.get("from_address", "")).lower() == address.lower()
            ]
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise ProviderError(f"Malformed transaction list from {self.name}: {e}") from e
        if not transactions:
            raise ProviderError(f"No transactions sent by {address} found by {self.name}")
        return transactions


class AlchemyProvider(BlobProvider):
    """Alchemy (secondary indexing provider, also a JSON-RPC node)."""

    name = "alchemy"
    indexes_transactions = True
    looks_up_transactions = True

    @property
    def url(self) -> str:
        return f"{self.config.endpoints.alchemy_url}{self.config.alchemy_api_key}"

    async def latest_transactions(
        self, client: httpx.AsyncClient, address: str, limit: int
    ) -> list[BlobTransaction]:
        result = await self._rpc(
            client,
            self.url,
            "alchemy_getAssetTransfers",
            [{
                "fromBlock": "0x0",
                "toBlock": "latest",
                "fromAddress": address,
                "category": ["external"],
                "order": "desc",
                "excludeZeroValue": False,
                "withMetadata": False,
                "maxCount": hex(limit),
            }],
        )
        transactions: list[BlobTransaction] = []
        seen: set[str] = set()
        try:
            for transfer in result["transfers"]:
                if transfer["hash"] in seen:
                    continue
                seen.add(transfer["hash"])
                transactions.append(BlobTransaction(
                    hash=transfer["hash"],
                    block_number=to_int(transfer["blockNum"]),
                ))
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise ProviderError(f"Malformed asset transfers from {self.name}: {e}") from e
        if not transactions:
            raise ProviderError(f"No transactions sent by {address} found by {self.name}")
        return transactions

    async def blob_versioned_hashes(
        self, client: httpx.AsyncClient, tx_hash: str
    ) -> list[str]:
        return await self._rpc_blob_versioned_hashes(client, self.url, tx_hash)


class InfuraProvider(BlobProvider):
    """Infura JSON-RPC node (node provider)."""

    name = "infura"
    looks_up_transactions = True

    @property
    def url(self) -> str:
        return f"{self.config.endpoints.infura_url}{self.config.infura_api_key}"

    async def blob_versioned_hashes(
        self, client: httpx.AsyncClient, tx_hash: str
    ) -> list[str]:
        return await self._rpc_blob_versioned_hashes(client, self.url, tx_hash)


class BlobscanProvider(BlobProvider):
    """Blobscan-style REST API. The only provider serving blob data."""

    name = "blobscan"
    indexes_transactions = True
    looks_up_transactions = True
    serves_blobs = True

    @property
    def base_url(self) -> str:
        return (self.config.blob_scan_url or "").rstrip("/")

    async def latest_transactions(
        self, client: httpx.AsyncClient, address: str, limit: int
    ) -> list[BlobTransaction]:
        body = await self._request(
            client,
            "GET",
            f"{self.base_url}/transactions",
            params={"from": address, "sort": "desc", "ps": limit},
        )
        try:
            transactions = [
                BlobTransaction(
                    hash=tx["hash"],
                    block_number=to_int(tx["blockNumber"]),
                    transaction_index=to_int(tx.get("index", tx.get("transactionIndex"))),
                    blob_versioned_hashes=tuple(self._versioned_hashes(tx)),
                )
                for tx in body["transactions"]
            ]
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise ProviderError(f"Malformed transaction list from {self.name}: {e}") from e
        if not transactions:
            raise ProviderError(f"No transactions sent by {address} found by {self.name}")
        return transactions

    async def blob_versioned_hashes(
        self, client: httpx.AsyncClient, tx_hash: str
    ) -> list[str]:
        body = await self._request(client, "GET", f"{self.base_url}/transactions/{tx_hash}")
        try:
            return self._versioned_hashes(body)
        except (AttributeError, KeyError, TypeError) as e:
            raise ProviderError(f"Malformed transaction from {self.name}: {e}") from e

    async def blob_data(self, client: httpx.AsyncClient, versioned_hash: str) -> str:
        response = await self._request(
            client, "GET", f"{self.base_url}/blobs/{versioned_hash}/data", raw=True
        )
        try:
            body = response.json()
        except ValueError:
            body = response.text
        if isinstance(body, dict):
            body = body.get("data")
        if not isinstance(body, str) or not _HEX_PAYLOAD.fullmatch(body.strip()):
            raise ProviderError(f"Blob {versioned_hash} from {self.name} is not hex data")
        data = body.strip()
        return data if data.lower().startswith("0x") else f"0x{data}"

    @staticmethod
    def _versioned_hashes(tx: dict[str, Any]) -> list[str]:
        if "blobs" in tx:
            return [blob["versionedHash"] for blob in tx["blobs"]]
        return list(tx.get("blobVersionedHashes") or [])


def build_providers(config: APIConfig) -> list[BlobProvider]:
    """Create the providers configured in config, in priority order."""
    providers: list[BlobProvider] = []
    if config.moralis_api_key:
        providers.append(MoralisProvider(config))
    if config.infura_api_key:
        providers.append(InfuraProvider(config))
    if config.alchemy_api_key:
        providers.append(AlchemyProvider(config))
    if config.blob_scan_url:
        providers.append(BlobscanProvider(config))
    return providers
