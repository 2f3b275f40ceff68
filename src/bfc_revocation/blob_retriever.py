"""
Blob retrieval with provider fallback.

Finds the most recent blob-carrying transaction sent by a publisher address
and returns the hex payload of its blob. Each step (locate, lookup, fetch)
tries the configured providers in priority order and only fails once all
of them have failed.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

import httpx

from bfc_revocation.config import APIConfig
from bfc_revocation.errors import BlobRetrievalError, ProviderError, ProviderFailure
from bfc_revocation.providers import BlobProvider, BlobTransaction, build_providers

log = logging.getLogger(__name__)

T = TypeVar("T")

STEP_LOCATE = "locate"
STEP_LOOKUP = "lookup"
STEP_FETCH = "fetch"


class BlobRetriever:
    """Retrieves the latest blob payload published by an address."""

    def __init__(
        self,
        config: APIConfig,
        providers: list[BlobProvider] | None = None,
    ) -> None:
        """Initialize the retriever.

        Args:
            config: Provider credentials and retrieval settings.
            providers: Providers in priority order. Built from config if not provided.
        """
        self.config = config
        self.providers = providers if providers is not None else build_providers(config)

    @property
    def indexers(self) -> list[BlobProvider]:
        return [p for p in self.providers if p.indexes_transactions]

    @property
    def lookups(self) -> list[BlobProvider]:
        return [p for p in self.providers if p.looks_up_transactions]

    @property
    def blob_sources(self) -> list[BlobProvider]:
        return [p for p in self.providers if p.serves_blobs]

    async def retrieve(self, address: str) -> str:
        """Return the hex payload of the newest blob sent by address.

        Args:
            address: The publisher's Ethereum address.

        Returns:
            The 0x-prefixed hex blob payload.

        Raises:
            BlobRetrievalError: If no provider could supply the blob, or the
                configured deadline elapsed.
        """
        if not self.providers:
            raise BlobRetrievalError("No blob data providers configured")

        failures: list[ProviderFailure] = []
        if self.config.deadline is None:
            return await self._retrieve(address, failures)
        try:
            return await asyncio.wait_for(
                self._retrieve(address, failures), self.config.deadline
            )
        except asyncio.TimeoutError as e:
            raise BlobRetrievalError(
                f"Blob retrieval for {address} exceeded deadline of {self.config.deadline}s",
                failures,
            ) from e

    async def _retrieve(self, address: str, failures: list[ProviderFailure]) -> str:
        async with httpx.AsyncClient(timeout=self.config.timeout) as client:
            transactions = await self._first_success(
                STEP_LOCATE,
                self.indexers,
                lambda p: p.latest_transactions(client, address, self.config.max_transactions),
                failures,
            )
            versioned_hash = await self._newest_blob_hash(client, transactions, failures)
            log.info("Latest blob for %s: %s", address, versioned_hash)
            return await self._first_success(
                STEP_FETCH,
                self.blob_sources,
                lambda p: p.blob_data(client, versioned_hash),
                failures,
            )

    async def _newest_blob_hash(
        self,
        client: httpx.AsyncClient,
        transactions: list[BlobTransaction],
        failures: list[ProviderFailure],
    ) -> str:
        """Walk transactions newest first and return the first blob hash found.

        A lookup failure aborts the walk; an older transaction is never used
        while a newer one is undecided.
        """
        seen: set[str] = set()
        ordered = sorted(transactions, key=lambda tx: tx.order_key, reverse=True)
        for tx in ordered:
            if tx.hash in seen:
                continue
            seen.add(tx.hash)
            hashes = list(tx.blob_versioned_hashes)
            if not hashes:
                hashes = await self._first_success(
                    STEP_LOOKUP,
                    self.lookups,
                    lambda p: p.blob_versioned_hashes(client, tx.hash),
                    failures,
                )
            if hashes:
                return hashes[0]
            log.debug("Transaction %s carries no blobs", tx.hash)

        raise BlobRetrievalError(
            f"No blob-carrying transaction among the {len(seen)} most recent transactions",
            failures,
        )

    async def _first_success(
        self,
        step: str,
        providers: list[BlobProvider],
        call: Callable[[BlobProvider], Awaitable[T]],
        failures: list[ProviderFailure],
    ) -> T:
        """Return the first successful provider result for a step."""
        if not providers:
            raise BlobRetrievalError(f"No provider configured for step '{step}'", failures)
        if self.config.fallback == "race":
            return await self._race(step, providers, call, failures)

        for provider in providers:
            try:
                result = await call(provider)
            except ProviderError as e:
                self._record(provider, step, e, failures)
                continue
            log.debug("%s succeeded at step '%s'", provider.name, step)
            return result

        raise BlobRetrievalError(f"All providers failed at step '{step}'", failures)

    async def _race(
        self,
        step: str,
        providers: list[BlobProvider],
        call: Callable[[BlobProvider], Awaitable[T]],
        failures: list[ProviderFailure],
    ) -> T:
        """Run all providers concurrently and return the first success."""
        tasks = [asyncio.ensure_future(call(p)) for p in providers]
        owners = dict(zip(tasks, providers))
        pending = set(tasks)
        try:
            while pending:
                done, pending = await asyncio.wait(
                    pending, return_when=asyncio.FIRST_COMPLETED
                )
                # Settle ties in priority order.
                for task in [t for t in tasks if t in done]:
                    try:
                        result = task.result()
                    except ProviderError as e:
                        self._record(owners[task], step, e, failures)
                        continue
                    log.debug("%s won the race at step '%s'", owners[task].name, step)
                    return result
        finally:
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)

        raise BlobRetrievalError(f"All providers failed at step '{step}'", failures)

    @staticmethod
    def _record(
        provider: BlobProvider,
        step: str,
        error: ProviderError,
        failures: list[ProviderFailure],
    ) -> None:
        log.warning("%s failed at step '%s': %s", provider.name, step, error)
        failures.append(ProviderFailure(provider=provider.name, step=step, message=str(error)))
