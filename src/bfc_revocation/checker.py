"""
Revocation check pipeline.

Extracts the credential status, resolves the publisher address and
revocation index, retrieves the publisher's latest blob and tests the
index against the bloom filter cascade it encodes.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from typing import Any

from bfc_revocation.blob_retriever import BlobRetriever
from bfc_revocation.cascade import CascadeBackend, CascadeInterpreter
from bfc_revocation.config import APIConfig, StatusCheckOptions
from bfc_revocation.credential_status import extract_credential_status
from bfc_revocation.identifier import resolve_status_id
from bfc_revocation.progress import (
    STEP_CHECK_REVOCATION,
    STEP_EXTRACT_PUBLISHER_ADDRESS,
    STEP_RECONSTRUCT_BFC,
    STEP_RETRIEVE_BLOB_DATA,
    ProgressReporter,
)

log = logging.getLogger(__name__)


class RevocationChecker:
    """Checks VCs against bloom filter cascades published in blobs."""

    def __init__(
        self,
        api_config: APIConfig,
        cascade: CascadeBackend,
        retriever: BlobRetriever | None = None,
    ) -> None:
        """Initialize the checker.

        Args:
            api_config: Provider credentials and retrieval settings.
            cascade: Bloom filter cascade decoder and membership test.
            retriever: Custom blob retriever. Created from api_config if not provided.
        """
        self.api_config = api_config
        self.interpreter = CascadeInterpreter(cascade)
        self.retriever = retriever or BlobRetriever(api_config)

    async def is_revoked(
        self,
        vc: str | Mapping[str, Any],
        options: StatusCheckOptions | None = None,
    ) -> bool:
        """Check whether a VC has been revoked.

        Args:
            vc: A JSON-LD credential or a compact JWT.
            options: Optional progress sink and correlation id.

        Returns:
            True if the credential is revoked, False otherwise.

        Raises:
            MalformedCredentialError: If no credential status can be extracted.
            InvalidAddressError: If the status id holds no publisher address.
            BlobRetrievalError: If every blob provider failed.
            CorruptCascadeError: If the blob is not a valid cascade.
        """
        options = options or StatusCheckOptions()
        reporter = ProgressReporter(options.event_sink, options.correlation_id)

        with reporter.stage(STEP_EXTRACT_PUBLISHER_ADDRESS) as metrics:
            credential_status = extract_credential_status(vc)
            address, revocation_index = resolve_status_id(
                credential_status.id, strict=self.api_config.strict_status_id
            )
            metrics["address"] = address
        log.info("Checking revocation index %s published by %s", revocation_index, address)

        with reporter.stage(STEP_RETRIEVE_BLOB_DATA) as metrics:
            payload = await self.retriever.retrieve(address)
            metrics["payloadLength"] = len(payload)

        with reporter.stage(STEP_RECONSTRUCT_BFC) as metrics:
            cascade = self.interpreter.reconstruct(payload)
            metrics["levelCount"] = cascade.level_count

        with reporter.stage(STEP_CHECK_REVOCATION) as metrics:
            revoked = self.interpreter.is_revoked(revocation_index, cascade)
            metrics["isRevoked"] = revoked

        log.info("Revocation index %s of %s: revoked=%s", revocation_index, address, revoked)
        return revoked


async def is_revoked(
    vc: str | Mapping[str, Any],
    api_config: APIConfig,
    options: StatusCheckOptions | None = None,
    *,
    cascade: CascadeBackend,
) -> bool:
    """Convenience function to check whether a VC has been revoked.

    Args:
        vc: A JSON-LD credential or a compact JWT.
        api_config: Provider credentials and retrieval settings.
        options: Optional progress sink and correlation id.
        cascade: Bloom filter cascade decoder and membership test.

    Returns:
        True if the credential is revoked, False otherwise.
    """
    checker = RevocationChecker(api_config, cascade)
    return await checker.is_revoked(vc, options)


def is_revoked_sync(
    vc: str | Mapping[str, Any],
    api_config: APIConfig,
    options: StatusCheckOptions | None = None,
    *,
    cascade: CascadeBackend,
) -> bool:
    """Blocking variant of is_revoked for code without an event loop."""
    return asyncio.run(is_revoked(vc, api_config, options, cascade=cascade))
