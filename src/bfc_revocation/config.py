"""
Configuration for revocation checks.

APIConfig bundles the blob data provider credentials; StatusCheckOptions
carries the optional per-call progress sink and correlation id.
"""

from __future__ import annotations

import os
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class NetworkEndpoints:
    """Provider hosts for one Ethereum network."""

    chain_id: int
    infura_url: str
    alchemy_url: str
    moralis_chain: str


NETWORKS: dict[str, NetworkEndpoints] = {
    "mainnet": NetworkEndpoints(
        chain_id=1,
        infura_url="https://mainnet.infura.io/v3/",
        alchemy_url="https://eth-mainnet.g.alchemy.com/v2/",
        moralis_chain="eth",
    ),
    "sepolia": NetworkEndpoints(
        chain_id=11155111,
        infura_url="https://sepolia.infura.io/v3/",
        alchemy_url="https://eth-sepolia.g.alchemy.com/v2/",
        moralis_chain="sepolia",
    ),
    "holesky": NetworkEndpoints(
        chain_id=17000,
        infura_url="https://holesky.infura.io/v3/",
        alchemy_url="https://eth-holesky.g.alchemy.com/v2/",
        moralis_chain="holesky",
    ),
}

FALLBACK_MODES = {"sequential", "race"}


@dataclass(frozen=True)
class APIConfig:
    """Credentials and tuning for blob retrieval.

    Any subset of the provider fields may be left unset; only the
    configured providers are queried.

    Attributes:
        infura_api_key: Infura project key (node provider).
        moralis_api_key: Moralis API key (indexing provider).
        alchemy_api_key: Alchemy API key (secondary indexing provider).
        blob_scan_url: Base URL of a Blobscan API, e.g. https://api.blobscan.com.
        network: Ethereum network the publisher posts to.
        timeout: Per-request HTTP timeout in seconds.
        deadline: Upper bound in seconds for the whole blob retrieval.
        fallback: "sequential" (default) or "race".
        max_transactions: Recent transactions requested from indexers.
        strict_status_id: Reject status ids with several address segments.
    """

    infura_api_key: str | None = None
    moralis_api_key: str | None = None
    alchemy_api_key: str | None = None
    blob_scan_url: str | None = None
    network: str = "mainnet"
    timeout: float = 30.0
    deadline: float | None = None
    fallback: str = "sequential"
    max_transactions: int = 10
    strict_status_id: bool = False

    def __post_init__(self) -> None:
        if self.network not in NETWORKS:
            raise ValueError(
                f"Unknown network {self.network!r}, expected one of {sorted(NETWORKS)}"
            )
        if self.fallback not in FALLBACK_MODES:
            raise ValueError(
                f"Unknown fallback mode {self.fallback!r}, expected one of {sorted(FALLBACK_MODES)}"
            )
        if self.timeout <= 0:
            raise ValueError("timeout must be positive")
        if self.deadline is not None and self.deadline <= 0:
            raise ValueError("deadline must be positive")
        if self.max_transactions < 1:
            raise ValueError("max_transactions must be at least 1")

    @property
    def endpoints(self) -> NetworkEndpoints:
        return NETWORKS[self.network]

    def configured_providers(self) -> list[str]:
        """Names of the providers that have credentials configured."""
        names = []
        if self.moralis_api_key:
            names.append("moralis")
        if self.infura_api_key:
            names.append("infura")
        if self.alchemy_api_key:
            names.append("alchemy")
        if self.blob_scan_url:
            names.append("blobscan")
        return names

    def __repr__(self) -> str:
        # Keys stay out of logs and tracebacks.
        return (
            f"APIConfig(providers={self.configured_providers()}, network={self.network!r}, "
            f"timeout={self.timeout}, deadline={self.deadline}, fallback={self.fallback!r})"
        )

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> APIConfig:
        """Build a config from environment variables.

        Reads INFURA_API_KEY, MORALIS_API_KEY, ALCHEMY_API_KEY, BLOBSCAN_URL,
        BFC_NETWORK, BFC_TIMEOUT, BFC_DEADLINE and BFC_FALLBACK.
        """
        env = os.environ if environ is None else environ
        deadline = env.get("BFC_DEADLINE")
        return cls(
            infura_api_key=env.get("INFURA_API_KEY") or None,
            moralis_api_key=env.get("MORALIS_API_KEY") or None,
            alchemy_api_key=env.get("ALCHEMY_API_KEY") or None,
            blob_scan_url=env.get("BLOBSCAN_URL") or None,
            network=env.get("BFC_NETWORK", "mainnet"),
            timeout=float(env.get("BFC_TIMEOUT", "30")),
            deadline=float(deadline) if deadline else None,
            fallback=env.get("BFC_FALLBACK", "sequential"),
        )


@dataclass
class StatusCheckOptions:
    """Optional per-call observability settings.

    Attributes:
        event_sink: Called with every ProgressEvent. Never required.
        correlation_id: Copied onto every emitted event.
    """

    event_sink: Callable[[Any], object] | None = None
    correlation_id: str | None = None
