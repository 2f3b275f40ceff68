"""
BFC Revocation - Verifiable Credential revocation checks against bloom
filter cascades published in Ethereum blob data.

Supports:
- JSON-LD and compact JWT credentials carrying a BFCStatusEntry
- CAIP-10 style status identifiers
- Blob retrieval through Moralis, Alchemy, Infura and Blobscan with fallback
- Pluggable bloom filter cascade backends
"""

from bfc_revocation.checker import RevocationChecker, is_revoked, is_revoked_sync
from bfc_revocation.config import APIConfig, StatusCheckOptions
from bfc_revocation.credential_status import CredentialStatus, extract_credential_status
from bfc_revocation.identifier import resolve_status_id
from bfc_revocation.cascade import CascadeBackend
from bfc_revocation.progress import ProgressEvent
from bfc_revocation.errors import (
    RevocationCheckError,
    MalformedCredentialError,
    InvalidAddressError,
    ProviderError,
    BlobRetrievalError,
    CorruptCascadeError,
)

__version__ = "0.1.0"

__all__ = [
    "RevocationChecker",
    "is_revoked",
    "is_revoked_sync",
    "APIConfig",
    "StatusCheckOptions",
    "CredentialStatus",
    "extract_credential_status",
    "resolve_status_id",
    "CascadeBackend",
    "ProgressEvent",
    "RevocationCheckError",
    "MalformedCredentialError",
    "InvalidAddressError",
    "ProviderError",
    "BlobRetrievalError",
    "CorruptCascadeError",
]
