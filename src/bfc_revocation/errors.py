"""
Error types raised by the revocation resolution pipeline.
"""

from __future__ import annotations

from dataclasses import dataclass


class RevocationCheckError(Exception):
    """Base class for all revocation check failures."""


class MalformedCredentialError(RevocationCheckError):
    """Raised when a VC carries no usable credentialStatus."""


class InvalidAddressError(RevocationCheckError):
    """Raised when no publisher address can be read from a status id."""


class ProviderError(RevocationCheckError):
    """Raised by a single blob data provider.

    Caught by the BlobRetriever, which moves on to the next provider.
    """


class CorruptCascadeError(RevocationCheckError):
    """Raised when a blob payload cannot be decoded as a bloom filter cascade."""


@dataclass
class ProviderFailure:
    """A failed provider attempt."""

    provider: str
    step: str
    message: str

    def __str__(self) -> str:
        return f"{self.provider} ({self.step}): {self.message}"


class BlobRetrievalError(RevocationCheckError):
    """Raised when no provider could supply the publisher's latest blob."""

    def __init__(self, message: str, failures: list[ProviderFailure] | None = None) -> None:
        self.failures = list(failures or [])
        if self.failures:
            details = "; ".join(str(f) for f in self.failures)
            message = f"{message} [{details}]"
        super().__init__(message)
