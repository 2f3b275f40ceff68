"""
Bloom filter cascade interpretation.

Decoding and membership testing are delegated to a CascadeBackend supplied
by the caller. This module sanitizes the decoded layers and turns the
membership result into a revocation verdict.
"""

from __future__ import annotations

import importlib
import inspect
from collections.abc import Sequence, Sized
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from bfc_revocation.errors import CorruptCascadeError


@runtime_checkable
class FilterLayer(Protocol):
    """One level of a bloom filter cascade."""

    buckets: Sized


@runtime_checkable
class CascadeBackend(Protocol):
    """External bloom filter cascade implementation.

    ``decode`` turns a hex blob payload into ``(layers, salt)``;
    ``is_member`` reports whether an identifier is in the cascade's
    valid (non-revoked) set.
    """

    def decode(self, payload: str) -> tuple[Sequence[FilterLayer], Any]:
        ...

    def is_member(self, identifier: str, layers: Sequence[FilterLayer], salt: Any) -> bool:
        ...


@dataclass
class Cascade:
    """A decoded cascade with empty layers removed."""

    layers: list[FilterLayer]
    salt: Any

    @property
    def level_count(self) -> int:
        return len(self.layers)


def sanitize_layers(layers: Sequence[FilterLayer]) -> list[FilterLayer]:
    """Drop layers without buckets, keeping the order of the rest."""
    return [layer for layer in layers if len(layer.buckets) > 0]


class CascadeInterpreter:
    """Reconstructs cascades from blob payloads and checks revocation."""

    def __init__(self, backend: CascadeBackend) -> None:
        self.backend = backend

    def reconstruct(self, payload: str) -> Cascade:
        """Decode a blob payload into a sanitized Cascade.

        Raises:
            CorruptCascadeError: If the backend cannot decode the payload.
        """
        try:
            decoded = self.backend.decode(payload)
        except Exception as e:
            raise CorruptCascadeError(f"Failed to decode bloom filter cascade: {e}") from e

        try:
            layers, salt = decoded
            return Cascade(layers=sanitize_layers(layers), salt=salt)
        except (TypeError, ValueError, AttributeError) as e:
            raise CorruptCascadeError(f"Malformed bloom filter cascade: {e}") from e

    def is_revoked(self, revocation_index: str, cascade: Cascade) -> bool:
        """Check revocation; cascade members are the non-revoked credentials."""
        return not self.backend.is_member(revocation_index, cascade.layers, cascade.salt)


def load_cascade_backend(spec: str) -> CascadeBackend:
    """Import a backend from a ``module:attribute`` string.

    Classes are instantiated without arguments.

    Raises:
        ValueError: If the string is malformed or the attribute is missing.
        ImportError: If the module cannot be imported.
    """
    module_name, sep, attribute = spec.partition(":")
    if not sep or not module_name or not attribute:
        raise ValueError(f"Cascade backend must look like 'module:attribute', got {spec!r}")

    module = importlib.import_module(module_name)
    try:
        backend = getattr(module, attribute)
    except AttributeError as e:
        raise ValueError(f"Module {module_name!r} has no attribute {attribute!r}") from e

    if inspect.isclass(backend):
        backend = backend()
    if not isinstance(backend, CascadeBackend):
        raise ValueError(f"{spec!r} does not provide decode() and is_member()")
    return backend
