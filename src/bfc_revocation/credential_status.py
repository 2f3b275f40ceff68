"""
Credential status extraction.

Normalizes the credentialStatus entry of a VC into a CredentialStatus,
whether the VC is a JSON-LD object or a compact JWT.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import jwt

from bfc_revocation.errors import MalformedCredentialError

BFC_STATUS_TYPE = "BFCStatusEntry"
REVOCATION_PURPOSE = "revocation"

_COMPACT_JWT = re.compile(r"[A-Za-z0-9_-]+\.[A-Za-z0-9_-]+\.[A-Za-z0-9_-]*")


@dataclass(frozen=True)
class CredentialStatus:
    """Parsed BFCStatusEntry from a VC."""

    id: str
    type: str = BFC_STATUS_TYPE
    status_purpose: str = REVOCATION_PURPOSE
    status_publisher: str | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> CredentialStatus:
        """Create a CredentialStatus from its JSON form.

        Raises:
            MalformedCredentialError: If the entry is not a revocation BFCStatusEntry.
        """
        status_id = data.get("id")
        if not isinstance(status_id, str) or not status_id:
            raise MalformedCredentialError("credentialStatus.id must be a non-empty string")

        status_type = data.get("type")
        if status_type != BFC_STATUS_TYPE:
            raise MalformedCredentialError(
                f"Unsupported credentialStatus type: {status_type!r}"
            )

        purpose = data.get("statusPurpose")
        if purpose != REVOCATION_PURPOSE:
            raise MalformedCredentialError(f"Unsupported statusPurpose: {purpose!r}")

        return cls(
            id=status_id,
            type=status_type,
            status_purpose=purpose,
            status_publisher=data.get("statusPublisher"),
        )

    def to_dict(self) -> dict[str, Any]:
        data = {
            "id": self.id,
            "type": self.type,
            "statusPurpose": self.status_purpose,
        }
        if self.status_publisher is not None:
            data["statusPublisher"] = self.status_publisher
        return data


def is_compact_jwt(value: Any) -> bool:
    """Check whether value has the three-part compact JWS shape."""
    return isinstance(value, str) and _COMPACT_JWT.fullmatch(value.strip()) is not None


def extract_credential_status(vc: str | Mapping[str, Any]) -> CredentialStatus:
    """Extract the credential status from a Verifiable Credential.

    JSON-LD VCs are read directly. Compact JWT VCs are decoded without
    signature verification; the status is read from the payload, or from
    the nested ``vc`` claim of VC-JWT 1.1 tokens.

    Args:
        vc: A JSON-LD credential or a compact JWT string.

    Returns:
        The parsed CredentialStatus.

    Raises:
        MalformedCredentialError: If the VC shape is unknown, the token
            payload is not a JSON object, or no usable status is present.
    """
    if is_compact_jwt(vc):
        credential = _decode_jwt_payload(vc.strip())
    elif isinstance(vc, Mapping):
        credential = vc
    else:
        raise MalformedCredentialError(
            f"Unknown VC format: expected a JSON-LD object or a compact JWT, got {type(vc).__name__}"
        )

    status_data = credential.get("credentialStatus")
    if status_data is None and isinstance(credential.get("vc"), Mapping):
        status_data = credential["vc"].get("credentialStatus")
    if not status_data:
        raise MalformedCredentialError("VC does not contain a credentialStatus")

    return CredentialStatus.from_dict(_select_entry(status_data))


def _decode_jwt_payload(token: str) -> Mapping[str, Any]:
    try:
        payload = jwt.decode(token, options={"verify_signature": False})
    except jwt.PyJWTError as e:
        raise MalformedCredentialError(f"Invalid JWT: {e}") from e
    if not isinstance(payload, Mapping):
        raise MalformedCredentialError("JWT payload is not a JSON object")
    return payload


def _select_entry(status_data: Any) -> Mapping[str, Any]:
    """Pick the revocation BFCStatusEntry from a single entry or a list."""
    if isinstance(status_data, Mapping):
        return status_data
    if isinstance(status_data, list):
        for item in status_data:
            if (
                isinstance(item, Mapping)
                and item.get("type") == BFC_STATUS_TYPE
                and item.get("statusPurpose") == REVOCATION_PURPOSE
            ):
                return item
        raise MalformedCredentialError(
            f"No {BFC_STATUS_TYPE} revocation entry in credentialStatus"
        )
    raise MalformedCredentialError("credentialStatus must be an object or a list")
