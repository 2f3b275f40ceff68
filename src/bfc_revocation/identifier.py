"""
Status identifier resolution.

A BFCStatusEntry id is a colon-delimited, CAIP-10 style identifier such as
``eip155:1:0x5aAeb6053F3E94C9b9A09f33669435E7Ef1BeAed:42``. One segment is
the publisher address; the last segment is the revocation index.
"""

from __future__ import annotations

import logging

from eth_utils import is_hex_address, to_checksum_address

from bfc_revocation.errors import InvalidAddressError

log = logging.getLogger(__name__)


def is_valid_address(value: str) -> bool:
    """Check for a 20-byte hex address with a valid EIP-55 checksum.

    All-lowercase and all-uppercase addresses carry no checksum and are
    accepted as they are; mixed case must match the checksum.
    """
    if not is_hex_address(value):
        return False
    body = value[2:] if value[:2].lower() == "0x" else value
    if body == body.lower() or body == body.upper():
        return True
    return to_checksum_address("0x" + body)[2:] == body


def resolve_status_id(status_id: str, strict: bool = False) -> tuple[str, str]:
    """Split a status id into publisher address and revocation index.

    The first segment that is a valid Ethereum address is taken as the
    publisher. If several segments qualify the id is ambiguous: a warning
    is logged, or InvalidAddressError raised when ``strict`` is set.

    Args:
        status_id: The credentialStatus id.
        strict: Reject ids with more than one address segment.

    Returns:
        Tuple of (publisher_address, revocation_index).

    Raises:
        InvalidAddressError: If no segment is a valid address.
    """
    parts = status_id.split(":")
    revocation_index = parts[-1]

    candidates = [part for part in parts if is_valid_address(part)]
    address = candidates[0] if candidates else None

    if len(candidates) > 1:
        if strict:
            raise InvalidAddressError(
                f"Ambiguous status id {status_id!r}: {len(candidates)} address segments"
            )
        log.warning(
            "Status id %r has %d address segments, using %s",
            status_id, len(candidates), address,
        )

    if not address or not is_valid_address(address):
        raise InvalidAddressError(f"Invalid Ethereum address: {address}")

    return address, revocation_index
