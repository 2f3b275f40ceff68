"""Shared fixtures for BFC revocation tests."""

import json
from dataclasses import dataclass

import jwt
import pytest

from bfc_revocation import APIConfig

PUBLISHER = "0x5aAeb6053F3E94C9b9A09f33669435E7Ef1BeAed"
OTHER_ADDRESS = "0xfb6916095ca1df60bb79ce92ce3ea74c37c5d359"
STATUS_ID = f"eip155:1:{PUBLISHER}:42"
BLOBSCAN_URL = "https://api.blobscan.test"
JWT_SECRET = "test-secret-key-with-at-least-32-bytes"


@dataclass
class FakeLayer:
    """Set-backed cascade layer."""

    buckets: frozenset


class FakeCascade:
    """Set-based stand-in for a bloom filter cascade library.

    The payload is hex encoded JSON: {"salt": ..., "layers": [[ids], ...]}.
    Membership walks the layers like a cascade: the first layer missing the
    identifier decides, odd depths meaning member.
    """

    def __init__(self):
        self.decoded_layers = None

    def decode(self, payload):
        raw = payload[2:] if payload.startswith("0x") else payload
        data = json.loads(bytes.fromhex(raw))
        layers = [FakeLayer(frozenset(layer)) for layer in data["layers"]]
        return layers, data["salt"]

    def is_member(self, identifier, layers, salt):
        self.decoded_layers = list(layers)
        for depth, layer in enumerate(layers):
            if identifier not in layer.buckets:
                return depth % 2 == 1
        return len(layers) % 2 == 1


def make_payload(layers, salt="salt"):
    """Encode layers the way FakeCascade decodes them."""
    return "0x" + json.dumps({"salt": salt, "layers": layers}).encode().hex()


def make_status(status_id=STATUS_ID):
    return {
        "id": status_id,
        "type": "BFCStatusEntry",
        "statusPurpose": "revocation",
        "statusPublisher": "did:ethr:" + PUBLISHER,
    }


def make_jsonld_vc(status_id=STATUS_ID):
    return {
        "@context": ["https://www.w3.org/ns/credentials/v2"],
        "id": "urn:uuid:test-123",
        "type": ["VerifiableCredential"],
        "issuer": "did:ethr:" + PUBLISHER,
        "credentialSubject": {"id": "did:example:holder"},
        "credentialStatus": make_status(status_id),
    }


def make_jwt_vc(claims):
    return jwt.encode(claims, JWT_SECRET, algorithm="HS256")


@pytest.fixture
def fake_cascade():
    return FakeCascade()


@pytest.fixture
def jsonld_vc():
    return make_jsonld_vc()


@pytest.fixture
def blobscan_config():
    return APIConfig(blob_scan_url=BLOBSCAN_URL)
