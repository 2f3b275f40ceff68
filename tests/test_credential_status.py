"""Tests for credential status extraction and status id resolution."""

import pytest

from bfc_revocation import (
    CredentialStatus,
    InvalidAddressError,
    MalformedCredentialError,
    extract_credential_status,
    resolve_status_id,
)
from bfc_revocation.credential_status import is_compact_jwt
from bfc_revocation.identifier import is_valid_address

from conftest import (
    OTHER_ADDRESS,
    PUBLISHER,
    STATUS_ID,
    make_jsonld_vc,
    make_jwt_vc,
    make_status,
)


class TestExtractCredentialStatus:
    """Tests for extract_credential_status."""

    def test_jsonld(self, jsonld_vc):
        """Test reading credentialStatus from a JSON-LD VC."""
        status = extract_credential_status(jsonld_vc)

        assert status.id == STATUS_ID
        assert status.type == "BFCStatusEntry"
        assert status.status_purpose == "revocation"
        assert status.status_publisher == "did:ethr:" + PUBLISHER

    def test_jwt(self):
        """Test reading credentialStatus from a JWT payload."""
        token = make_jwt_vc({"iss": "did:example:issuer", "credentialStatus": make_status()})

        assert is_compact_jwt(token)
        assert extract_credential_status(token).id == STATUS_ID

    def test_jwt_and_jsonld_are_equivalent(self, jsonld_vc):
        """Test that both encodings yield equal records."""
        token = make_jwt_vc({"credentialStatus": make_status()})

        assert extract_credential_status(token) == extract_credential_status(jsonld_vc)

    def test_jwt_with_nested_vc_claim(self):
        """Test VC-JWT tokens carrying the credential under the vc claim."""
        token = make_jwt_vc({"iss": "did:example:issuer", "vc": make_jsonld_vc()})

        assert extract_credential_status(token).id == STATUS_ID

    def test_status_list(self):
        """Test picking the BFC revocation entry out of a list."""
        vc = make_jsonld_vc()
        vc["credentialStatus"] = [
            {"id": "https://example.com/status#1", "type": "StatusList2021Entry",
             "statusPurpose": "suspension"},
            make_status(),
        ]

        assert extract_credential_status(vc).id == STATUS_ID

    def test_status_list_without_bfc_entry(self):
        vc = make_jsonld_vc()
        vc["credentialStatus"] = [
            {"id": "x", "type": "StatusList2021Entry", "statusPurpose": "revocation"},
        ]

        with pytest.raises(MalformedCredentialError):
            extract_credential_status(vc)

    def test_missing_status(self):
        """Test VCs without credentialStatus in either encoding."""
        vc = make_jsonld_vc()
        del vc["credentialStatus"]

        with pytest.raises(MalformedCredentialError, match="credentialStatus"):
            extract_credential_status(vc)
        with pytest.raises(MalformedCredentialError, match="credentialStatus"):
            extract_credential_status(make_jwt_vc({"iss": "did:example:issuer"}))

    @pytest.mark.parametrize("vc", ["not a credential", "a.b", 42, None, ["a", "b"]])
    def test_unknown_format(self, vc):
        with pytest.raises(MalformedCredentialError):
            extract_credential_status(vc)

    def test_jwt_with_invalid_payload(self):
        """Test a three-part token whose payload is not JSON."""
        with pytest.raises(MalformedCredentialError, match="Invalid JWT"):
            extract_credential_status("eyJhbGciOiJIUzI1NiJ9.bm90LWpzb24.c2ln")

    def test_wrong_purpose(self):
        status = make_status()
        status["statusPurpose"] = "suspension"

        with pytest.raises(MalformedCredentialError, match="statusPurpose"):
            CredentialStatus.from_dict(status)

    def test_round_trip_dict(self):
        status = CredentialStatus.from_dict(make_status())
        assert status.to_dict() == make_status()


class TestResolveStatusId:
    """Tests for resolve_status_id."""

    @pytest.mark.parametrize(
        "status_id",
        [
            f"eip155:1:{PUBLISHER}:42",
            f"{PUBLISHER}:42",
            f"eip155:{PUBLISHER}:11155111:42",
            f"bfc:eip155:1:{PUBLISHER}:42",
        ],
    )
    def test_address_in_any_position(self, status_id):
        """Test that the single address segment is found wherever it sits."""
        assert resolve_status_id(status_id) == (PUBLISHER, "42")

    def test_lowercase_address(self):
        assert resolve_status_id(f"eip155:1:{OTHER_ADDRESS}:7") == (OTHER_ADDRESS, "7")

    def test_uppercase_address(self):
        upper = "0x" + PUBLISHER[2:].upper()
        assert resolve_status_id(f"eip155:1:{upper}:7") == (upper, "7")

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (PUBLISHER, True),
            (PUBLISHER.lower(), True),
            ("0x" + PUBLISHER[2:].upper(), True),
            ("0x5AAeb6053F3E94C9b9A09f33669435E7Ef1BeAed", False),
            ("0x5aaeb6053F3E94C9b9A09f33669435E7Ef1BeAed", False),
            ("0x1234", False),
            ("42", False),
        ],
    )
    def test_is_valid_address_checks_mixed_case_checksum(self, value, expected):
        assert is_valid_address(value) is expected

    @pytest.mark.parametrize(
        "status_id",
        [
            "no-address-here:42",
            "eip155:1:0x1234:42",
            # Mixed case with a broken checksum
            "eip155:1:0x5AAeb6053F3E94C9b9A09f33669435E7Ef1BeAed:42",
            "",
        ],
    )
    def test_no_address(self, status_id):
        with pytest.raises(InvalidAddressError):
            resolve_status_id(status_id)

    def test_index_is_last_segment_even_if_address(self):
        """Test that the last segment is the index even when it looks like an address."""
        address, index = resolve_status_id(f"eip155:1:{PUBLISHER}:{OTHER_ADDRESS}")

        assert address == PUBLISHER
        assert index == OTHER_ADDRESS

    def test_ambiguous_takes_first(self, caplog):
        address, _ = resolve_status_id(f"{OTHER_ADDRESS}:{PUBLISHER}:42")

        assert address == OTHER_ADDRESS
        assert "2 address segments" in caplog.text

    def test_ambiguous_strict(self):
        with pytest.raises(InvalidAddressError, match="Ambiguous"):
            resolve_status_id(f"{OTHER_ADDRESS}:{PUBLISHER}:42", strict=True)
