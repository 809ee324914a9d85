"""
Module: test_signing.py
Description: Unit tests for canonical encoding and HMAC signatures.
"""

import hashlib
import hmac
import json

from content_webhooks.delivery.signing import canonical_json, sign, sign_body, verify
from content_webhooks.models.payload import Payload, TestPayload
from content_webhooks.models.subscription import EventKind


def _payload(**overrides):
    data = dict(
        event=EventKind.CREATE,
        entity_type="node",
        entity_bundle="article",
        entity_id=42,
        entity_uuid="6f1c2b8e",
        timestamp=1700000000,
        entity_label="Hello world",
    )
    data.update(overrides)
    return Payload(**data)


class TestCanonicalJson:
    """Test cases for canonical_json."""

    def test_keys_sorted_and_compact(self):
        """Test the encoding is sorted and has no whitespace."""
        body = canonical_json(_payload())

        assert body == (
            b'{"entity_bundle":"article","entity_id":42,"entity_label":"Hello world",'
            b'"entity_type":"node","entity_uuid":"6f1c2b8e","event":"create","timestamp":1700000000}'
        )

    def test_absent_optional_fields_omitted(self):
        """Test None-valued optional fields never appear on the wire."""
        decoded = json.loads(canonical_json(_payload()))

        assert "entity_url" not in decoded
        assert "author" not in decoded
        assert "published" not in decoded

    def test_dict_and_model_encode_identically(self):
        """Test a plain dict with the same content yields the same bytes."""
        payload = _payload()
        assert canonical_json(payload.to_wire()) == canonical_json(payload)

    def test_non_ascii_is_utf8(self):
        """Test labels keep their characters instead of \\u escapes."""
        body = canonical_json(_payload(entity_label="Crème brûlée"))
        assert "Crème brûlée".encode("utf-8") in body


class TestSign:
    """Test cases for sign and verify."""

    def test_signature_format(self):
        """Test signature is sha256= followed by the HMAC hex digest."""
        payload = _payload()
        expected = hmac.new(b"s3cret", canonical_json(payload), hashlib.sha256).hexdigest()

        assert sign(payload, "s3cret") == f"sha256={expected}"

    def test_deterministic(self):
        """Test signing twice gives the same result."""
        payload = _payload()
        assert sign(payload, "s3cret") == sign(payload, "s3cret")

    def test_empty_secret_skips_signing(self):
        """Test no signature is produced without a secret."""
        assert sign(_payload(), "") is None

    def test_round_trip(self):
        """Test verify accepts what sign produced."""
        for payload in (_payload(), _payload(event=EventKind.DELETE, entity_id="abc"), TestPayload(timestamp=1)):
            signature = sign(payload, "another-secret")
            assert verify(payload, signature, "another-secret") is True

    def test_tampered_payload_rejected(self):
        """Test changing one byte of the body invalidates the signature."""
        payload = _payload()
        body = canonical_json(payload)
        signature = sign_body(body, "s3cret")

        tampered = body.replace(b"42", b"43", 1)

        assert verify(body, signature, "s3cret") is True
        assert verify(tampered, signature, "s3cret") is False

    def test_wrong_secret_rejected(self):
        """Test a signature made with another secret does not verify."""
        payload = _payload()
        assert verify(payload, sign(payload, "s3cret"), "other") is False

    def test_missing_signature_or_secret_rejected(self):
        """Test verify fails closed."""
        payload = _payload()
        assert verify(payload, None, "s3cret") is False
        assert verify(payload, sign(payload, "s3cret"), "") is False

    def test_non_ascii_signature_rejected(self):
        """Test a header with non-ASCII characters returns False instead of raising."""
        assert verify({"a": 1}, "sha256=é", "secret") is False
        assert verify(_payload(), "sha256=é" * 10, "s3cret") is False
