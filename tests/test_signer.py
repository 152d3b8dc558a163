"""
Tests for HMAC request signing and canonical JSON.
"""
import hashlib
import hmac

import signer


class TestCanonicalJson:
    def test_sorted_and_compact(self):
        body = signer.canonical_json({"timestamp": "1700000000000", "nonce_str": "n-1"})
        assert body == b'{"nonce_str":"n-1","timestamp":"1700000000000"}'

    def test_insertion_order_does_not_matter(self):
        a = signer.canonical_json({"vcode": "123456", "session_id": "s"})
        b = signer.canonical_json({"session_id": "s", "vcode": "123456"})
        assert a == b

    def test_non_ascii_is_escaped(self):
        assert signer.canonical_json({"k": "é"}) == b'{"k":"\\u00e9"}'


class TestSign:
    def test_matches_reference_hmac(self):
        payload = b'{"nonce_str":"abc","timestamp":"1"}'
        expected = hmac.new(b"secret", payload, hashlib.sha256).hexdigest()
        assert signer.sign("secret", payload) == expected

    def test_deterministic(self):
        payload = b"same bytes"
        assert signer.sign("k", payload) == signer.sign("k", payload)

    def test_lowercase_hex_sha256_length(self):
        sig = signer.sign("k", b"x")
        assert len(sig) == 64
        assert sig == sig.lower()
        int(sig, 16)

    def test_changes_with_payload_byte(self):
        assert signer.sign("k", b"payload-a") != signer.sign("k", b"payload-b")

    def test_changes_with_secret(self):
        assert signer.sign("k1", b"payload") != signer.sign("k2", b"payload")


class TestVerify:
    def test_accepts_own_signature(self):
        sig = signer.sign("k", b"body")
        assert signer.verify("k", b"body", sig) is True

    def test_rejects_wrong_secret(self):
        sig = signer.sign("k", b"body")
        assert signer.verify("other", b"body", sig) is False

    def test_rejects_tampered_body(self):
        sig = signer.sign("k", b"body")
        assert signer.verify("k", b"body!", sig) is False

    def test_rejects_malformed_hex(self):
        assert signer.verify("k", b"body", "not-hex") is False
