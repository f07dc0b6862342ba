"""Webhook signature and timestamp verification tests."""
import time

from app.ledger.signatures import compute_signature, verify_hmac, verify_timestamp

SECRET = "shared-secret"
BODY = b'{"type":"user.signup","data":{"partnerUserId":"bob"}}'


class TestVerifyHmac:
    """HMAC-SHA256 over "{timestamp}.{body}"."""

    def test_accepts_prefixed_signature(self):
        signature = "sha256=" + compute_signature(SECRET, "1700000000", BODY)
        assert verify_hmac(SECRET, "1700000000", signature, BODY) is True

    def test_accepts_bare_hex_signature(self):
        signature = compute_signature(SECRET, "1700000000", BODY)
        assert verify_hmac(SECRET, "1700000000", signature, BODY) is True

    def test_rejects_tampered_body(self):
        signature = "sha256=" + compute_signature(SECRET, "1700000000", BODY)
        assert verify_hmac(SECRET, "1700000000", signature, BODY.replace(b"bob", b"eve")) is False

    def test_rejects_other_timestamp(self):
        signature = "sha256=" + compute_signature(SECRET, "1700000000", BODY)
        assert verify_hmac(SECRET, "1700000001", signature, BODY) is False

    def test_rejects_wrong_secret(self):
        signature = "sha256=" + compute_signature("other-secret", "1700000000", BODY)
        assert verify_hmac(SECRET, "1700000000", signature, BODY) is False

    def test_malformed_hex_is_invalid_not_an_error(self):
        assert verify_hmac(SECRET, "1700000000", "sha256=invalid", BODY) is False
        assert verify_hmac(SECRET, "1700000000", "sha256=zz" * 32, BODY) is False

    def test_wrong_length_is_invalid(self):
        signature = compute_signature(SECRET, "1700000000", BODY)
        assert verify_hmac(SECRET, "1700000000", signature[:-2], BODY) is False

    def test_missing_signature_is_invalid(self):
        assert verify_hmac(SECRET, "1700000000", None, BODY) is False
        assert verify_hmac(SECRET, "1700000000", "", BODY) is False


class TestVerifyTimestamp:
    """Replay window checks."""

    def test_current_timestamp_is_fresh(self):
        assert verify_timestamp(str(int(time.time()))) is True

    def test_old_timestamp_is_rejected(self):
        ten_minutes_ago = str(int(time.time()) - 10 * 60)
        assert verify_timestamp(ten_minutes_ago) is False

    def test_future_timestamp_is_rejected(self):
        ten_minutes_ahead = str(int(time.time()) + 10 * 60)
        assert verify_timestamp(ten_minutes_ahead) is False

    def test_custom_drift(self):
        now = 1_700_000_000.0
        assert verify_timestamp("1699999990", max_drift_ms=10_000, now=now) is True
        assert verify_timestamp("1699999989", max_drift_ms=10_000, now=now) is False

    def test_non_numeric_timestamp_is_rejected(self):
        assert verify_timestamp("yesterday") is False
        assert verify_timestamp("nan") is False
        assert verify_timestamp(None) is False
