"""Webhook authenticity and freshness checks."""
import hashlib
import hmac
import math
import time
from typing import Optional

SIGNATURE_PREFIX = "sha256="
DEFAULT_MAX_DRIFT_MS = 5 * 60 * 1000


def compute_signature(secret: str, timestamp: str, raw_body: bytes) -> str:
    """Hex HMAC-SHA256 of ``"{timestamp}.{raw_body}"``."""
    message = f"{timestamp}.".encode() + raw_body
    return hmac.new(secret.encode(), message, hashlib.sha256).hexdigest()


def verify_hmac(secret: str, timestamp: str, signature: Optional[str], raw_body: bytes) -> bool:
    """Check a provider signature in constant time.

    Accepts the signature with or without the ``sha256=`` prefix.
    Malformed input is reported as invalid, never raised.
    """
    if not signature or timestamp is None:
        return False

    received = signature.strip()
    if received.startswith(SIGNATURE_PREFIX):
        received = received[len(SIGNATURE_PREFIX):].strip()

    try:
        received_bytes = bytes.fromhex(received)
    except ValueError:
        return False

    expected_bytes = bytes.fromhex(compute_signature(secret, timestamp, raw_body))
    if len(received_bytes) != len(expected_bytes):
        return False

    return hmac.compare_digest(expected_bytes, received_bytes)


def verify_timestamp(
    timestamp: Optional[str],
    max_drift_ms: int = DEFAULT_MAX_DRIFT_MS,
    now: Optional[float] = None,
) -> bool:
    """Reject timestamps (unix seconds) further than ``max_drift_ms`` from now."""
    try:
        timestamp_ms = float(timestamp) * 1000
    except (TypeError, ValueError):
        return False
    if not math.isfinite(timestamp_ms):
        return False

    now_ms = (time.time() if now is None else now) * 1000
    return abs(now_ms - timestamp_ms) <= max_drift_ms
