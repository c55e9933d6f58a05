"""
PayDunya webhook signature generation and verification.

The gateway signs the raw request body with HMAC-SHA256 keyed by the
account's private key and sends the hex digest in X-Paydunya-Signature.
"""

import hashlib
import hmac

SIGNATURE_HEADER = "X-Paydunya-Signature"


def generate_signature(payload: bytes, secret: str) -> str:
    """Return the hex HMAC-SHA256 of ``payload`` under ``secret``."""
    return hmac.new(secret.encode("utf-8"), payload, hashlib.sha256).hexdigest()


def verify_signature(payload: bytes, signature: str | None, secret: str) -> bool:
    """
    Verify a webhook signature.

    Returns False for a missing signature or an empty secret.
    """
    if not signature or not secret:
        return False

    expected = generate_signature(payload, secret)

    # compare_digest rejects non-ASCII str, so compare bytes
    received = signature.strip().lower().encode("utf-8", "surrogateescape")
    return hmac.compare_digest(expected.encode("ascii"), received)
