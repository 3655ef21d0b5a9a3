"""GitHub webhook signature verification.

GitHub signs every delivery with the webhook secret and sends the result in
the ``X-Hub-Signature-256`` header as ``sha256=<hex digest>``. The digest is
an HMAC-SHA-256 over the raw request body, so verification must run on the
bytes exactly as received, before any JSON parsing.

An empty webhook secret turns verification off and every delivery is
accepted. This is an explicit operator opt-out intended for local
development; in production it lets anyone who can reach the endpoint
trigger repository setup.
"""

import hashlib
import hmac
from typing import Optional, Union

SIGNATURE_HEADER = "X-Hub-Signature-256"
SIGNATURE_PREFIX = "sha256="


def compute_signature(raw_body: bytes, shared_secret: Union[bytes, str]) -> str:
    """Compute the ``sha256=<hex>`` signature GitHub would send for a body."""
    if isinstance(shared_secret, str):
        shared_secret = shared_secret.encode("utf-8")
    digest = hmac.new(shared_secret, raw_body, hashlib.sha256).hexdigest()
    return SIGNATURE_PREFIX + digest


def verify_signature(
    raw_body: bytes,
    header_signature: Optional[str],
    shared_secret: Union[bytes, str, None],
) -> bool:
    """Verify a webhook delivery against the shared secret.

    Args:
        raw_body: The request body exactly as received.
        header_signature: Value of the ``X-Hub-Signature-256`` header.
        shared_secret: The configured webhook secret. Empty or None
            disables verification.

    Returns:
        True if the signature matches (or verification is disabled),
        False otherwise.
    """
    if not shared_secret:
        return True

    if not header_signature or not header_signature.startswith(SIGNATURE_PREFIX):
        return False

    expected = compute_signature(raw_body, shared_secret)[len(SIGNATURE_PREFIX):]
    received = header_signature[len(SIGNATURE_PREFIX):]
    return hmac.compare_digest(received.encode("utf-8"), expected.encode("utf-8"))
