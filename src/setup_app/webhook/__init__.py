"""GitHub webhook handling for the repository setup app.

This module authenticates and parses GitHub ``repository`` webhooks:
- signature.py - HMAC-SHA-256 verification of X-Hub-Signature-256
- handler.py - payload decoding and repository extraction
- models.py - event actions and the RepositoryRef target
"""

from .handler import WebhookHandler
from .models import REPOSITORY_EVENT, RepositoryAction, RepositoryRef
from .signature import (
    SIGNATURE_HEADER,
    SIGNATURE_PREFIX,
    compute_signature,
    verify_signature,
)

__all__ = [
    "REPOSITORY_EVENT",
    "RepositoryAction",
    "RepositoryRef",
    "SIGNATURE_HEADER",
    "SIGNATURE_PREFIX",
    "WebhookHandler",
    "compute_signature",
    "verify_signature",
]
