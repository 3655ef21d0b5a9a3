"""Sealed box encryption for GitHub Actions secrets."""

from src.setup_app.crypto.sealed_box import (
    AuthenticationFailure,
    InvalidKeyLength,
    RandomnessUnavailable,
    SealedBoxError,
    derive_nonce,
    open_sealed,
    seal,
)

__all__ = [
    "AuthenticationFailure",
    "InvalidKeyLength",
    "RandomnessUnavailable",
    "SealedBoxError",
    "derive_nonce",
    "open_sealed",
    "seal",
]
