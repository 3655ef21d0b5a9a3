"""Anonymous public-key sealing compatible with libsodium's crypto_box_seal.

A sealed box lets anyone encrypt a message to a recipient's X25519 public
key without revealing (or authenticating) the sender. GitHub uses this
construction for Actions secrets: the repository exposes a public key and
only GitHub holds the matching private key.

Wire format of a sealed message:

    ephemeral_public_key (32 bytes) || box ciphertext (len(plaintext) + 16)

Construction:
1. A fresh ephemeral X25519 key pair is generated for every seal.
2. nonce = BLAKE2b-192(ephemeral_public_key || recipient_public_key)
3. ciphertext = crypto_box(plaintext, nonce, recipient_public_key,
   ephemeral_private_key), i.e. X25519 + XSalsa20-Poly1305.

The nonce is a deterministic function of both public keys, so the opener
can recompute it without extra metadata. Deriving it any other way (for
example by truncating the ephemeral key) breaks interoperability with
standard openers.
"""

import hashlib
import logging
import os
from typing import Optional

from nacl import bindings
from nacl.exceptions import CryptoError

logger = logging.getLogger(__name__)


KEY_BYTES = bindings.crypto_box_PUBLICKEYBYTES
NONCE_BYTES = bindings.crypto_box_NONCEBYTES
MAC_BYTES = 16
SEAL_OVERHEAD = KEY_BYTES + MAC_BYTES


class SealedBoxError(Exception):
    """Base class for sealed box failures."""


class InvalidKeyLength(SealedBoxError):
    """Raised when a public or private key is not exactly 32 bytes.

    Attributes:
        key_kind: Which key was rejected ("public" or "private").
        length: The length that was supplied.
    """

    def __init__(self, key_kind: str, length: int):
        self.key_kind = key_kind
        self.length = length
        super().__init__(
            f"{key_kind} key must be {KEY_BYTES} bytes, got {length}"
        )


class RandomnessUnavailable(SealedBoxError):
    """Raised when the operating system cannot supply secure random bytes."""


class AuthenticationFailure(SealedBoxError):
    """Raised when a sealed message fails authentication on open."""


def _require_key(key: bytes, key_kind: str) -> bytes:
    if not isinstance(key, (bytes, bytearray)):
        raise InvalidKeyLength(key_kind, -1)
    if len(key) != KEY_BYTES:
        raise InvalidKeyLength(key_kind, len(key))
    return bytes(key)


def derive_nonce(ephemeral_public_key: bytes, recipient_public_key: bytes) -> bytes:
    """Derive the 24-byte sealed box nonce from the two public keys.

    Args:
        ephemeral_public_key: The sender's single-use public key.
        recipient_public_key: The recipient's public key.

    Returns:
        BLAKE2b digest of ``ephemeral_public_key || recipient_public_key``
        with a 24-byte output length.
    """
    digest = hashlib.blake2b(digest_size=NONCE_BYTES)
    digest.update(ephemeral_public_key)
    digest.update(recipient_public_key)
    return digest.digest()


def _generate_ephemeral_private_key() -> bytes:
    try:
        return os.urandom(KEY_BYTES)
    except (NotImplementedError, OSError) as exc:
        logger.error("Secure randomness unavailable, aborting seal")
        raise RandomnessUnavailable(
            "operating system entropy source is unavailable"
        ) from exc


def seal(plaintext: bytes, recipient_public_key: bytes) -> bytes:
    """Seal a plaintext to a recipient's X25519 public key.

    Every call generates its own ephemeral key pair, so sealing the same
    plaintext twice yields different ciphertexts that both open to the
    same plaintext.

    Args:
        plaintext: The bytes to encrypt.
        recipient_public_key: The recipient's 32-byte X25519 public key.

    Returns:
        The sealed message: ephemeral public key followed by the
        authenticated ciphertext.

    Raises:
        InvalidKeyLength: If the public key is not 32 bytes.
        RandomnessUnavailable: If no secure randomness is available.
    """
    recipient_public_key = _require_key(recipient_public_key, "public")

    ephemeral_private_key = _generate_ephemeral_private_key()
    ephemeral_public_key = bindings.crypto_scalarmult_base(ephemeral_private_key)

    nonce = derive_nonce(ephemeral_public_key, recipient_public_key)
    ciphertext = bindings.crypto_box(
        bytes(plaintext), nonce, recipient_public_key, ephemeral_private_key
    )

    # Single use: the ephemeral private key must not outlive this call.
    del ephemeral_private_key

    return ephemeral_public_key + ciphertext


def open_sealed(
    sealed: bytes,
    recipient_private_key: bytes,
    recipient_public_key: Optional[bytes] = None,
) -> bytes:
    """Open a sealed message with the recipient's key pair.

    Args:
        sealed: A message produced by :func:`seal` or libsodium's
            ``crypto_box_seal``.
        recipient_private_key: The recipient's 32-byte private key.
        recipient_public_key: The matching public key. Derived from the
            private key when omitted.

    Returns:
        The original plaintext.

    Raises:
        InvalidKeyLength: If a key is not 32 bytes.
        AuthenticationFailure: If the message is truncated or fails the MAC
            check. No partial plaintext is ever returned.
    """
    recipient_private_key = _require_key(recipient_private_key, "private")
    if recipient_public_key is None:
        recipient_public_key = bindings.crypto_scalarmult_base(recipient_private_key)
    else:
        recipient_public_key = _require_key(recipient_public_key, "public")

    sealed = bytes(sealed)
    if len(sealed) < SEAL_OVERHEAD:
        raise AuthenticationFailure("sealed message is too short")

    ephemeral_public_key = sealed[:KEY_BYTES]
    ciphertext = sealed[KEY_BYTES:]
    nonce = derive_nonce(ephemeral_public_key, recipient_public_key)

    try:
        return bindings.crypto_box_open(
            ciphertext, nonce, ephemeral_public_key, recipient_private_key
        )
    except CryptoError as exc:
        raise AuthenticationFailure("sealed message failed authentication") from exc
