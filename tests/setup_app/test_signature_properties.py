"""Property-based tests for webhook signature verification.

Testing Configuration:
- Library: Hypothesis (Python)
- Properties: valid signatures verify, any single-byte mutation of body or
  signature is rejected, an empty secret accepts everything
"""

import hashlib
import hmac

from hypothesis import assume, given, settings, strategies as st

from src.setup_app.webhook.signature import (
    SIGNATURE_PREFIX,
    compute_signature,
    verify_signature,
)

HEX_DIGITS = "0123456789abcdef"


secrets = st.binary(min_size=1, max_size=64)
bodies = st.binary(max_size=4096)


@settings(max_examples=100)
@given(body=bodies, secret=secrets)
def test_reference_signature_verifies(body, secret):
    """sha256=hex(HMAC-SHA256(S, B)) is accepted."""
    signature = "sha256=" + hmac.new(secret, body, hashlib.sha256).hexdigest()
    assert verify_signature(body, signature, secret)


@settings(max_examples=100)
@given(body=st.binary(min_size=1, max_size=1024), secret=secrets, data=st.data())
def test_body_mutation_is_rejected(body, secret, data):
    """Changing any single byte of the body invalidates the signature."""
    signature = compute_signature(body, secret)
    index = data.draw(st.integers(min_value=0, max_value=len(body) - 1))
    delta = data.draw(st.integers(min_value=1, max_value=255))
    mutated = bytearray(body)
    mutated[index] ^= delta

    assert not verify_signature(bytes(mutated), signature, secret)


@settings(max_examples=100)
@given(body=bodies, secret=secrets, data=st.data())
def test_signature_suffix_mutation_is_rejected(body, secret, data):
    """Changing any single hex digit of the signature is rejected."""
    signature = compute_signature(body, secret)
    suffix = list(signature[len(SIGNATURE_PREFIX):])
    index = data.draw(st.integers(min_value=0, max_value=len(suffix) - 1))
    replacement = data.draw(st.sampled_from(HEX_DIGITS))
    assume(replacement != suffix[index])
    suffix[index] = replacement

    assert not verify_signature(body, SIGNATURE_PREFIX + "".join(suffix), secret)


@settings(max_examples=100)
@given(body=bodies, signature=st.one_of(st.none(), st.text(max_size=80)))
def test_empty_secret_accepts_any_signature(body, signature):
    """With verification disabled every delivery is accepted."""
    assert verify_signature(body, signature, "")
    assert verify_signature(body, signature, b"")
    assert verify_signature(body, signature, None)


@settings(max_examples=100)
@given(body=bodies, secret=secrets, header=st.text(max_size=80))
def test_headers_without_prefix_are_rejected(body, secret, header):
    """Anything not starting with the literal sha256= prefix fails."""
    assume(not header.startswith(SIGNATURE_PREFIX))
    assert not verify_signature(body, header, secret)
