"""
Tests for password hashing and session token minting.
"""

import base64

from convenly.core.security import BcryptHasher, generate_session_token


def test_hash_is_salted():
    hasher = BcryptHasher(rounds=4)
    first = hasher.hash("Str0ng!Pass")
    second = hasher.hash("Str0ng!Pass")
    assert first != second
    assert hasher.verify("Str0ng!Pass", first)
    assert hasher.verify("Str0ng!Pass", second)


def test_verify_rejects_wrong_password():
    hasher = BcryptHasher(rounds=4)
    assert not hasher.verify("Wr0ng!Pass", hasher.hash("Str0ng!Pass"))


def test_verify_malformed_digest_returns_false():
    assert BcryptHasher(rounds=4).verify("Str0ng!Pass", "not-a-bcrypt-digest") is False


def test_session_token_is_urlsafe_256_bits():
    token = generate_session_token()
    assert len(token) == 43
    assert "=" not in token
    assert len(base64.urlsafe_b64decode(token + "=")) == 32


def test_session_tokens_are_unique():
    assert len({generate_session_token() for _ in range(100)}) == 100
