"""Unit tests for password hashing and session tokens."""

import pytest

from mortiscope.core.security import generate_session_token, hash_password, verify_password


class TestPasswordHashing:
    def test_hash_format(self):
        stored = hash_password("Correct-Horse-42")

        method, salt, digest = stored.split("$")
        assert method.startswith("scrypt:")
        assert len(salt) == 16
        assert digest

    def test_salted(self):
        assert hash_password("Correct-Horse-42") != hash_password("Correct-Horse-42")

    def test_verify_matching(self):
        assert verify_password("Correct-Horse-42", hash_password("Correct-Horse-42")) is True

    def test_verify_wrong_password(self):
        assert verify_password("Wrong-Horse-42", hash_password("Correct-Horse-42")) is False

    @pytest.mark.parametrize(
        "stored", [None, "", "plain-text", "bcrypt$abc$def", "scrypt:x:8:1$abc$def", "scrypt:32768:8:1$abc$def"]
    )
    def test_malformed_hashes_never_match(self, stored):
        assert verify_password("Correct-Horse-42", stored) is False


class TestSessionToken:
    def test_tokens_are_unique_and_url_safe(self):
        tokens = {generate_session_token() for _ in range(20)}

        assert len(tokens) == 20
        assert all("/" not in t and "+" not in t for t in tokens)

    def test_token_length_follows_entropy(self):
        assert len(generate_session_token(16)) < len(generate_session_token(64))
