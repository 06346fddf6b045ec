"""
Tests for password hashing helpers.
"""
from bookstore.core.security import hash_password, is_password_hash, verify_password


class TestPasswordHashing:
    """Test hash_password / verify_password."""

    def test_hash_and_verify(self):
        digest = hash_password("hunter22", rounds=4)
        assert is_password_hash(digest)
        assert digest.startswith("$2b$04$")
        assert verify_password("hunter22", digest) is True
        assert verify_password("hunter23", digest) is False

    def test_salted(self):
        assert hash_password("same", rounds=4) != hash_password("same", rounds=4)

    def test_is_password_hash(self):
        assert is_password_hash("plain") is False
        assert is_password_hash("") is False
        assert is_password_hash(None) is False

    def test_verify_rejects_bad_input(self):
        digest = hash_password("x" * 72, rounds=4)
        assert verify_password("", digest) is False
        assert verify_password("anything", "not-a-hash") is False
        assert verify_password("x" * 73, digest) is False
