"""Tests for password hashing."""

import pytest

from services.errors import HashingError
from services.passwords import PasswordHasher
from tests.factories import TEST_HASH_METHOD


@pytest.fixture()
def hasher() -> PasswordHasher:
    return PasswordHasher(TEST_HASH_METHOD)


@pytest.mark.parametrize("password", ["Mentori123", "correct horse battery staple", "ünïcødé-pässwörd"])
def test_verify_accepts_original_password(hasher, password):
    assert hasher.verify(password, hasher.hash(password)) is True


def test_verify_rejects_other_password(hasher):
    stored = hasher.hash("first-password")

    assert hasher.verify("second-password", stored) is False


def test_hashes_are_salted(hasher):
    first = hasher.hash("same-password")
    second = hasher.hash("same-password")

    assert first != second
    assert hasher.verify("same-password", first)
    assert hasher.verify("same-password", second)


def test_default_method_is_scrypt():
    stored = PasswordHasher().hash("slow-and-salted")

    assert stored.startswith("scrypt:")


@pytest.mark.parametrize("stored", [None, "", "not-a-hash", "md5$abc$def"])
def test_verify_never_raises_on_bad_hash(hasher, stored):
    assert hasher.verify("anything", stored) is False


def test_unknown_method_raises_hashing_error():
    with pytest.raises(HashingError):
        PasswordHasher("rot13").hash("password123")
