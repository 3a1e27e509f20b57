"""
Unit tests for PasswordHasher.
"""
import pytest
from unittest.mock import Mock, patch
from passlib.exc import MissingBackendError

from login_auth.login_auth.auth_service.auth import PasswordHasher
from login_auth.login_auth.auth_service.config import HashingConfig
from login_auth.login_auth.auth_service.errors import HashingError


@pytest.fixture
def hasher():
    # Low cost keeps the suite fast; behaviour does not depend on rounds.
    return PasswordHasher(rounds=1000)


def test_hash_then_verify_succeeds(hasher):
    record = hasher.hash("secret123")
    assert hasher.verify("secret123", record) is True


def test_verify_rejects_other_password(hasher):
    record = hasher.hash("secret123")
    assert hasher.verify("secret124", record) is False
    assert hasher.verify("", record) is False


def test_hash_never_equals_plaintext(hasher):
    assert hasher.hash("secret123") != "secret123"


def test_same_password_gets_fresh_salt(hasher):
    first = hasher.hash("secret123")
    second = hasher.hash("secret123")
    assert first != second
    assert hasher.verify("secret123", first)
    assert hasher.verify("secret123", second)


def test_record_is_self_describing(hasher):
    record = hasher.hash("secret123")
    scheme, rounds, salt, digest = record.lstrip("$").split("$")
    assert scheme == "pbkdf2-sha256"
    assert rounds == "1000"
    assert salt and digest


@pytest.mark.parametrize("record", [
    None,
    "",
    "not-a-hash",
    "$pbkdf2-sha256$1000$broken",
    # bcrypt is not a configured scheme
    "$2b$12$KIXQJ3Yq2Ux8r7QnJ4H0eO0m7bq3r2g5xCwV7m5m1e8n5oQ8mS1yW",
])
def test_verify_returns_false_for_unusable_records(hasher, record):
    assert hasher.verify("secret123", record) is False


def test_verify_returns_false_for_non_string_password(hasher):
    record = hasher.hash("secret123")
    assert hasher.verify(None, record) is False


def test_dummy_verify_is_always_false(hasher):
    assert hasher.dummy_verify("secret123") is False


def test_needs_rehash_when_cost_raised():
    old = PasswordHasher(rounds=1000).hash("secret123")
    upgraded = PasswordHasher(rounds=2000)

    assert upgraded.needs_rehash(old) is True
    # old records keep verifying under the new cost
    assert upgraded.verify("secret123", old) is True
    assert upgraded.needs_rehash(upgraded.hash("secret123")) is False


def test_needs_rehash_false_for_malformed(hasher):
    assert hasher.needs_rehash("garbage") is False
    assert hasher.needs_rehash("") is False


def test_hash_wraps_library_failure(hasher):
    hasher._context = Mock()
    hasher._context.hash.side_effect = OSError("entropy source unavailable")

    with pytest.raises(HashingError) as exc_info:
        hasher.hash("secret123")

    assert "entropy" not in str(exc_info.value)
    assert isinstance(exc_info.value.__cause__, OSError)


def test_verify_raises_on_missing_backend(hasher):
    hasher._context = Mock()
    hasher._context.verify.side_effect = MissingBackendError("no backend")

    with pytest.raises(HashingError):
        hasher.verify("secret123", "$pbkdf2-sha256$1000$abc$def")


def test_limiter_timeout_raises_hashing_error():
    hasher = PasswordHasher(rounds=1000, max_concurrent=1, acquire_timeout=0.01)
    assert hasher._limiter.acquire(timeout=1)
    try:
        with pytest.raises(HashingError):
            hasher.hash("secret123")
        with pytest.raises(HashingError):
            hasher.verify("secret123", "$pbkdf2-sha256$1000$abc$def")
    finally:
        hasher._limiter.release()

    # slot is usable again once released
    assert hasher.verify("secret123", hasher.hash("secret123"))


def test_from_config():
    config = HashingConfig(rounds=1500, max_concurrent=2, acquire_timeout=1.0)
    hasher = PasswordHasher.from_config(config)

    record = hasher.hash("secret123")
    assert record.startswith("$pbkdf2-sha256$1500$")
    assert hasher._acquire_timeout == 1.0


@pytest.mark.parametrize("record", [None, ""])
def test_empty_record_costs_a_full_hash_check(hasher, record):
    with patch.object(hasher, "dummy_verify", wraps=hasher.dummy_verify) as dummy:
        assert hasher.verify("secret123", record) is False
    dummy.assert_called_once_with("secret123")


def test_dummy_verify_raises_on_missing_backend(hasher):
    hasher._context = Mock()
    hasher._context.dummy_verify.side_effect = MissingBackendError("no backend")

    with pytest.raises(HashingError):
        hasher.dummy_verify("secret123")
