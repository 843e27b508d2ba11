import pytest

from ultrabms.infrastructure.security.password_hasher import PasswordHasher


def test_hash_and_verify():
    password_hash, salt, algo, iterations = PasswordHasher.hash_password("correct horse battery", iterations=1000)

    assert PasswordHasher.verify_password(
        "correct horse battery", password_hash=password_hash, password_salt=salt, iterations=iterations, algo=algo
    )
    assert not PasswordHasher.verify_password(
        "wrong horse battery", password_hash=password_hash, password_salt=salt, iterations=iterations, algo=algo
    )


def test_same_password_gets_different_salts():
    first = PasswordHasher.hash_password("correct horse battery", iterations=1000)
    second = PasswordHasher.hash_password("correct horse battery", iterations=1000)

    assert first[0] != second[0]
    assert first[1] != second[1]


def test_short_password_is_rejected():
    with pytest.raises(ValueError):
        PasswordHasher.hash_password("short")


def test_unknown_algorithm_never_verifies():
    password_hash, salt, _, iterations = PasswordHasher.hash_password("correct horse battery", iterations=1000)

    assert not PasswordHasher.verify_password(
        "correct horse battery", password_hash=password_hash, password_salt=salt, iterations=iterations, algo="md5"
    )


def test_corrupted_salt_does_not_raise():
    assert not PasswordHasher.verify_password(
        "correct horse battery", password_hash="@@@", password_salt="@@@", iterations=1000, algo="pbkdf2_sha256"
    )
