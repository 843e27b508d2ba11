import pytest

from ultrabms.core.exceptions import InvalidTokenError, TokenExpiredError
from ultrabms.infrastructure.security.jwt_provider import JwtProvider, TokenType, VerificationFailure

SECRET = "primary-secret-for-jwt-tests-0123456789"
OLD_SECRET = "previous-secret-for-jwt-tests-9876543210"


@pytest.fixture
def provider() -> JwtProvider:
    return JwtProvider(secret=SECRET, previous_secrets=[], hash_key="hash-key-for-tests")


def test_access_token_carries_identity_claims(provider: JwtProvider):
    token = provider.issue_access_token(subject="user-1", session_id="sess-1", email="a@example.com", role="TENANT")

    claims = provider.decode(token, expected_type=TokenType.ACCESS)

    assert claims["sub"] == "user-1"
    assert claims["sid"] == "sess-1"
    assert claims["email"] == "a@example.com"
    assert claims["role"] == "TENANT"
    assert claims["typ"] == "access"
    assert claims["exp"] - claims["iat"] == provider.access_ttl_seconds


def test_refresh_token_is_minimal(provider: JwtProvider):
    token = provider.issue_refresh_token(subject="user-1", session_id="sess-1")

    claims = provider.decode(token, expected_type=TokenType.REFRESH)

    assert "email" not in claims
    assert "role" not in claims
    assert claims["exp"] - claims["iat"] == provider.refresh_ttl_seconds


def test_tokens_issued_back_to_back_are_distinct(provider: JwtProvider):
    a = provider.issue_refresh_token(subject="user-1", session_id="sess-1")
    b = provider.issue_refresh_token(subject="user-1", session_id="sess-1")

    assert a != b
    assert provider.hash_token(a) != provider.hash_token(b)


def test_expired_token_is_reported_as_expired(provider: JwtProvider):
    token = provider.issue_token(subject="u", session_id="s", token_type=TokenType.ACCESS, ttl_seconds=-30)

    result = provider.verify(token)

    assert not result.ok
    assert result.failure is VerificationFailure.EXPIRED
    with pytest.raises(TokenExpiredError):
        provider.decode(token)


def test_token_signed_with_unknown_key_fails_signature(provider: JwtProvider):
    other = JwtProvider(secret="some-other-secret-that-is-long-enough", previous_secrets=[])
    token = other.issue_access_token(subject="u", session_id="s", email="x@example.com", role="TENANT")

    assert provider.verify(token).failure is VerificationFailure.SIGNATURE_INVALID


@pytest.mark.parametrize("token", [None, "", "not-a-jwt", "a.b.c"])
def test_garbage_is_malformed(provider: JwtProvider, token):
    result = provider.verify(token)

    assert result.failure is VerificationFailure.MALFORMED
    with pytest.raises(InvalidTokenError):
        provider.decode(token)


def test_previous_secret_still_validates_after_rotation():
    before = JwtProvider(secret=OLD_SECRET, previous_secrets=[])
    token = before.issue_access_token(subject="u", session_id="s", email="x@example.com", role="TENANT")

    after = JwtProvider(secret=SECRET, previous_secrets=[OLD_SECRET])

    assert after.verify(token).ok


def test_wrong_token_type_is_rejected(provider: JwtProvider):
    refresh = provider.issue_refresh_token(subject="u", session_id="s")

    with pytest.raises(InvalidTokenError):
        provider.decode(refresh, expected_type=TokenType.ACCESS)


def test_hash_is_deterministic_hex(provider: JwtProvider):
    token = provider.issue_refresh_token(subject="u", session_id="s")

    digest = provider.hash_token(token)

    assert digest == provider.hash_token(token)
    assert len(digest) == 64
    int(digest, 16)
