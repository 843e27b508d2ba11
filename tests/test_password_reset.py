import logging
import re
from urllib.parse import parse_qs, urlparse

import pytest
from sqlalchemy import select

from conftest import API, DEFAULT_PASSWORD, bearer, login_user, register_user

from ultrabms.core.exceptions import InvalidResetTokenError, ResetRateLimitedError
from ultrabms.infrastructure.database.models.password_reset_token_model import PasswordResetTokenModel
from ultrabms.infrastructure.database.session import db_session
from ultrabms.infrastructure.security.jwt_provider import JwtProvider
from ultrabms.repositories.audit_log_repository import AuditLogRepository
from ultrabms.repositories.auth_attempt_repository import AuthAttemptRepository
from ultrabms.repositories.password_reset_token_repository import PasswordResetTokenRepository
from ultrabms.repositories.token_blacklist_repository import TokenBlacklistRepository
from ultrabms.repositories.user_repository import UserRepository
from ultrabms.repositories.user_session_repository import UserSessionRepository
from ultrabms.services.audit_service import AuditService
from ultrabms.services.credential_service import CredentialService
from ultrabms.services.password_reset_service import PasswordResetService
from ultrabms.services.session_service import SessionService
from ultrabms.services.token_blacklist_service import TokenBlacklistService

EMAIL = "forgetful@example.com"
NEW_PASSWORD = "N3wPassw0rd!!"
NOTIFIER_LOGGER = "ultrabms.infrastructure.notifications.logging_reset_notifier"


class RecordingNotifier:
    def __init__(self) -> None:
        self.requested = []
        self.changed = []

    def notify_reset_requested(self, event) -> None:
        self.requested.append(event)

    def notify_password_changed(self, event) -> None:
        self.changed.append(event)


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def user_id(app, clock) -> str:
    with db_session() as session:
        return CredentialService(UserRepository(session), clock=clock).register(
            email=EMAIL, password=DEFAULT_PASSWORD, first_name="Rui", last_name="Lima"
        ).id


def _service(session, clock, notifier) -> PasswordResetService:
    jwt_provider = JwtProvider()
    users = UserRepository(session)
    blacklist = TokenBlacklistService(TokenBlacklistRepository(session), clock=clock)
    return PasswordResetService(
        users=users,
        tokens=PasswordResetTokenRepository(session),
        attempts=AuthAttemptRepository(session),
        credentials=CredentialService(users, clock=clock),
        sessions=SessionService(UserSessionRepository(session), blacklist, jwt_provider, clock=clock),
        audit=AuditService(AuditLogRepository(session)),
        jwt_provider=jwt_provider,
        notifier=notifier,
        clock=clock,
    )


def _token_from(event) -> str:
    return parse_qs(urlparse(event.reset_link).query)["token"][0]


def _request(clock, notifier, email: str = EMAIL) -> None:
    with db_session() as session:
        _service(session, clock, notifier).initiate(email=email, ip_address="10.0.0.7")


# -------------------------
# Serviço
# -------------------------

def test_only_the_token_hash_is_stored(user_id, clock, notifier):
    _request(clock, notifier)

    [event] = notifier.requested
    token = _token_from(event)
    assert re.fullmatch(r"[0-9a-f]{64}", token)
    assert event.user_id == user_id

    with db_session() as session:
        rows = session.execute(select(PasswordResetTokenModel)).scalars().all()

    assert len(rows) == 1
    assert rows[0].token_hash == JwtProvider().hash_token(token)
    assert rows[0].token_hash != token
    assert rows[0].created_at == clock.now
    assert (rows[0].expires_at - rows[0].created_at).total_seconds() == 15 * 60


def test_unknown_email_is_silent(app, clock, notifier):
    _request(clock, notifier, email="nobody@example.com")

    assert notifier.requested == []


def test_requests_are_rate_limited_per_email(user_id, clock, notifier):
    for _ in range(3):
        _request(clock, notifier)

    with pytest.raises(ResetRateLimitedError) as exc:
        _request(clock, notifier)
    assert exc.value.status_code == 429
    assert "60 minutes" in str(exc.value)

    # o limite vale também para e-mails sem conta
    for _ in range(3):
        _request(clock, notifier, email="ghost@example.com")
    with pytest.raises(ResetRateLimitedError):
        _request(clock, notifier, email="ghost@example.com")

    clock.advance(minutes=61)
    _request(clock, notifier)
    assert len(notifier.requested) == 4


def test_new_request_invalidates_the_previous_link(user_id, clock, notifier):
    _request(clock, notifier)
    _request(clock, notifier)
    first, second = (_token_from(e) for e in notifier.requested)

    with db_session() as session:
        service = _service(session, clock, notifier)
        with pytest.raises(InvalidResetTokenError):
            service.validate(first)
        assert service.validate(second).valid


def test_validate_reports_remaining_minutes_and_expiry(user_id, clock, notifier):
    _request(clock, notifier)
    token = _token_from(notifier.requested[0])

    with db_session() as session:
        assert _service(session, clock, notifier).validate(token).remaining_minutes == 15

    clock.advance(minutes=16)

    with pytest.raises(InvalidResetTokenError) as exc:
        with db_session() as session:
            _service(session, clock, notifier).validate(token)
    assert str(exc.value) == "Reset link is expired"


def test_reset_is_single_use_and_changes_the_password(user_id, clock, notifier):
    _request(clock, notifier)
    token = _token_from(notifier.requested[0])

    with db_session() as session:
        _service(session, clock, notifier).reset(token=token, new_password=NEW_PASSWORD)

    with pytest.raises(InvalidResetTokenError) as exc:
        with db_session() as session:
            _service(session, clock, notifier).reset(token=token, new_password="An0therPassw0rd")
    assert str(exc.value) == "Reset link has already been used"

    with db_session() as session:
        user = CredentialService(UserRepository(session), clock=clock).verify_password(
            email=EMAIL, password=NEW_PASSWORD
        )
        assert user.id == user_id

    assert [e.user_id for e in notifier.changed] == [user_id]


def test_unknown_token_is_rejected(app, clock, notifier):
    with pytest.raises(InvalidResetTokenError):
        with db_session() as session:
            _service(session, clock, notifier).reset(token="f" * 64, new_password=NEW_PASSWORD)


# -------------------------
# HTTP
# -------------------------

def _link_token(caplog) -> str:
    links = [r.getMessage() for r in caplog.records if r.name == NOTIFIER_LOGGER]
    assert links, "no reset link was logged"
    return re.search(r"token=([0-9a-f]{64})", links[-1]).group(1)


def test_forgot_password_answers_the_same_for_unknown_accounts(app, client):
    register_user(client, EMAIL)

    known = client.post(f"{API}/auth/forgot-password", json={"email": EMAIL})
    unknown = client.post(f"{API}/auth/forgot-password", json={"email": "nobody@example.com"})

    assert known.status_code == unknown.status_code == 200
    assert known.get_json() == unknown.get_json()


def test_reset_flow_revokes_every_session(app, client, caplog):
    caplog.set_level(logging.INFO, logger=NOTIFIER_LOGGER)
    register_user(client, EMAIL)
    login = login_user(app.test_client(), EMAIL).get_json()

    assert client.post(f"{API}/auth/forgot-password", json={"email": EMAIL}).status_code == 200
    token = _link_token(caplog)

    check = client.get(f"{API}/auth/reset-password/validate", query_string={"token": token})
    assert check.status_code == 200
    assert check.get_json()["valid"] is True
    assert 0 < check.get_json()["remainingMinutes"] <= 15

    resp = client.post(f"{API}/auth/reset-password", json={"token": token, "newPassword": NEW_PASSWORD})
    assert resp.status_code == 200

    # sessões abertas antes do reset morrem
    assert client.get(f"{API}/users/me", headers=bearer(login["accessToken"])).status_code == 401
    assert client.post(f"{API}/auth/refresh", json={"refreshToken": login["refreshToken"]}).status_code == 401

    assert login_user(app.test_client(), EMAIL).status_code == 401
    assert login_user(app.test_client(), EMAIL, password=NEW_PASSWORD).status_code == 200

    again = client.post(f"{API}/auth/reset-password", json={"token": token, "newPassword": "An0therPassw0rd"})
    assert again.status_code == 400
    assert client.get(f"{API}/auth/reset-password/validate", query_string={"token": token}).status_code == 400


def test_reset_rejects_weak_password(app, client, caplog):
    caplog.set_level(logging.INFO, logger=NOTIFIER_LOGGER)
    register_user(client, EMAIL)
    client.post(f"{API}/auth/forgot-password", json={"email": EMAIL})
    token = _link_token(caplog)

    resp = client.post(f"{API}/auth/reset-password", json={"token": token, "newPassword": "short"})

    assert resp.status_code == 400
    # o link continua válido depois da recusa
    assert client.get(f"{API}/auth/reset-password/validate", query_string={"token": token}).status_code == 200


def test_forgot_password_rate_limit_returns_429(app, client):
    for _ in range(3):
        assert client.post(f"{API}/auth/forgot-password", json={"email": "spam@example.com"}).status_code == 200

    resp = client.post(f"{API}/auth/forgot-password", json={"email": "spam@example.com"})

    assert resp.status_code == 429


def test_validate_without_token_is_rejected(app, client):
    resp = client.get(f"{API}/auth/reset-password/validate")

    assert resp.status_code == 400
    assert resp.get_json()["error"] == "Reset link is invalid or expired"
