import pytest

from conftest import login_user, register_user

from ultrabms.infrastructure.database.session import db_session
from ultrabms.repositories.auth_attempt_repository import AuthAttemptRepository
from ultrabms.services.login_attempt_service import LoginAttemptService

EMAIL = "test@ultrabms.com"


def _record(clock, email: str = EMAIL, times: int = 1) -> int:
    count = 0
    with db_session() as session:
        service = LoginAttemptService(AuthAttemptRepository(session), clock=clock)
        for _ in range(times):
            count = service.record_failure(email, "10.0.0.1")
    return count


def _blocked(clock, email: str = EMAIL) -> bool:
    with db_session() as session:
        return LoginAttemptService(AuthAttemptRepository(session), clock=clock).is_blocked(email)


def test_new_email_is_not_blocked(app, clock):
    assert _blocked(clock) is False


def test_blocks_at_five_failures(app, clock):
    assert _record(clock, times=4) == 4
    assert _blocked(clock) is False

    assert _record(clock) == 5
    assert _blocked(clock) is True


def test_emails_are_tracked_independently(app, clock):
    _record(clock, email="blocked@ultrabms.com", times=5)
    _record(clock, email="Normal@UltraBMS.com")

    assert _blocked(clock, "blocked@ultrabms.com") is True
    assert _blocked(clock, "normal@ultrabms.com") is False


def test_window_expiry_unblocks(app, clock):
    _record(clock, times=5)

    clock.advance(minutes=16)

    assert _blocked(clock) is False


def test_reset_clears_attempts(app, clock):
    _record(clock, times=5)

    with db_session() as session:
        service = LoginAttemptService(AuthAttemptRepository(session), clock=clock)
        service.reset(EMAIL)
        assert service.attempts(EMAIL) == 0


@pytest.mark.parametrize("email", ["ghost@example.com", "real@example.com"])
def test_login_is_throttled_per_email_even_without_an_account(client, email):
    register_user(client, "real@example.com")

    for _ in range(5):
        assert login_user(client, email, password="bad-password").status_code == 401

    resp = login_user(client, email)

    assert resp.status_code == 423
    assert resp.get_json()["error"] == "Too many failed login attempts. Please try again later."
    # outros e-mails seguem normais
    assert login_user(client, "other@example.com", password="bad-password").status_code == 401


def test_successful_login_clears_failed_attempts(client):
    register_user(client, "flaky@example.com")
    for _ in range(4):
        login_user(client, "flaky@example.com", password="bad-password")

    assert login_user(client, "flaky@example.com").status_code == 200

    for _ in range(4):
        assert login_user(client, "flaky@example.com", password="bad-password").status_code == 401
    assert login_user(client, "flaky@example.com").status_code == 200
