import os

# Ambiente de teste precisa estar definido antes de qualquer import do pacote
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.pop("DB_HOST", None)
os.environ.setdefault("JWT_SECRET", "test-secret-key-for-testing-only-do-not-use-in-production")
os.environ.setdefault("TOKEN_HASH_KEY", "test-token-hash-key-for-testing-only")
os.environ["PASSWORD_HASH_ITERATIONS"] = "1000"
os.environ["COOKIE_SECURE"] = "false"

from datetime import datetime, timedelta  # noqa: E402

import pytest  # noqa: E402

from ultrabms.infrastructure.database.base_model import BaseModel  # noqa: E402
from ultrabms.infrastructure.database.session import get_engine  # noqa: E402
from ultrabms.main import create_app  # noqa: E402

API = "/api/v1"
DEFAULT_PASSWORD = "Str0ngPassw0rd!"


class FakeClock:
    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2026, 1, 15, 12, 0, 0)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def app():
    app = create_app()
    app.config["TESTING"] = True

    engine = get_engine()
    BaseModel.metadata.create_all(bind=engine)
    yield app
    BaseModel.metadata.drop_all(bind=engine)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


def register_user(client, email: str, password: str = DEFAULT_PASSWORD, **extra):
    body = {"email": email, "password": password, "firstName": "Ana", "lastName": "Souza"}
    body.update(extra)
    return client.post(f"{API}/auth/register", json=body)


def login_user(client, email: str, password: str = DEFAULT_PASSWORD, user_agent: str | None = None):
    headers = {"User-Agent": user_agent} if user_agent else {}
    return client.post(f"{API}/auth/login", json={"email": email, "password": password}, headers=headers)


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def tenant(app, client):
    """Usuário TENANT cadastrado e logado: devolve (payload do login, e-mail)."""
    email = "tenant@example.com"
    assert register_user(client, email).status_code == 201
    resp = login_user(app.test_client(), email)
    assert resp.status_code == 200
    return resp.get_json(), email


@pytest.fixture
def admin(app):
    email = "admin@example.com"
    runner = app.test_cli_runner()
    result = runner.invoke(args=["create-admin", "--email", email, "--password", DEFAULT_PASSWORD])
    assert result.exit_code == 0, result.output

    resp = login_user(app.test_client(), email)
    assert resp.status_code == 200
    return resp.get_json(), email
