# ultrabms/config/settings.py
from urllib.parse import quote_plus

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # 🔵 Banco principal: URL completa ou partes do PostgreSQL
    database_url: str = "sqlite:///./ultrabms.db"
    db_host: str | None = None
    db_port: int = 5432
    db_name: str | None = None
    db_user: str | None = None
    db_password: str | None = None
    db_timeout_seconds: int = 10

    environment: str = "development"
    debug: bool = False
    log_level: str = "INFO"

    api_prefix: str = "/api/v1"
    cors_origins_raw: str = "http://localhost:3000,http://127.0.0.1:3000"

    # 🔐 JWT
    jwt_secret: str = "dev-secret-change-me-please-32-bytes-min"
    jwt_previous_secrets_raw: str = ""
    jwt_issuer: str = "ultrabms-api"
    jwt_audience: str = "ultrabms-web"
    jwt_access_minutes: int = 15
    jwt_refresh_minutes: int = 60 * 24 * 7
    token_hash_key: str | None = None

    password_hash_iterations: int = 600_000

    # 🔒 Lockout
    login_max_failed_attempts: int = 5
    login_lockout_minutes: int = 15

    # limite por e-mail (vale também para e-mails sem conta)
    login_throttle_max_attempts: int = 5
    login_throttle_window_minutes: int = 15

    # 🔑 Recuperação de senha
    password_reset_token_minutes: int = 15
    password_reset_max_per_hour: int = 3
    password_reset_url: str = "http://localhost:3000/reset-password"

    # 🖥️ Sessões
    session_max_concurrent: int = 3
    session_absolute_timeout_minutes: int = 60 * 24 * 7
    session_idle_timeout_minutes: int = 0  # 0 = desativado

    cookie_secure: bool = False

    # quantos proxies reversos à frente da API têm X-Forwarded-For confiável (0 = nenhum)
    trusted_proxy_hops: int = 0

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("db_host", "db_name", "db_user", "db_password", "jwt_secret", mode="before")
    @classmethod
    def strip_strings(cls, v):
        if isinstance(v, str):
            return v.strip().strip('"').strip("'")
        return v

    @field_validator(
        "login_max_failed_attempts",
        "login_throttle_max_attempts",
        "password_reset_max_per_hour",
        "session_max_concurrent",
    )
    @classmethod
    def at_least_one(cls, v: int) -> int:
        if v < 1:
            raise ValueError("must be >= 1")
        return v

    @property
    def database_uri(self) -> str:
        if not self.db_host:
            return self.database_url

        user = quote_plus(self.db_user or "")
        password = quote_plus(self.db_password or "")

        return f"postgresql+psycopg2://{user}:{password}@{self.db_host}:{self.db_port}/{self.db_name}"

    @property
    def cors_origins(self) -> list[str]:
        return [o.strip() for o in self.cors_origins_raw.split(",") if o.strip()]

    @property
    def jwt_previous_secrets(self) -> list[str]:
        return [s.strip() for s in self.jwt_previous_secrets_raw.split(",") if s.strip()]

    @property
    def auth_path(self) -> str:
        return f"{self.api_prefix.rstrip('/')}/auth"


settings = Settings()
