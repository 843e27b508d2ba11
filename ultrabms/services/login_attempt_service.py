# ultrabms/services/login_attempt_service.py

import logging
from datetime import timedelta

from ultrabms.config.settings import settings
from ultrabms.core.clock import Clock, utcnow
from ultrabms.repositories.auth_attempt_repository import AttemptKind, AuthAttemptRepository

logger = logging.getLogger(__name__)


class LoginAttemptService:
    """Limite de logins falhos por e-mail numa janela deslizante.

    Complementa o bloqueio da conta: também freia tentativas contra e-mails
    que não existem, sem revelar se a conta existe.
    """

    def __init__(
        self,
        repo: AuthAttemptRepository,
        *,
        clock: Clock = utcnow,
        max_attempts: int | None = None,
        window_minutes: int | None = None,
    ) -> None:
        self._repo = repo
        self._clock = clock
        self._max_attempts = max_attempts or settings.login_throttle_max_attempts
        self._window = timedelta(minutes=window_minutes or settings.login_throttle_window_minutes)

    def attempts(self, email: str) -> int:
        now = self._clock()
        return self._repo.count_since(kind=AttemptKind.LOGIN, email=email, since=now - self._window)

    def is_blocked(self, email: str) -> bool:
        return self.attempts(email) >= self._max_attempts

    def record_failure(self, email: str, ip_address: str | None = None) -> int:
        now = self._clock()
        self._repo.record(kind=AttemptKind.LOGIN, email=email, ip_address=ip_address, now=now)
        count = self._repo.count_since(kind=AttemptKind.LOGIN, email=email, since=now - self._window)
        if count >= self._max_attempts:
            logger.warning("Login throttled for email after %s failed attempts", count)
        return count

    def reset(self, email: str) -> None:
        self._repo.clear(kind=AttemptKind.LOGIN, email=email)

    def purge_expired(self) -> int:
        # a janela mais longa entre login e reset de senha
        keep = max(self._window, timedelta(hours=1))
        return self._repo.delete_before(before=self._clock() - keep)
