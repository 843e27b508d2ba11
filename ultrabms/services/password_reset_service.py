# ultrabms/services/password_reset_service.py

import logging
import math
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from urllib.parse import urlencode

from ultrabms.config.settings import settings
from ultrabms.core.clock import Clock, utcnow
from ultrabms.core.exceptions import InvalidResetTokenError, ResetRateLimitedError
from ultrabms.core.interfaces.password_reset_notifier import (
    PasswordChangedEvent,
    PasswordResetNotifier,
    PasswordResetRequestedEvent,
)
from ultrabms.infrastructure.database.models.password_reset_token_model import PasswordResetTokenModel
from ultrabms.infrastructure.security.jwt_provider import JwtProvider
from ultrabms.repositories.auth_attempt_repository import AttemptKind, AuthAttemptRepository
from ultrabms.repositories.password_reset_token_repository import PasswordResetTokenRepository
from ultrabms.repositories.user_repository import UserRepository
from ultrabms.services.audit_service import AuditService
from ultrabms.services.credential_service import CredentialService
from ultrabms.services.session_service import RevokeReason, SessionService

logger = logging.getLogger(__name__)

TOKEN_BYTES = 32
RATE_LIMIT_WINDOW = timedelta(hours=1)


@dataclass(frozen=True)
class ResetTokenStatus:
    valid: bool
    remaining_minutes: int


class PasswordResetService:
    """Esqueci minha senha: emissão, validação e consumo do link de reset.

    O token em claro só existe no link notificado; no banco fica o hash
    (mesma chave HMAC dos tokens de sessão).
    """

    def __init__(
        self,
        *,
        users: UserRepository,
        tokens: PasswordResetTokenRepository,
        attempts: AuthAttemptRepository,
        credentials: CredentialService,
        sessions: SessionService,
        audit: AuditService,
        jwt_provider: JwtProvider,
        notifier: PasswordResetNotifier,
        clock: Clock = utcnow,
        token_minutes: int | None = None,
        max_per_hour: int | None = None,
    ) -> None:
        self._users = users
        self._tokens = tokens
        self._attempts = attempts
        self._credentials = credentials
        self._sessions = sessions
        self._audit = audit
        self._jwt = jwt_provider
        self._notifier = notifier
        self._clock = clock
        self._token_ttl = timedelta(minutes=token_minutes or settings.password_reset_token_minutes)
        self._max_per_hour = max_per_hour or settings.password_reset_max_per_hour

    def initiate(self, *, email: str, ip_address: str | None = None) -> None:
        """Sempre termina em silêncio para e-mail inexistente ou conta inativa."""
        normalized = email.strip().lower()
        now = self._clock()

        self._check_rate_limit(normalized, now=now)
        self._attempts.record(kind=AttemptKind.PASSWORD_RESET, email=normalized, ip_address=ip_address, now=now)

        user = self._users.get_by_email(normalized)
        if user is None or not user.is_active:
            logger.info("Password reset requested for unknown or inactive account from ip=%s", ip_address)
            return

        invalidated = self._tokens.invalidate_unused_for_user(user_id=user.id, now=now)
        if invalidated:
            logger.info("Invalidated %s unused reset tokens for user_id=%s", invalidated, user.id)

        token = secrets.token_hex(TOKEN_BYTES)
        expires_at = now + self._token_ttl
        self._tokens.add(
            PasswordResetTokenModel(
                user_id=user.id,
                token_hash=self._jwt.hash_token(token),
                ip_address=ip_address,
                created_at=now,
                expires_at=expires_at,
                used_at=None,
            )
        )

        self._notifier.notify_reset_requested(
            PasswordResetRequestedEvent(
                user_id=user.id,
                email=user.email,
                first_name=user.first_name,
                reset_link=f"{settings.password_reset_url}?{urlencode({'token': token})}",
                expires_at_iso=expires_at.isoformat(),
            )
        )
        self._audit.log(
            action_name="PASSWORD_RESET_REQUESTED",
            user_id=user.id,
            ip_address=ip_address,
            details={"email": user.email},
        )
        logger.info("Password reset token issued for user_id=%s, expires at %s", user.id, expires_at)

    def validate(self, token: str) -> ResetTokenStatus:
        record = self._lookup(token)
        remaining = record.expires_at - self._clock()
        return ResetTokenStatus(valid=True, remaining_minutes=max(0, int(remaining.total_seconds() // 60)))

    def reset(self, *, token: str, new_password: str, ip_address: str | None = None) -> int:
        record = self._lookup(token)
        now = self._clock()

        user = self._users.get_by_id(record.user_id)
        if user is None or not user.is_active:
            raise InvalidResetTokenError()

        # consumo atômico: dois resets com o mesmo link, só um passa
        if not self._tokens.mark_used(token_id=record.id, now=now):
            logger.warning("Reset token for user_id=%s consumed concurrently", user.id)
            raise InvalidResetTokenError("Reset link has already been used")

        self._credentials.set_password(user=user, new_password=new_password)
        self._users.unlock(user_id=user.id)
        self._attempts.clear(kind=AttemptKind.LOGIN, email=user.email)

        revoked = self._sessions.revoke_all(user_id=user.id, reason=RevokeReason.PASSWORD_RESET)

        self._audit.log(
            action_name="PASSWORD_RESET_COMPLETED",
            user_id=user.id,
            ip_address=ip_address,
            details={"email": user.email, "revoked_sessions": revoked},
        )
        self._notifier.notify_password_changed(
            PasswordChangedEvent(user_id=user.id, email=user.email, changed_at_iso=now.isoformat())
        )
        logger.info("Password reset completed for user_id=%s, %s sessions revoked", user.id, revoked)
        return revoked

    def purge_expired(self) -> int:
        return self._tokens.delete_expired(before=self._clock())

    def _lookup(self, token: str) -> PasswordResetTokenModel:
        record = self._tokens.get_by_hash(self._jwt.hash_token(token)) if token else None
        if record is None:
            raise InvalidResetTokenError()
        if record.used_at is not None:
            raise InvalidResetTokenError("Reset link has already been used")
        if record.expires_at <= self._clock():
            raise InvalidResetTokenError("Reset link is expired")
        return record

    def _check_rate_limit(self, email: str, *, now: datetime) -> None:
        since = now - RATE_LIMIT_WINDOW
        count = self._attempts.count_since(kind=AttemptKind.PASSWORD_RESET, email=email, since=since)
        if count < self._max_per_hour:
            return

        oldest = self._attempts.oldest_since(kind=AttemptKind.PASSWORD_RESET, email=email, since=since)
        minutes = math.ceil(((oldest + RATE_LIMIT_WINDOW) - now).total_seconds() / 60) if oldest else 60
        logger.warning("Password reset rate limit exceeded, %s minutes remaining", minutes)
        raise ResetRateLimitedError(
            f"Too many password reset attempts. Please try again in {max(1, minutes)} minutes."
        )
