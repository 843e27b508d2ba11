# ultrabms/services/session_service.py

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta

from ultrabms.config.settings import settings
from ultrabms.core.clock import Clock, utcnow
from ultrabms.core.exceptions import (
    HashMismatchError,
    SessionNotFoundError,
    SessionNotOwnedError,
    SessionRevokedError,
)
from ultrabms.infrastructure.database.models.user_session_model import UserSessionModel
from ultrabms.infrastructure.security.jwt_provider import JwtProvider, TokenType
from ultrabms.repositories.user_session_repository import UserSessionRepository
from ultrabms.services.token_blacklist_service import TokenBlacklistService

logger = logging.getLogger(__name__)


class RevokeReason:
    LOGOUT = "LOGOUT"
    LOGOUT_ALL = "LOGOUT_ALL"
    REVOKED_BY_USER = "REVOKED_BY_USER"
    REUSE_DETECTED = "REUSE_DETECTED"
    SESSION_LIMIT = "SESSION_LIMIT"
    IDLE_TIMEOUT = "IDLE_TIMEOUT"
    ABSOLUTE_TIMEOUT = "ABSOLUTE_TIMEOUT"
    PASSWORD_CHANGED = "PASSWORD_CHANGED"
    PASSWORD_RESET = "PASSWORD_RESET"
    USER_DEACTIVATED = "USER_DEACTIVATED"


@dataclass(frozen=True)
class SessionView:
    session_id: str
    device_type: str | None
    browser: str | None
    ip_address: str | None
    created_at: datetime
    last_seen_at: datetime
    expires_at: datetime
    is_current: bool


def parse_device_type(user_agent: str | None) -> str:
    ua = (user_agent or "").lower()
    if not ua:
        return "UNKNOWN"
    if "ipad" in ua or "tablet" in ua:
        return "TABLET"
    if "mobile" in ua or "android" in ua or "iphone" in ua:
        return "MOBILE"
    return "DESKTOP"


def parse_browser(user_agent: str | None) -> str | None:
    ua = user_agent or ""
    # ordem importa: Edge e Chrome também anunciam "Safari"
    for token, name in (
        ("Edg/", "Edge"),
        ("OPR/", "Opera"),
        ("Firefox/", "Firefox"),
        ("Chrome/", "Chrome"),
        ("Safari/", "Safari"),
    ):
        if token in ua:
            return name
    return None


class SessionService:
    """Registro de sessões: criação, rotação de refresh, listagem e revogação."""

    def __init__(
        self,
        repo: UserSessionRepository,
        blacklist: TokenBlacklistService,
        jwt_provider: JwtProvider,
        *,
        clock: Clock = utcnow,
        max_concurrent: int | None = None,
        absolute_timeout_minutes: int | None = None,
        idle_timeout_minutes: int | None = None,
    ) -> None:
        self._repo = repo
        self._blacklist = blacklist
        self._jwt = jwt_provider
        self._clock = clock
        self._max_concurrent = max_concurrent or settings.session_max_concurrent
        self._absolute_timeout = timedelta(
            minutes=absolute_timeout_minutes or settings.session_absolute_timeout_minutes
        )
        idle = settings.session_idle_timeout_minutes if idle_timeout_minutes is None else idle_timeout_minutes
        self._idle_timeout = timedelta(minutes=idle) if idle > 0 else None

    def create_session(
        self,
        *,
        session_id: str,
        user_id: str,
        access_token: str,
        refresh_token: str,
        user_agent: str | None,
        ip_address: str | None,
    ) -> str:
        now = self._clock()

        idle_cutoff = self._idle_cutoff(now)
        active = self._repo.count_active(user_id=user_id, now=now, idle_cutoff=idle_cutoff)
        overflow = active - self._max_concurrent + 1
        if overflow > 0:
            oldest_sessions = self._repo.list_oldest_active(
                user_id=user_id, now=now, limit=overflow, idle_cutoff=idle_cutoff
            )
            for oldest in oldest_sessions:
                logger.info(
                    "Max concurrent sessions (%s) reached for user_id=%s, revoking %s",
                    self._max_concurrent, user_id, oldest.session_id,
                )
                self._invalidate(oldest, reason=RevokeReason.SESSION_LIMIT)

        self._repo.add(
            UserSessionModel(
                session_id=session_id,
                user_id=user_id,
                access_token_hash=self._jwt.hash_token(access_token),
                refresh_token_hash=self._jwt.hash_token(refresh_token),
                user_agent=(user_agent or "")[:500] or None,
                device_type=parse_device_type(user_agent),
                ip_address=ip_address,
                created_at=now,
                last_seen_at=now,
                expires_at=now + self._absolute_timeout,
                revoked_at=None,
                revoked_reason=None,
            )
        )
        logger.info("Created session %s for user_id=%s from ip=%s", session_id, user_id, ip_address)
        return session_id

    def get(self, session_id: str) -> UserSessionModel | None:
        return self._repo.get_by_session_id(session_id)

    def find_by_access_token_hash(self, token_hash: str) -> UserSessionModel | None:
        return self._repo.get_by_access_token_hash(token_hash)

    def rotate_refresh(
        self,
        *,
        session_id: str,
        old_refresh_hash: str,
        new_access_token: str,
        new_refresh_token: str,
    ) -> None:
        rotated = self._repo.compare_and_rotate(
            session_id=session_id,
            expected_refresh_hash=old_refresh_hash,
            new_access_hash=self._jwt.hash_token(new_access_token),
            new_refresh_hash=self._jwt.hash_token(new_refresh_token),
            now=self._clock(),
        )
        if rotated:
            return

        if self._repo.get_by_session_id(session_id) is None:
            raise SessionNotFoundError()
        raise HashMismatchError()

    def ensure_live(self, session: UserSessionModel, *, touch: bool = True) -> None:
        """Expiração preguiçosa: valida timeouts e atualiza ``last_seen_at``."""
        now = self._clock()

        if session.revoked_at is not None:
            raise SessionRevokedError()

        if session.expires_at <= now:
            logger.info("Session %s absolute timeout exceeded", session.session_id)
            self._invalidate(session, reason=RevokeReason.ABSOLUTE_TIMEOUT)
            raise SessionRevokedError()

        if self._idle_timeout is not None and session.last_seen_at + self._idle_timeout <= now:
            logger.info("Session %s idle timeout exceeded", session.session_id)
            self._invalidate(session, reason=RevokeReason.IDLE_TIMEOUT)
            raise SessionRevokedError()

        if touch:
            self._repo.touch(session_id=session.session_id, now=now)

    def list_active(self, *, user_id: str, current_session_id: str | None = None) -> list[SessionView]:
        now = self._clock()
        sessions = self._repo.list_active(user_id=user_id, now=now, idle_cutoff=self._idle_cutoff(now))
        return [
            SessionView(
                session_id=s.session_id,
                device_type=s.device_type,
                browser=parse_browser(s.user_agent),
                ip_address=s.ip_address,
                created_at=s.created_at,
                last_seen_at=s.last_seen_at,
                expires_at=s.expires_at,
                is_current=(s.session_id == current_session_id),
            )
            for s in sessions
        ]

    def revoke(self, *, user_id: str, session_id: str, reason: str = RevokeReason.REVOKED_BY_USER) -> None:
        session = self._repo.get_by_session_id(session_id)
        if session is None:
            raise SessionNotFoundError()
        if session.user_id != user_id:
            logger.warning("User %s tried to revoke session %s owned by another user", user_id, session_id)
            raise SessionNotOwnedError()

        # idempotente: revogar de novo não é erro
        self._invalidate(session, reason=reason)

    def revoke_session(self, session: UserSessionModel, *, reason: str) -> None:
        self._invalidate(session, reason=reason)

    def revoke_all_except(self, *, user_id: str, except_session_id: str | None, reason: str = RevokeReason.LOGOUT_ALL) -> int:
        count = 0
        for session in self._repo.list_active(user_id=user_id, now=self._clock()):
            if session.session_id == except_session_id:
                continue
            self._invalidate(session, reason=reason)
            count += 1

        logger.info("Revoked %s sessions for user_id=%s (kept=%s)", count, user_id, except_session_id)
        return count

    def revoke_all(self, *, user_id: str, reason: str = RevokeReason.LOGOUT_ALL) -> int:
        return self.revoke_all_except(user_id=user_id, except_session_id=None, reason=reason)

    def purge_expired(self) -> int:
        return self._repo.delete_expired(before=self._clock())

    def _invalidate(self, session: UserSessionModel, *, reason: str) -> None:
        now = self._clock()
        if not self._repo.mark_revoked(session_id=session.session_id, now=now, reason=reason):
            return
        session = self._repo.reload(session)

        # os hashes vigentes vão para a blacklist até a validade natural
        self._blacklist.revoke(
            token_hash=session.access_token_hash,
            token_type=TokenType.ACCESS,
            expires_at=now + timedelta(seconds=self._jwt.access_ttl_seconds),
            reason=reason,
        )
        self._blacklist.revoke(
            token_hash=session.refresh_token_hash,
            token_type=TokenType.REFRESH,
            expires_at=now + timedelta(seconds=self._jwt.refresh_ttl_seconds),
            reason=reason,
        )
        logger.info("Invalidated session %s (reason: %s)", session.session_id, reason)

    def _idle_cutoff(self, now: datetime) -> datetime | None:
        if self._idle_timeout is None:
            return None
        return now - self._idle_timeout
