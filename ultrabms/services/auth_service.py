# ultrabms/services/auth_service.py

import logging
from dataclasses import dataclass
from datetime import datetime
from uuid import uuid4

from ultrabms.core.clock import from_timestamp
from ultrabms.core.exceptions import (
    AccountLockedError,
    HashMismatchError,
    InvalidCredentialsError,
    InvalidTokenError,
    ReuseDetectedError,
    SessionNotFoundError,
    SessionRevokedError,
)
from ultrabms.entities.auth_context import AuthContext
from ultrabms.entities.role import Role
from ultrabms.entities.user import UserProfile
from ultrabms.infrastructure.database.models.user_session_model import UserSessionModel
from ultrabms.infrastructure.security.jwt_provider import JwtProvider, TokenType
from ultrabms.infrastructure.security.password_hasher import PasswordHasher
from ultrabms.repositories.user_repository import UserRepository
from ultrabms.services.audit_service import AuditService
from ultrabms.services.credential_service import CredentialService
from ultrabms.services.login_attempt_service import LoginAttemptService
from ultrabms.services.session_service import RevokeReason, SessionService
from ultrabms.services.token_blacklist_service import TokenBlacklistService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LoginResult:
    access_token: str
    refresh_token: str
    expires_in: int
    session_id: str
    user: UserProfile


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str
    expires_in: int


class AuthService:
    """Orquestra cadastro, login, refresh, logout e validação do access token."""

    def __init__(
        self,
        *,
        jwt_provider: JwtProvider,
        credentials: CredentialService,
        sessions: SessionService,
        blacklist: TokenBlacklistService,
        users: UserRepository,
        audit: AuditService,
        attempts: LoginAttemptService,
    ) -> None:
        self._jwt = jwt_provider
        self._credentials = credentials
        self._sessions = sessions
        self._blacklist = blacklist
        self._users = users
        self._audit = audit
        self._attempts = attempts

    # -------------------------
    # Cadastro / login
    # -------------------------

    def register(
        self,
        *,
        email: str,
        password: str,
        first_name: str,
        last_name: str,
        role: Role = Role.TENANT,
        phone: str | None = None,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> UserProfile:
        user = self._credentials.register(
            email=email,
            password=password,
            first_name=first_name,
            last_name=last_name,
            role=role,
            phone=phone,
        )
        logger.info("User registered: id=%s role=%s", user.id, user.role)

        self._audit.log(
            action_name="REGISTRATION",
            user_id=user.id,
            ip_address=ip_address,
            user_agent=user_agent,
            details={"email": user.email, "role": user.role},
        )
        return UserProfile.from_model(user)

    def login(
        self,
        *,
        email: str,
        password: str,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> LoginResult:
        if self._attempts.is_blocked(email):
            PasswordHasher.burn(password)
            self._audit.log(
                action_name="LOGIN_FAILED",
                user_id=None,
                ip_address=ip_address,
                user_agent=user_agent,
                details={"email": email, "reason": "rate_limited"},
            )
            raise AccountLockedError()

        try:
            user = self._credentials.verify_password(email=email, password=password)
        except AccountLockedError:
            self._audit.log(
                action_name="LOGIN_FAILED",
                user_id=None,
                ip_address=ip_address,
                user_agent=user_agent,
                details={"email": email, "reason": "account_locked"},
            )
            raise
        except InvalidCredentialsError:
            self._attempts.record_failure(email, ip_address)
            self._audit.log(
                action_name="LOGIN_FAILED",
                user_id=None,
                ip_address=ip_address,
                user_agent=user_agent,
                details={"email": email, "reason": "invalid_credentials"},
            )
            raise

        self._attempts.reset(email)

        session_id = str(uuid4())
        access, refresh = self._issue_pair(user_id=user.id, session_id=session_id, email=user.email, role=user.role)

        self._sessions.create_session(
            session_id=session_id,
            user_id=user.id,
            access_token=access,
            refresh_token=refresh,
            user_agent=user_agent,
            ip_address=ip_address,
        )

        self._audit.log(
            action_name="LOGIN_SUCCESS",
            user_id=user.id,
            ip_address=ip_address,
            user_agent=user_agent,
            details={"session_id": session_id},
        )
        logger.info("User logged in: id=%s session=%s", user.id, session_id)

        return LoginResult(
            access_token=access,
            refresh_token=refresh,
            expires_in=self._jwt.access_ttl_seconds,
            session_id=session_id,
            user=UserProfile.from_model(user),
        )

    # -------------------------
    # Refresh (rotação + detecção de reuso)
    # -------------------------

    def refresh_access_token(
        self,
        *,
        refresh_token: str,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> TokenPair:
        claims = self._jwt.decode(refresh_token, expected_type=TokenType.REFRESH)
        presented_hash = self._jwt.hash_token(refresh_token)

        if self._blacklist.is_revoked(presented_hash):
            logger.warning("Blacklisted refresh token presented for session %s", claims.get("sid"))
            raise SessionRevokedError()

        session = self._sessions.get(str(claims["sid"]))
        if session is None or session.user_id != str(claims["sub"]):
            raise InvalidTokenError()

        self._sessions.ensure_live(session, touch=False)

        user = self._users.get_by_id(session.user_id)
        if user is None or not user.is_active:
            self._sessions.revoke_session(session, reason=RevokeReason.USER_DEACTIVATED)
            raise InvalidTokenError()

        access, refresh = self._issue_pair(
            user_id=user.id, session_id=session.session_id, email=user.email, role=user.role
        )

        try:
            self._sessions.rotate_refresh(
                session_id=session.session_id,
                old_refresh_hash=presented_hash,
                new_access_token=access,
                new_refresh_token=refresh,
            )
        except HashMismatchError:
            # token já rotacionado apareceu de novo: possível roubo, derruba a sessão inteira
            logger.warning(
                "Refresh token reuse detected: session=%s user_id=%s ip=%s",
                session.session_id, user.id, ip_address,
            )
            self._sessions.revoke_session(session, reason=RevokeReason.REUSE_DETECTED)
            self._audit.log(
                action_name="REFRESH_REUSE_DETECTED",
                user_id=user.id,
                ip_address=ip_address,
                user_agent=user_agent,
                details={"session_id": session.session_id},
            )
            raise ReuseDetectedError()
        except SessionNotFoundError:
            raise InvalidTokenError()

        self._audit.log(
            action_name="TOKEN_REFRESH",
            user_id=user.id,
            ip_address=ip_address,
            user_agent=user_agent,
            details={"session_id": session.session_id},
        )
        return TokenPair(access_token=access, refresh_token=refresh, expires_in=self._jwt.access_ttl_seconds)

    # -------------------------
    # Logout
    # -------------------------

    def logout(
        self,
        *,
        access_token: str | None,
        refresh_token: str | None,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> None:
        session: UserSessionModel | None = None

        if access_token:
            verification = self._jwt.verify(access_token)
            claims = verification.claims or {}
            if verification.ok and claims.get("typ") == TokenType.ACCESS.value:
                access_hash = self._jwt.hash_token(access_token)
                self._blacklist.revoke(
                    token_hash=access_hash,
                    token_type=TokenType.ACCESS,
                    expires_at=self._expiry(claims),
                    reason=RevokeReason.LOGOUT,
                )
                session = self._sessions.find_by_access_token_hash(access_hash)

        if session is None and refresh_token:
            verification = self._jwt.verify(refresh_token)
            claims = verification.claims or {}
            if verification.ok and claims.get("typ") == TokenType.REFRESH.value:
                candidate = self._sessions.get(str(claims["sid"]))
                if candidate is not None and candidate.refresh_token_hash == self._jwt.hash_token(refresh_token):
                    session = candidate

        if session is None:
            logger.debug("Logout without a resolvable session")
            return

        self._sessions.revoke_session(session, reason=RevokeReason.LOGOUT)
        self._audit.log(
            action_name="LOGOUT",
            user_id=session.user_id,
            ip_address=ip_address,
            user_agent=user_agent,
            details={"session_id": session.session_id},
        )
        logger.info("User logged out: id=%s session=%s", session.user_id, session.session_id)

    # -------------------------
    # Gate de autenticação (usado por todas as rotas protegidas)
    # -------------------------

    def authenticate(self, access_token: str) -> AuthContext:
        claims = self._jwt.decode(access_token, expected_type=TokenType.ACCESS)
        access_hash = self._jwt.hash_token(access_token)

        if self._blacklist.is_revoked(access_hash):
            raise SessionRevokedError()

        session = self._sessions.find_by_access_token_hash(access_hash)
        if session is None or session.session_id != claims["sid"] or session.user_id != claims["sub"]:
            raise InvalidTokenError()

        self._sessions.ensure_live(session)

        user = self._users.get_by_id(session.user_id)
        if user is None or not user.is_active:
            raise InvalidTokenError()

        return AuthContext(
            user_id=user.id,
            session_id=session.session_id,
            role=Role(user.role),
            email=user.email,
            access_token_hash=access_hash,
            claims=claims,
        )

    def change_password(self, *, auth: AuthContext, current_password: str, new_password: str) -> int:
        user = self._users.get_by_id(auth.user_id)
        if user is None:
            raise InvalidTokenError()

        self._credentials.change_password(user=user, current_password=current_password, new_password=new_password)
        revoked = self._sessions.revoke_all_except(
            user_id=user.id,
            except_session_id=auth.session_id,
            reason=RevokeReason.PASSWORD_CHANGED,
        )
        self._audit.log(
            action_name="PASSWORD_CHANGED",
            user_id=user.id,
            details={"revoked_sessions": revoked},
        )
        return revoked

    def _issue_pair(self, *, user_id: str, session_id: str, email: str, role: str) -> tuple[str, str]:
        access = self._jwt.issue_access_token(subject=user_id, session_id=session_id, email=email, role=role)
        refresh = self._jwt.issue_refresh_token(subject=user_id, session_id=session_id)
        return access, refresh

    @staticmethod
    def _expiry(claims: dict) -> datetime:
        return from_timestamp(claims["exp"])
