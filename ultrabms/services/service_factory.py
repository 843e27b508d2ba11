# ultrabms/services/service_factory.py

from sqlalchemy.orm import Session

from ultrabms.infrastructure.notifications.logging_reset_notifier import LoggingResetNotifier
from ultrabms.infrastructure.security.jwt_provider import JwtProvider
from ultrabms.repositories.audit_log_repository import AuditLogRepository
from ultrabms.repositories.auth_attempt_repository import AuthAttemptRepository
from ultrabms.repositories.password_reset_token_repository import PasswordResetTokenRepository
from ultrabms.repositories.token_blacklist_repository import TokenBlacklistRepository
from ultrabms.repositories.user_repository import UserRepository
from ultrabms.repositories.user_session_repository import UserSessionRepository
from ultrabms.services.audit_service import AuditService
from ultrabms.services.auth_service import AuthService
from ultrabms.services.credential_service import CredentialService
from ultrabms.services.login_attempt_service import LoginAttemptService
from ultrabms.services.password_reset_service import PasswordResetService
from ultrabms.services.session_service import SessionService
from ultrabms.services.token_blacklist_service import TokenBlacklistService
from ultrabms.services.user_service import UserService


def build_blacklist_service(session: Session) -> TokenBlacklistService:
    return TokenBlacklistService(TokenBlacklistRepository(session))


def build_session_service(session: Session, jwt_provider: JwtProvider | None = None) -> SessionService:
    return SessionService(
        UserSessionRepository(session),
        build_blacklist_service(session),
        jwt_provider or JwtProvider(),
    )


def build_audit_service(session: Session) -> AuditService:
    return AuditService(AuditLogRepository(session))


def build_login_attempt_service(session: Session) -> LoginAttemptService:
    return LoginAttemptService(AuthAttemptRepository(session))


def build_auth_service(session: Session) -> AuthService:
    jwt_provider = JwtProvider()
    users = UserRepository(session)
    blacklist = build_blacklist_service(session)

    return AuthService(
        jwt_provider=jwt_provider,
        credentials=CredentialService(users),
        sessions=SessionService(UserSessionRepository(session), blacklist, jwt_provider),
        blacklist=blacklist,
        users=users,
        audit=build_audit_service(session),
        attempts=build_login_attempt_service(session),
    )


def build_user_service(session: Session) -> UserService:
    users = UserRepository(session)
    return UserService(
        users,
        build_session_service(session),
        CredentialService(users),
        build_login_attempt_service(session),
    )


def build_password_reset_service(session: Session) -> PasswordResetService:
    jwt_provider = JwtProvider()
    users = UserRepository(session)

    return PasswordResetService(
        users=users,
        tokens=PasswordResetTokenRepository(session),
        attempts=AuthAttemptRepository(session),
        credentials=CredentialService(users),
        sessions=build_session_service(session, jwt_provider),
        audit=build_audit_service(session),
        jwt_provider=jwt_provider,
        notifier=LoggingResetNotifier(),
    )
