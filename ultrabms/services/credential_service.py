# ultrabms/services/credential_service.py

import logging
from datetime import timedelta
from uuid import uuid4

from sqlalchemy.exc import IntegrityError

from ultrabms.config.settings import settings
from ultrabms.core.clock import Clock, utcnow
from ultrabms.core.exceptions import (
    AccountLockedError,
    BadRequestError,
    EmailAlreadyExistsError,
    InvalidCredentialsError,
)
from ultrabms.entities.role import Role
from ultrabms.infrastructure.database.models.user_model import UserModel
from ultrabms.infrastructure.security.password_hasher import PasswordHasher
from ultrabms.repositories.user_repository import UserRepository

logger = logging.getLogger(__name__)


class CredentialService:
    """Verificação de senha, contador de falhas e bloqueio de conta."""

    def __init__(
        self,
        user_repository: UserRepository,
        *,
        clock: Clock = utcnow,
        max_failed_attempts: int | None = None,
        lockout_minutes: int | None = None,
    ) -> None:
        self._users = user_repository
        self._clock = clock
        self._max_failed = max_failed_attempts or settings.login_max_failed_attempts
        self._lockout = timedelta(minutes=lockout_minutes or settings.login_lockout_minutes)

    def register(
        self,
        *,
        email: str,
        password: str,
        first_name: str,
        last_name: str,
        role: Role = Role.TENANT,
        phone: str | None = None,
    ) -> UserModel:
        normalized = email.strip().lower()
        if self._users.get_by_email(normalized) is not None:
            raise EmailAlreadyExistsError()

        try:
            password_hash, password_salt, algo, iterations = PasswordHasher.hash_password(password)
        except ValueError as e:
            raise BadRequestError(str(e)) from e

        model = UserModel(
            id=str(uuid4()),
            email=normalized,
            first_name=first_name.strip(),
            last_name=last_name.strip(),
            phone=phone.strip() if phone else None,
            role=role.value,
            is_active=True,
            password_algo=algo,
            password_iterations=iterations,
            password_hash=password_hash,
            password_salt=password_salt,
            failed_login_attempts=0,
            locked_until=None,
            created_at=self._clock(),
            updated_at=None,
            last_login=None,
        )

        # o índice único decide entre cadastros concorrentes
        try:
            return self._users.add(model)
        except IntegrityError as e:
            raise EmailAlreadyExistsError() from e

    def verify_password(self, *, email: str, password: str) -> UserModel:
        user = self._users.get_by_email(email)
        if user is None or not user.is_active:
            PasswordHasher.burn(password)
            raise InvalidCredentialsError()

        now = self._clock()
        if user.locked_until is not None:
            if user.locked_until > now:
                logger.warning("Login attempt for locked account user_id=%s", user.id)
                raise AccountLockedError()
            if self._users.clear_expired_lock(user_id=user.id, now=now):
                logger.info("Lock period expired, account unlocked user_id=%s", user.id)

        ok = PasswordHasher.verify_password(
            password,
            password_hash=user.password_hash,
            password_salt=user.password_salt,
            iterations=user.password_iterations,
            algo=user.password_algo,
        )
        if not ok:
            attempts, locked_until = self._users.register_failed_login(
                user_id=user.id,
                threshold=self._max_failed,
                lock_until=now + self._lockout,
            )
            if locked_until is not None and locked_until > now:
                logger.warning("Account locked after %s failed attempts user_id=%s", attempts, user.id)
            raise InvalidCredentialsError()

        self._users.register_successful_login(user_id=user.id, now=now)
        return self._users.reload(user)

    def change_password(self, *, user: UserModel, current_password: str, new_password: str) -> None:
        ok = PasswordHasher.verify_password(
            current_password,
            password_hash=user.password_hash,
            password_salt=user.password_salt,
            iterations=user.password_iterations,
            algo=user.password_algo,
        )
        if not ok:
            raise BadRequestError("Current password is incorrect")

        self.set_password(user=user, new_password=new_password)

    def set_password(self, *, user: UserModel, new_password: str) -> None:
        try:
            password_hash, password_salt, algo, iterations = PasswordHasher.hash_password(new_password)
        except ValueError as e:
            raise BadRequestError(str(e)) from e

        user.password_hash = password_hash
        user.password_salt = password_salt
        user.password_algo = algo
        user.password_iterations = iterations
        user.updated_at = self._clock()
