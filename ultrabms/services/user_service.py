# ultrabms/services/user_service.py

import logging

from ultrabms.core.clock import Clock, utcnow
from ultrabms.core.exceptions import BadRequestError, ForbiddenError, NotFoundError
from ultrabms.entities.role import Role
from ultrabms.infrastructure.database.models.user_model import UserModel
from ultrabms.repositories.user_repository import UserRepository
from ultrabms.services.credential_service import CredentialService
from ultrabms.services.login_attempt_service import LoginAttemptService
from ultrabms.services.session_service import RevokeReason, SessionService

logger = logging.getLogger(__name__)


class UserService:
    def __init__(
        self,
        user_repository: UserRepository,
        sessions: SessionService,
        credentials: CredentialService,
        attempts: LoginAttemptService,
        *,
        clock: Clock = utcnow,
    ) -> None:
        self._user_repository = user_repository
        self._sessions = sessions
        self._credentials = credentials
        self._attempts = attempts
        self._clock = clock

    def get_user(self, *, user_id: str) -> UserModel:
        user = self._user_repository.get_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    def list_users(
        self,
        *,
        limit: int = 20,
        offset: int = 0,
        search: str | None = None,
        role: Role | None = None,
        is_active: bool | None = None,
    ) -> tuple[list[UserModel], int]:
        return self._user_repository.list_users(
            limit=limit,
            offset=offset,
            search=search,
            role=role.value if role else None,
            is_active=is_active,
        )

    def create_user(
        self,
        *,
        acting_role: Role,
        email: str,
        temporary_password: str,
        first_name: str,
        last_name: str,
        role: Role,
        phone: str | None = None,
    ) -> UserModel:
        if role == Role.SUPER_ADMIN and acting_role != Role.SUPER_ADMIN:
            raise ForbiddenError("Only SUPER_ADMIN can create other SUPER_ADMIN users")

        return self._credentials.register(
            email=email,
            password=temporary_password,
            first_name=first_name,
            last_name=last_name,
            role=role,
            phone=phone,
        )

    def admin_update_user(
        self,
        *,
        user_id: str,
        acting_user_id: str,
        role: Role | None = None,
        is_active: bool | None = None,
    ) -> UserModel:
        user = self.get_user(user_id=user_id)

        if user_id == acting_user_id and (is_active is False or (role is not None and role.value != user.role)):
            raise BadRequestError("Administrators cannot change their own role or status")

        if role is not None:
            user.role = role.value
        if is_active is not None:
            user.is_active = is_active

        user.updated_at = self._clock()

        # desativação derruba todas as sessões; troca de papel passa a valer no próximo request
        if is_active is False:
            revoked = self._sessions.revoke_all(user_id=user.id, reason=RevokeReason.USER_DEACTIVATED)
            logger.info("User %s deactivated by %s, %s sessions revoked", user.id, acting_user_id, revoked)

        return user

    def unlock_user(self, *, user_id: str) -> UserModel:
        user = self.get_user(user_id=user_id)
        self._user_repository.unlock(user_id=user.id)
        self._attempts.reset(user.email)
        return self._user_repository.reload(user)
