# ultrabms/repositories/user_repository.py

from datetime import datetime

from sqlalchemy import case, func, or_, select, update
from sqlalchemy.orm import Session

from ultrabms.core.base_repository import BaseRepository
from ultrabms.infrastructure.database.models.user_model import UserModel


class UserRepository(BaseRepository[UserModel]):
    def __init__(self, session: Session) -> None:
        super().__init__(session)

    def get_by_email(self, email: str) -> UserModel | None:
        stmt = select(UserModel).where(UserModel.email == email.strip().lower())
        return self._session.execute(stmt).scalar_one_or_none()

    def get_by_id(self, user_id: str) -> UserModel | None:
        stmt = select(UserModel).where(UserModel.id == user_id)
        return self._session.execute(stmt).scalar_one_or_none()

    def list_users(
        self,
        *,
        limit: int = 20,
        offset: int = 0,
        search: str | None = None,
        role: str | None = None,
        is_active: bool | None = None,
    ) -> tuple[list[UserModel], int]:
        stmt = select(UserModel)

        if search:
            like = f"%{search.strip()}%"
            stmt = stmt.where(
                or_(
                    UserModel.email.ilike(like),
                    UserModel.first_name.ilike(like),
                    UserModel.last_name.ilike(like),
                )
            )
        if role:
            stmt = stmt.where(UserModel.role == role)
        if is_active is not None:
            stmt = stmt.where(UserModel.is_active.is_(is_active))

        total = self._session.execute(select(func.count()).select_from(stmt.subquery())).scalar_one()

        rows = self._session.execute(
            stmt.order_by(UserModel.created_at.desc()).limit(limit).offset(offset)
        ).scalars().all()
        return list(rows), int(total)

    # -------------------------
    # Lockout (atômico no banco)
    # -------------------------

    def register_failed_login(
        self, *, user_id: str, threshold: int, lock_until: datetime
    ) -> tuple[int, datetime | None]:
        """Incrementa o contador e bloqueia ao atingir o limite, num único UPDATE.

        No SET, as colunas à direita enxergam os valores antigos da linha,
        então tentativas concorrentes não perdem incrementos.
        """
        new_count = UserModel.failed_login_attempts + 1
        stmt = (
            update(UserModel)
            .where(UserModel.id == user_id)
            .values(
                failed_login_attempts=new_count,
                locked_until=case(
                    (new_count >= threshold, lock_until),
                    else_=UserModel.locked_until,
                ),
            )
            .execution_options(synchronize_session=False)
        )
        self._session.execute(stmt)

        row = self._session.execute(
            select(UserModel.failed_login_attempts, UserModel.locked_until).where(UserModel.id == user_id)
        ).one()
        return int(row.failed_login_attempts), row.locked_until

    def clear_expired_lock(self, *, user_id: str, now: datetime) -> bool:
        stmt = (
            update(UserModel)
            .where(
                UserModel.id == user_id,
                UserModel.locked_until.is_not(None),
                UserModel.locked_until <= now,
            )
            .values(failed_login_attempts=0, locked_until=None)
            .execution_options(synchronize_session=False)
        )
        result = self._session.execute(stmt)
        return (result.rowcount or 0) > 0

    def register_successful_login(self, *, user_id: str, now: datetime) -> None:
        stmt = (
            update(UserModel)
            .where(UserModel.id == user_id)
            .values(failed_login_attempts=0, locked_until=None, last_login=now)
            .execution_options(synchronize_session=False)
        )
        self._session.execute(stmt)

    def unlock(self, *, user_id: str) -> bool:
        stmt = (
            update(UserModel)
            .where(UserModel.id == user_id)
            .values(failed_login_attempts=0, locked_until=None)
            .execution_options(synchronize_session=False)
        )
        result = self._session.execute(stmt)
        return (result.rowcount or 0) > 0
