# ultrabms/repositories/password_reset_token_repository.py

from datetime import datetime

from sqlalchemy import delete, select, update
from sqlalchemy.orm import Session

from ultrabms.core.base_repository import BaseRepository
from ultrabms.infrastructure.database.models.password_reset_token_model import PasswordResetTokenModel


class PasswordResetTokenRepository(BaseRepository[PasswordResetTokenModel]):
    def __init__(self, session: Session) -> None:
        super().__init__(session)

    def get_by_hash(self, token_hash: str) -> PasswordResetTokenModel | None:
        stmt = select(PasswordResetTokenModel).where(PasswordResetTokenModel.token_hash == token_hash)
        return self._session.execute(stmt).scalar_one_or_none()

    def invalidate_unused_for_user(self, *, user_id: str, now: datetime) -> int:
        stmt = (
            update(PasswordResetTokenModel)
            .where(PasswordResetTokenModel.user_id == user_id, PasswordResetTokenModel.used_at.is_(None))
            .values(used_at=now)
            .execution_options(synchronize_session=False)
        )
        result = self._session.execute(stmt)
        return int(result.rowcount or 0)

    def mark_used(self, *, token_id: int, now: datetime) -> bool:
        """Consome o token uma única vez: só a primeira chamada afeta a linha."""
        stmt = (
            update(PasswordResetTokenModel)
            .where(
                PasswordResetTokenModel.id == token_id,
                PasswordResetTokenModel.used_at.is_(None),
                PasswordResetTokenModel.expires_at > now,
            )
            .values(used_at=now)
            .execution_options(synchronize_session=False)
        )
        result = self._session.execute(stmt)
        return (result.rowcount or 0) == 1

    def delete_expired(self, *, before: datetime) -> int:
        stmt = delete(PasswordResetTokenModel).where(PasswordResetTokenModel.expires_at < before)
        result = self._session.execute(stmt)
        return int(result.rowcount or 0)
