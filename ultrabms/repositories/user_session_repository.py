# ultrabms/repositories/user_session_repository.py

from datetime import datetime

from sqlalchemy import delete, func, select, update
from sqlalchemy.orm import Session

from ultrabms.core.base_repository import BaseRepository
from ultrabms.infrastructure.database.models.user_session_model import UserSessionModel


class UserSessionRepository(BaseRepository[UserSessionModel]):
    def __init__(self, session: Session) -> None:
        super().__init__(session)

    def get_by_session_id(self, session_id: str) -> UserSessionModel | None:
        stmt = select(UserSessionModel).where(UserSessionModel.session_id == session_id)
        return self._session.execute(stmt).scalar_one_or_none()

    def get_by_access_token_hash(self, token_hash: str) -> UserSessionModel | None:
        stmt = select(UserSessionModel).where(UserSessionModel.access_token_hash == token_hash)
        return self._session.execute(stmt).scalar_one_or_none()

    def _active(self, *, user_id: str, now: datetime, idle_cutoff: datetime | None):
        conditions = [
            UserSessionModel.user_id == user_id,
            UserSessionModel.revoked_at.is_(None),
            UserSessionModel.expires_at > now,
        ]
        # ociosas além do limite já estão mortas, mesmo sem revoked_at gravado
        if idle_cutoff is not None:
            conditions.append(UserSessionModel.last_seen_at > idle_cutoff)
        return conditions

    def list_active(
        self, *, user_id: str, now: datetime, idle_cutoff: datetime | None = None
    ) -> list[UserSessionModel]:
        stmt = (
            select(UserSessionModel)
            .where(*self._active(user_id=user_id, now=now, idle_cutoff=idle_cutoff))
            .order_by(UserSessionModel.last_seen_at.desc(), UserSessionModel.created_at.desc())
        )
        return list(self._session.execute(stmt).scalars().all())

    def count_active(self, *, user_id: str, now: datetime, idle_cutoff: datetime | None = None) -> int:
        stmt = select(func.count(UserSessionModel.session_id)).where(
            *self._active(user_id=user_id, now=now, idle_cutoff=idle_cutoff)
        )
        return int(self._session.execute(stmt).scalar_one())

    def list_oldest_active(
        self, *, user_id: str, now: datetime, limit: int, idle_cutoff: datetime | None = None
    ) -> list[UserSessionModel]:
        stmt = (
            select(UserSessionModel)
            .where(*self._active(user_id=user_id, now=now, idle_cutoff=idle_cutoff))
            .order_by(UserSessionModel.created_at.asc())
            .limit(limit)
        )
        return list(self._session.execute(stmt).scalars().all())

    def compare_and_rotate(
        self,
        *,
        session_id: str,
        expected_refresh_hash: str,
        new_access_hash: str,
        new_refresh_hash: str,
        now: datetime,
    ) -> bool:
        """Troca os hashes só se o refresh vigente for o esperado (check-and-set).

        Duas rotações concorrentes com o mesmo token: apenas uma afeta a linha.
        """
        stmt = (
            update(UserSessionModel)
            .where(
                UserSessionModel.session_id == session_id,
                UserSessionModel.refresh_token_hash == expected_refresh_hash,
                UserSessionModel.revoked_at.is_(None),
            )
            .values(
                access_token_hash=new_access_hash,
                refresh_token_hash=new_refresh_hash,
                last_seen_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        result = self._session.execute(stmt)
        return (result.rowcount or 0) == 1

    def mark_revoked(self, *, session_id: str, now: datetime, reason: str) -> bool:
        stmt = (
            update(UserSessionModel)
            .where(UserSessionModel.session_id == session_id, UserSessionModel.revoked_at.is_(None))
            .values(revoked_at=now, revoked_reason=reason)
            .execution_options(synchronize_session=False)
        )
        result = self._session.execute(stmt)
        return (result.rowcount or 0) > 0

    def touch(self, *, session_id: str, now: datetime) -> None:
        stmt = (
            update(UserSessionModel)
            .where(UserSessionModel.session_id == session_id)
            .values(last_seen_at=now)
            .execution_options(synchronize_session=False)
        )
        self._session.execute(stmt)

    def delete_expired(self, *, before: datetime) -> int:
        # sessões revogadas/expiradas ficam para auditoria até passar a validade
        stmt = delete(UserSessionModel).where(UserSessionModel.expires_at < before)
        result = self._session.execute(stmt)
        return int(result.rowcount or 0)
