# ultrabms/repositories/auth_attempt_repository.py

from datetime import datetime

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from ultrabms.core.base_repository import BaseRepository
from ultrabms.infrastructure.database.models.auth_attempt_model import AuthAttemptModel


class AttemptKind:
    LOGIN = "LOGIN"
    PASSWORD_RESET = "PASSWORD_RESET"


class AuthAttemptRepository(BaseRepository[AuthAttemptModel]):
    def __init__(self, session: Session) -> None:
        super().__init__(session)

    def record(self, *, kind: str, email: str, ip_address: str | None, now: datetime) -> AuthAttemptModel:
        return self.add(
            AuthAttemptModel(
                attempt_kind=kind,
                email=email.strip().lower(),
                ip_address=ip_address,
                attempted_at=now,
            )
        )

    def count_since(self, *, kind: str, email: str, since: datetime) -> int:
        stmt = select(func.count(AuthAttemptModel.id)).where(
            AuthAttemptModel.attempt_kind == kind,
            AuthAttemptModel.email == email.strip().lower(),
            AuthAttemptModel.attempted_at > since,
        )
        return int(self._session.execute(stmt).scalar_one())

    def oldest_since(self, *, kind: str, email: str, since: datetime) -> datetime | None:
        stmt = select(func.min(AuthAttemptModel.attempted_at)).where(
            AuthAttemptModel.attempt_kind == kind,
            AuthAttemptModel.email == email.strip().lower(),
            AuthAttemptModel.attempted_at > since,
        )
        return self._session.execute(stmt).scalar_one()

    def clear(self, *, kind: str, email: str) -> int:
        stmt = delete(AuthAttemptModel).where(
            AuthAttemptModel.attempt_kind == kind,
            AuthAttemptModel.email == email.strip().lower(),
        )
        result = self._session.execute(stmt)
        return int(result.rowcount or 0)

    def delete_before(self, *, before: datetime) -> int:
        stmt = delete(AuthAttemptModel).where(AuthAttemptModel.attempted_at < before)
        result = self._session.execute(stmt)
        return int(result.rowcount or 0)
