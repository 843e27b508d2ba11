# ultrabms/repositories/token_blacklist_repository.py

from datetime import datetime

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from ultrabms.core.base_repository import BaseRepository
from ultrabms.infrastructure.database.models.token_blacklist_model import TokenBlacklistModel


class TokenBlacklistRepository(BaseRepository[TokenBlacklistModel]):
    def __init__(self, session: Session) -> None:
        super().__init__(session)

    def exists(self, token_hash: str) -> bool:
        stmt = select(TokenBlacklistModel.id).where(TokenBlacklistModel.token_hash == token_hash)
        return self._session.execute(stmt).scalars().first() is not None

    def is_revoked(self, token_hash: str, *, now: datetime) -> bool:
        stmt = select(TokenBlacklistModel.id).where(
            TokenBlacklistModel.token_hash == token_hash,
            TokenBlacklistModel.expires_at > now,
        )
        return self._session.execute(stmt).scalars().first() is not None

    def cleanup_expired(self, *, now: datetime) -> int:
        stmt = delete(TokenBlacklistModel).where(TokenBlacklistModel.expires_at <= now)
        result = self._session.execute(stmt)
        return int(result.rowcount or 0)
