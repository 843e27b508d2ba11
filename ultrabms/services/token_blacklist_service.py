# ultrabms/services/token_blacklist_service.py

import logging
from datetime import datetime

from ultrabms.core.clock import Clock, utcnow
from ultrabms.infrastructure.database.models.token_blacklist_model import TokenBlacklistModel
from ultrabms.infrastructure.security.jwt_provider import TokenType
from ultrabms.repositories.token_blacklist_repository import TokenBlacklistRepository

logger = logging.getLogger(__name__)


class TokenBlacklistService:
    def __init__(self, repo: TokenBlacklistRepository, *, clock: Clock = utcnow) -> None:
        self._repo = repo
        self._clock = clock

    def revoke(self, *, token_hash: str, token_type: TokenType, expires_at: datetime, reason: str) -> None:
        # entrada já expirada não tem efeito: o próprio JWT já é rejeitado
        if expires_at <= self._clock():
            return
        if self._repo.exists(token_hash):
            return

        self._repo.add(
            TokenBlacklistModel(
                token_hash=token_hash,
                token_type=token_type.value,
                expires_at=expires_at,
                reason=reason,
                created_at=self._clock(),
            )
        )
        logger.debug("Token %s blacklisted (reason=%s)", token_type.value, reason)

    def is_revoked(self, token_hash: str) -> bool:
        return self._repo.is_revoked(token_hash, now=self._clock())

    def purge_expired(self) -> int:
        return self._repo.cleanup_expired(now=self._clock())
