# ultrabms/infrastructure/database/models/user_session_model.py

from datetime import datetime

from sqlalchemy import CHAR, DateTime, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from ultrabms.infrastructure.database.base_model import BaseModel


class UserSessionModel(BaseModel):
    __tablename__ = "tbUserSessions"
    __table_args__ = (
        Index("ix_tbUserSessions_user_revoked", "user_id", "revoked_at"),
    )

    session_id: Mapped[str] = mapped_column(String(36), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(36), ForeignKey("tbUsers.id"), nullable=False)

    # apenas hashes; o token em claro nunca é gravado
    access_token_hash: Mapped[str] = mapped_column(CHAR(64), nullable=False, unique=True)
    refresh_token_hash: Mapped[str] = mapped_column(CHAR(64), nullable=False, unique=True)

    user_agent: Mapped[str] = mapped_column(String(500), nullable=True)
    device_type: Mapped[str] = mapped_column(String(20), nullable=True)
    ip_address: Mapped[str] = mapped_column(String(45), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    last_seen_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    revoked_at: Mapped[datetime] = mapped_column(DateTime, nullable=True)
    revoked_reason: Mapped[str] = mapped_column(String(50), nullable=True)
