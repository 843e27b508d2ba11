# ultrabms/infrastructure/database/models/password_reset_token_model.py

from datetime import datetime

from sqlalchemy import BigInteger, CHAR, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from ultrabms.infrastructure.database.base_model import BaseModel


class PasswordResetTokenModel(BaseModel):
    __tablename__ = "tbPasswordResetTokens"

    id: Mapped[int] = mapped_column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(36), ForeignKey("tbUsers.id"), nullable=False, index=True)

    # só o hash; o link enviado ao usuário carrega o token em claro
    token_hash: Mapped[str] = mapped_column(CHAR(64), nullable=False, unique=True)

    ip_address: Mapped[str] = mapped_column(String(45), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    used_at: Mapped[datetime] = mapped_column(DateTime, nullable=True)
