# ultrabms/infrastructure/database/models/auth_attempt_model.py

from datetime import datetime

from sqlalchemy import BigInteger, DateTime, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from ultrabms.infrastructure.database.base_model import BaseModel


class AuthAttemptModel(BaseModel):
    """Tentativas por e-mail (login falho, pedido de reset), com ou sem conta."""

    __tablename__ = "tbAuthAttempts"
    __table_args__ = (
        Index("ix_tbAuthAttempts_kind_email_at", "attempt_kind", "email", "attempted_at"),
    )

    id: Mapped[int] = mapped_column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True)

    attempt_kind: Mapped[str] = mapped_column(String(20), nullable=False)  # "LOGIN" | "PASSWORD_RESET"
    email: Mapped[str] = mapped_column(String(150), nullable=False)
    ip_address: Mapped[str] = mapped_column(String(45), nullable=True)
    attempted_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
