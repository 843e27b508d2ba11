# ultrabms/infrastructure/database/models/token_blacklist_model.py

from datetime import datetime

from sqlalchemy import BigInteger, CHAR, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from ultrabms.infrastructure.database.base_model import BaseModel


class TokenBlacklistModel(BaseModel):
    __tablename__ = "tbTokenBlacklist"

    id: Mapped[int] = mapped_column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True)

    token_hash: Mapped[str] = mapped_column(CHAR(64), nullable=False, unique=True)
    token_type: Mapped[str] = mapped_column(String(10), nullable=False)  # "access" | "refresh"

    # validade natural do token; depois disso a linha pode ser removida
    expires_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)
    reason: Mapped[str] = mapped_column(String(50), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
