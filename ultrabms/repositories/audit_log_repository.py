# ultrabms/repositories/audit_log_repository.py

from __future__ import annotations

from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ultrabms.core.base_repository import BaseRepository
from ultrabms.infrastructure.database.models.audit_log_model import AuditLogModel


class AuditLogRepository(BaseRepository[AuditLogModel]):
    def __init__(self, session: Session) -> None:
        super().__init__(session)

    def list_logs(
        self,
        *,
        limit: int = 50,
        offset: int = 0,
        user_id: str | None = None,
        action_name: str | None = None,
        occurred_from: datetime | None = None,
        occurred_to: datetime | None = None,
    ) -> tuple[list[AuditLogModel], int]:
        stmt = select(AuditLogModel)

        if user_id:
            stmt = stmt.where(AuditLogModel.user_id == user_id)
        if action_name:
            stmt = stmt.where(AuditLogModel.action_name == action_name)
        if occurred_from:
            stmt = stmt.where(AuditLogModel.occurred_at >= occurred_from)
        if occurred_to:
            stmt = stmt.where(AuditLogModel.occurred_at <= occurred_to)

        total = self._session.execute(select(func.count()).select_from(stmt.subquery())).scalar_one()

        rows = self._session.execute(
            stmt.order_by(AuditLogModel.occurred_at.desc(), AuditLogModel.id.desc()).limit(limit).offset(offset)
        ).scalars().all()
        return list(rows), int(total)
