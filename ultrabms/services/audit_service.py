# ultrabms/services/audit_service.py

import json
from datetime import datetime

from ultrabms.infrastructure.database.models.audit_log_model import AuditLogModel
from ultrabms.repositories.audit_log_repository import AuditLogRepository


class AuditService:
    def __init__(self, repo: AuditLogRepository) -> None:
        self._repo = repo

    def log(
        self,
        *,
        action_name: str,
        user_id: str | None,
        ip_address: str | None = None,
        user_agent: str | None = None,
        details: dict | None = None,
    ) -> None:
        model = AuditLogModel(
            action_name=action_name,
            user_id=user_id,
            ip_address=ip_address,
            user_agent=(user_agent or "")[:500] or None,
            details=json.dumps(details, default=str) if details else None,
        )
        self._repo.add(model)

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
        return self._repo.list_logs(
            limit=limit,
            offset=offset,
            user_id=user_id,
            action_name=action_name.strip().upper() if action_name else None,
            occurred_from=occurred_from,
            occurred_to=occurred_to,
        )
