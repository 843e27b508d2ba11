# ultrabms/api/schemas/audit_schema.py
import json
from datetime import datetime
from typing import Any

from ultrabms.api.schemas.base_schema import CamelModel
from ultrabms.infrastructure.database.models.audit_log_model import AuditLogModel


class AuditLogResponse(CamelModel):
    id: int
    user_id: str | None = None
    action_name: str
    ip_address: str | None = None
    user_agent: str | None = None
    details: dict[str, Any] | None = None
    occurred_at: datetime

    @classmethod
    def from_model(cls, row: AuditLogModel) -> "AuditLogResponse":
        return cls(
            id=int(row.id),
            user_id=row.user_id,
            action_name=row.action_name,
            ip_address=row.ip_address,
            user_agent=row.user_agent,
            details=json.loads(row.details) if row.details else None,
            occurred_at=row.occurred_at,
        )


class AuditLogsListResponse(CamelModel):
    items: list[AuditLogResponse]
    total: int
    limit: int
    offset: int
