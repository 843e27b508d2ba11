# ultrabms/api/schemas/session_schema.py
from datetime import datetime

from ultrabms.api.schemas.base_schema import CamelModel
from ultrabms.services.session_service import SessionView


class SessionResponse(CamelModel):
    session_id: str
    device_type: str | None = None
    browser: str | None = None
    ip_address: str | None = None
    created_at: datetime
    last_seen_at: datetime
    expires_at: datetime
    is_current: bool

    @classmethod
    def from_view(cls, view: SessionView) -> "SessionResponse":
        return cls(
            session_id=view.session_id,
            device_type=view.device_type,
            browser=view.browser,
            ip_address=view.ip_address,
            created_at=view.created_at,
            last_seen_at=view.last_seen_at,
            expires_at=view.expires_at,
            is_current=view.is_current,
        )


class RevokeOthersResponse(CamelModel):
    revoked: int
