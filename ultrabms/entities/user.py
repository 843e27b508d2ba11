# ultrabms/entities/user.py
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ultrabms.entities.role import Role


@dataclass(frozen=True)
class UserProfile:
    id: str
    email: str
    first_name: str
    last_name: str
    phone: Optional[str]
    role: Role
    is_active: bool
    created_at: datetime
    updated_at: Optional[datetime]
    last_login: Optional[datetime]

    @classmethod
    def from_model(cls, model) -> "UserProfile":
        return cls(
            id=model.id,
            email=model.email,
            first_name=model.first_name,
            last_name=model.last_name,
            phone=model.phone,
            role=Role(model.role),
            is_active=bool(model.is_active),
            created_at=model.created_at,
            updated_at=model.updated_at,
            last_login=model.last_login,
        )
