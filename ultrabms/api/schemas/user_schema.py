# ultrabms/api/schemas/user_schema.py
from datetime import datetime

from pydantic import EmailStr, Field

from ultrabms.api.schemas.base_schema import CamelModel
from ultrabms.entities.role import Role
from ultrabms.entities.user import UserProfile


class UserResponse(CamelModel):
    id: str
    email: str
    first_name: str
    last_name: str
    phone: str | None = None
    role: Role
    is_active: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None
    last_login: datetime | None = None

    @classmethod
    def from_profile(cls, profile: UserProfile) -> "UserResponse":
        return cls(
            id=profile.id,
            email=profile.email,
            first_name=profile.first_name,
            last_name=profile.last_name,
            phone=profile.phone,
            role=profile.role,
            is_active=profile.is_active,
            created_at=profile.created_at,
            updated_at=profile.updated_at,
            last_login=profile.last_login,
        )


class ChangePasswordRequest(CamelModel):
    current_password: str = Field(min_length=1, max_length=200)
    new_password: str = Field(min_length=8, max_length=200)


# -------------------------
# ADMIN
# -------------------------

class AdminUpdateUserRequest(CamelModel):
    role: Role | None = None
    is_active: bool | None = None


class AdminUserResponse(UserResponse):
    failed_login_attempts: int = 0
    locked_until: datetime | None = None


class AdminUsersListResponse(CamelModel):
    items: list[AdminUserResponse]
    total: int
    page: int
    size: int


class AdminCreateUserRequest(CamelModel):
    email: EmailStr
    temporary_password: str = Field(min_length=8, max_length=200)
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    phone: str | None = Field(default=None, max_length=30)
    role: Role
