# ultrabms/api/schemas/auth_schema.py
from pydantic import EmailStr, Field, field_validator

from ultrabms.api.schemas.base_schema import CamelModel
from ultrabms.api.schemas.user_schema import UserResponse
from ultrabms.entities.role import SELF_REGISTRATION_ROLES, Role


class RegisterRequest(CamelModel):
    email: EmailStr
    password: str = Field(min_length=8, max_length=200)
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    phone: str | None = Field(default=None, max_length=30)
    role: Role = Role.TENANT

    @field_validator("role")
    @classmethod
    def self_service_role(cls, v: Role) -> Role:
        if v not in SELF_REGISTRATION_ROLES:
            raise ValueError("role not allowed for self registration")
        return v


class LoginRequest(CamelModel):
    email: EmailStr
    # sem mínimo: senha curta errada ainda conta como tentativa falha
    password: str = Field(min_length=1, max_length=200)


class RefreshRequest(CamelModel):
    refresh_token: str | None = None


class LogoutRequest(CamelModel):
    refresh_token: str | None = None


class LoginResponse(CamelModel):
    access_token: str
    refresh_token: str
    token_type: str = "Bearer"
    expires_in: int
    user: UserResponse


class TokenResponse(CamelModel):
    access_token: str
    refresh_token: str
    token_type: str = "Bearer"
    expires_in: int


# -------------------------
# Recuperação de senha
# -------------------------

class ForgotPasswordRequest(CamelModel):
    email: EmailStr


class ResetPasswordRequest(CamelModel):
    token: str = Field(min_length=1, max_length=200)
    new_password: str = Field(min_length=8, max_length=200)


class ResetTokenValidationResponse(CamelModel):
    valid: bool
    remaining_minutes: int


class MessageResponse(CamelModel):
    message: str
