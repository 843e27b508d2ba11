# ultrabms/entities/auth_context.py
from dataclasses import dataclass, field
from typing import Any

from ultrabms.entities.role import Role


@dataclass(frozen=True)
class AuthContext:
    """Identidade verificada da requisição atual.

    Criado pelo ``require_auth`` a partir do access token e repassado
    explicitamente para a view; nada fica em estado global.
    """

    user_id: str
    session_id: str
    role: Role
    email: str
    access_token_hash: str
    claims: dict[str, Any] = field(default_factory=dict)

    def has_any_role(self, roles) -> bool:
        return self.role in roles
