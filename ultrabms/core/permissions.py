# ultrabms/core/permissions.py
"""Tabela única de autorização: endpoint Flask -> papéis permitidos.

Rotas protegidas usam ``@require_auth``; o decorator consulta esta tabela.
Endpoint sem entrada aqui é negado (403).
"""

from ultrabms.entities.role import ADMIN_ROLES, Role

ANY_ROLE: frozenset[Role] = frozenset(Role)

ROUTE_ROLES: dict[str, frozenset[Role]] = {
    # sessões do próprio usuário
    "auth_sessions.list_sessions": ANY_ROLE,
    "auth_sessions.revoke_session": ANY_ROLE,
    "auth_sessions.revoke_other_sessions": ANY_ROLE,
    # minha conta
    "users.get_me": ANY_ROLE,
    "users.change_password": ANY_ROLE,
    # administração de usuários
    "admin_users.list_users": ADMIN_ROLES,
    "admin_users.create_user": ADMIN_ROLES,
    "admin_users.get_user": ADMIN_ROLES,
    "admin_users.update_user": ADMIN_ROLES,
    "admin_users.unlock_user": ADMIN_ROLES,
    # trilha de auditoria
    "admin_audit.list_audit_logs": ADMIN_ROLES,
}


def allowed_roles(endpoint: str | None) -> frozenset[Role] | None:
    if endpoint is None:
        return None
    return ROUTE_ROLES.get(endpoint)
