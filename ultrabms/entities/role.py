# ultrabms/entities/role.py
from enum import Enum


class Role(str, Enum):
    SUPER_ADMIN = "SUPER_ADMIN"
    ADMIN = "ADMIN"
    PROPERTY_MANAGER = "PROPERTY_MANAGER"
    MAINTENANCE_SUPERVISOR = "MAINTENANCE_SUPERVISOR"
    FINANCE_MANAGER = "FINANCE_MANAGER"
    TENANT = "TENANT"
    VENDOR = "VENDOR"


ADMIN_ROLES: frozenset[Role] = frozenset({Role.SUPER_ADMIN, Role.ADMIN})

# Papéis que o cadastro público pode solicitar
SELF_REGISTRATION_ROLES: frozenset[Role] = frozenset(Role) - ADMIN_ROLES
