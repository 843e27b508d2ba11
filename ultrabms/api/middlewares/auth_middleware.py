import logging
from functools import wraps
from typing import Any, Callable, TypeVar

from flask import request

from ultrabms.core.exceptions import ForbiddenError, UnauthorizedError
from ultrabms.core.permissions import allowed_roles
from ultrabms.infrastructure.database.session import db_session
from ultrabms.services.service_factory import build_auth_service

F = TypeVar("F", bound=Callable[..., Any])

logger = logging.getLogger(__name__)


def get_bearer_token(*, required: bool = True) -> str | None:
    auth = request.headers.get("Authorization", "")
    parts = auth.split()
    if len(parts) == 2 and parts[0].lower() == "bearer":
        return parts[1]
    if required:
        raise UnauthorizedError("Authentication required")
    return None


def client_ip() -> str | None:
    # X-Forwarded-For só é considerado com TRUSTED_PROXY_HOPS > 0 (ProxyFix em create_app)
    return request.remote_addr


def user_agent() -> str | None:
    return request.headers.get("User-Agent")


def require_auth(fn: F) -> F:
    """Valida o access token e injeta ``auth`` (AuthContext) na view.

    Os papéis exigidos vêm de ``ROUTE_ROLES``, nunca da própria view.
    Sem token válido a resposta é 401 antes de qualquer checagem de papel.
    """

    @wraps(fn)
    def wrapper(*args, **kwargs):
        token = get_bearer_token()

        # falhas de sessão (timeout) precisam persistir a revogação
        with db_session(commit_on=(UnauthorizedError,)) as session:
            auth = build_auth_service(session).authenticate(token)

        roles = allowed_roles(request.endpoint)
        if roles is None:
            logger.error("No role requirement declared for endpoint %s", request.endpoint)
            raise ForbiddenError("Access denied")

        if not auth.has_any_role(roles):
            logger.info("Access denied: user_id=%s role=%s endpoint=%s", auth.user_id, auth.role.value, request.endpoint)
            raise ForbiddenError("Access denied")

        return fn(*args, auth=auth, **kwargs)

    return wrapper  # type: ignore[return-value]
