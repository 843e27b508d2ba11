# ultrabms/api/routes/__init__.py

from flask import Flask

from ultrabms.api.routes.admin_audit_routes import bp_admin_audit
from ultrabms.api.routes.admin_user_routes import bp_admin_users
from ultrabms.api.routes.auth_routes import bp_auth
from ultrabms.api.routes.health_routes import bp_health
from ultrabms.api.routes.session_routes import bp_sessions
from ultrabms.api.routes.user_routes import bp_users


def register_routes(app: Flask, *, api_prefix: str) -> None:
    # health fora de /api
    app.register_blueprint(bp_health, url_prefix="/health")

    app.register_blueprint(bp_auth, url_prefix=f"{api_prefix}/auth")
    app.register_blueprint(bp_sessions, url_prefix=f"{api_prefix}/auth/sessions")
    app.register_blueprint(bp_users, url_prefix=f"{api_prefix}/users")
    app.register_blueprint(bp_admin_users, url_prefix=f"{api_prefix}/admin/users")
    app.register_blueprint(bp_admin_audit, url_prefix=f"{api_prefix}/admin/audit-logs")
