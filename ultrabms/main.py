# ultrabms/main.py

from __future__ import annotations

from flask import Flask
from flask_cors import CORS
from werkzeug.middleware.proxy_fix import ProxyFix

from ultrabms.api.middlewares.error_handler import register_error_handlers
from ultrabms.api.routes import register_routes
from ultrabms.cli.commands import register_commands
from ultrabms.config.flask_config import configure_app, configure_logging
from ultrabms.config.settings import settings
from ultrabms.infrastructure.database.session import init_engine

import ultrabms.infrastructure.database.models  # noqa: F401


def create_app() -> Flask:
    configure_logging()

    app = Flask(__name__)

    # atrás de proxy reverso: remote_addr passa a vir do X-Forwarded-For
    if settings.trusted_proxy_hops > 0:
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=settings.trusted_proxy_hops, x_proto=settings.trusted_proxy_hops)

    # CORS aplicado cedo (antes das rotas lidarem com OPTIONS);
    # credenciais liberadas por causa do cookie do refresh token
    CORS(
        app,
        resources={rf"{settings.api_prefix}/*": {"origins": settings.cors_origins}},
        allow_headers=["Content-Type", "Authorization"],
        methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        supports_credentials=True,
    )

    configure_app(app)
    init_engine()

    register_routes(app, api_prefix=settings.api_prefix)
    register_error_handlers(app)
    register_commands(app)

    return app


app = create_app()

if __name__ == "__main__":
    # em produção roda atrás do gunicorn; este bloco é só para execução direta
    app.run(host="0.0.0.0", port=5000, debug=settings.debug)
