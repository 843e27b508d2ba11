# ultrabms/cli/commands.py
"""Comandos de manutenção expostos via ``flask --app ultrabms.main <comando>``."""

import logging

import click
from flask import Flask

from ultrabms.core.exceptions import AppError
from ultrabms.entities.role import Role
from ultrabms.infrastructure.database.base_model import BaseModel
from ultrabms.infrastructure.database.session import db_session, get_engine
from ultrabms.repositories.user_repository import UserRepository
from ultrabms.services.credential_service import CredentialService
from ultrabms.services.service_factory import (
    build_audit_service,
    build_blacklist_service,
    build_login_attempt_service,
    build_password_reset_service,
    build_session_service,
)

import ultrabms.infrastructure.database.models  # noqa: F401

logger = logging.getLogger(__name__)


@click.command("init-db")
def init_db_command() -> None:
    """Cria as tabelas que ainda não existem."""
    BaseModel.metadata.create_all(bind=get_engine())
    click.echo("Database schema is up to date.")


@click.command("create-admin")
@click.option("--email", envvar="ADMIN_EMAIL", required=True, help="Admin email (or ADMIN_EMAIL).")
@click.option("--password", envvar="ADMIN_PASSWORD", required=True, help="Admin password (or ADMIN_PASSWORD).")
@click.option("--first-name", default="System")
@click.option("--last-name", default="Administrator")
def create_admin_command(email: str, password: str, first_name: str, last_name: str) -> None:
    """Cria um SUPER_ADMIN; administradores não podem vir do cadastro público."""
    with db_session() as session:
        existing = UserRepository(session).get_by_email(email)
        if existing is not None:
            if existing.role == Role.SUPER_ADMIN.value:
                click.echo(f"User {existing.email} is already SUPER_ADMIN (id: {existing.id})")
                return
            raise click.ClickException(f"User {existing.email} already exists with role {existing.role}")

        try:
            user = CredentialService(UserRepository(session)).register(
                email=email,
                password=password,
                first_name=first_name,
                last_name=last_name,
                role=Role.SUPER_ADMIN,
            )
        except AppError as e:
            raise click.ClickException(str(e)) from e
        build_audit_service(session).log(
            action_name="ADMIN_BOOTSTRAP",
            user_id=user.id,
            details={"email": user.email},
        )
        user_id, user_email = user.id, user.email

    logger.info("Super admin created: id=%s", user_id)
    click.echo(f"Created SUPER_ADMIN {user_email} (id: {user_id})")


@click.command("purge-expired")
def purge_expired_command() -> None:
    """Remove registros de autenticação vencidos."""
    with db_session() as session:
        tokens = build_blacklist_service(session).purge_expired()
        sessions = build_session_service(session).purge_expired()
        reset_tokens = build_password_reset_service(session).purge_expired()
        attempts = build_login_attempt_service(session).purge_expired()

    click.echo(
        f"Purged {tokens} blacklisted tokens, {sessions} expired sessions, "
        f"{reset_tokens} reset tokens and {attempts} old attempts."
    )


def register_commands(app: Flask) -> None:
    app.cli.add_command(init_db_command)
    app.cli.add_command(create_admin_command)
    app.cli.add_command(purge_expired_command)
