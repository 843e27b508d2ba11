# ultrabms/api/routes/auth_routes.py

import logging

from flask import Blueprint, Response, jsonify, request

from ultrabms.api.middlewares.auth_middleware import client_ip, get_bearer_token, user_agent
from ultrabms.api.schemas.auth_schema import (
    ForgotPasswordRequest,
    LoginRequest,
    LoginResponse,
    LogoutRequest,
    MessageResponse,
    RefreshRequest,
    RegisterRequest,
    ResetPasswordRequest,
    ResetTokenValidationResponse,
    TokenResponse,
)
from ultrabms.api.schemas.user_schema import UserResponse
from ultrabms.config.settings import settings
from ultrabms.core.exceptions import (
    AccountLockedError,
    InvalidCredentialsError,
    InvalidTokenError,
    UnauthorizedError,
)
from ultrabms.infrastructure.database.session import db_session
from ultrabms.services.service_factory import build_auth_service, build_password_reset_service

bp_auth = Blueprint("auth", __name__)

logger = logging.getLogger(__name__)

REFRESH_TOKEN_COOKIE_NAME = "refreshToken"


# -------------------------
# Cookie do refresh token
# -------------------------

def _set_refresh_cookie(response: Response, refresh_token: str) -> None:
    response.set_cookie(
        REFRESH_TOKEN_COOKIE_NAME,
        refresh_token,
        max_age=settings.jwt_refresh_minutes * 60,
        path=settings.auth_path,
        secure=settings.cookie_secure,
        httponly=True,
        samesite="Strict",
    )


def _clear_refresh_cookie(response: Response) -> None:
    response.delete_cookie(
        REFRESH_TOKEN_COOKIE_NAME,
        path=settings.auth_path,
        secure=settings.cookie_secure,
        httponly=True,
        samesite="Strict",
    )


# -------------------------
# Rotas públicas
# -------------------------

@bp_auth.post("/register")
def register():
    payload = RegisterRequest.model_validate(request.get_json(force=True))
    logger.info("Registration request received")

    with db_session() as session:
        profile = build_auth_service(session).register(
            email=payload.email,
            password=payload.password,
            first_name=payload.first_name,
            last_name=payload.last_name,
            role=payload.role,
            phone=payload.phone,
            ip_address=client_ip(),
            user_agent=user_agent(),
        )

    return jsonify(UserResponse.from_profile(profile).to_json()), 201


@bp_auth.post("/login")
def login():
    payload = LoginRequest.model_validate(request.get_json(force=True))

    # contador de falhas e auditoria precisam ser gravados mesmo respondendo 401/423
    with db_session(commit_on=(InvalidCredentialsError, AccountLockedError)) as session:
        result = build_auth_service(session).login(
            email=payload.email,
            password=payload.password,
            ip_address=client_ip(),
            user_agent=user_agent(),
        )

    body = LoginResponse(
        access_token=result.access_token,
        refresh_token=result.refresh_token,
        expires_in=result.expires_in,
        user=UserResponse.from_profile(result.user),
    )
    response = jsonify(body.to_json())
    _set_refresh_cookie(response, result.refresh_token)
    return response, 200


@bp_auth.post("/refresh")
def refresh():
    payload = RefreshRequest.model_validate(request.get_json(silent=True) or {})
    refresh_token = payload.refresh_token or request.cookies.get(REFRESH_TOKEN_COOKIE_NAME)

    if not refresh_token:
        logger.info("Refresh token not provided")
        raise InvalidTokenError()

    # reuso detectado revoga a sessão: a revogação precisa persistir
    with db_session(commit_on=(UnauthorizedError,)) as session:
        pair = build_auth_service(session).refresh_access_token(
            refresh_token=refresh_token,
            ip_address=client_ip(),
            user_agent=user_agent(),
        )

    body = TokenResponse(
        access_token=pair.access_token,
        refresh_token=pair.refresh_token,
        expires_in=pair.expires_in,
    )
    response = jsonify(body.to_json())
    _set_refresh_cookie(response, pair.refresh_token)
    return response, 200


@bp_auth.post("/logout")
def logout():
    payload = LogoutRequest.model_validate(request.get_json(silent=True) or {})

    access_token = get_bearer_token(required=False)
    refresh_token = request.cookies.get(REFRESH_TOKEN_COOKIE_NAME) or payload.refresh_token

    with db_session() as session:
        build_auth_service(session).logout(
            access_token=access_token,
            refresh_token=refresh_token,
            ip_address=client_ip(),
            user_agent=user_agent(),
        )

    response = Response(status=204)
    _clear_refresh_cookie(response)
    return response


# -------------------------
# Recuperação de senha
# -------------------------

FORGOT_PASSWORD_MESSAGE = "If an account exists with that email, a password reset link has been sent."


@bp_auth.post("/forgot-password")
def forgot_password():
    payload = ForgotPasswordRequest.model_validate(request.get_json(force=True))

    with db_session() as session:
        build_password_reset_service(session).initiate(email=payload.email, ip_address=client_ip())

    # mesma resposta exista ou não a conta
    return jsonify(MessageResponse(message=FORGOT_PASSWORD_MESSAGE).to_json()), 200


@bp_auth.get("/reset-password/validate")
def validate_reset_token():
    token = (request.args.get("token") or "").strip()

    with db_session() as session:
        status = build_password_reset_service(session).validate(token)

    body = ResetTokenValidationResponse(valid=status.valid, remaining_minutes=status.remaining_minutes)
    return jsonify(body.to_json()), 200


@bp_auth.post("/reset-password")
def reset_password():
    payload = ResetPasswordRequest.model_validate(request.get_json(force=True))

    with db_session() as session:
        build_password_reset_service(session).reset(
            token=payload.token,
            new_password=payload.new_password,
            ip_address=client_ip(),
        )

    response = jsonify(MessageResponse(message="Password has been reset. Please log in again.").to_json())
    _clear_refresh_cookie(response)
    return response, 200
