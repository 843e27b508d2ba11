# ultrabms/api/routes/user_routes.py

from __future__ import annotations

from flask import Blueprint, jsonify, request

from ultrabms.api.middlewares.auth_middleware import require_auth
from ultrabms.api.schemas.user_schema import ChangePasswordRequest, UserResponse
from ultrabms.core.exceptions import BadRequestError
from ultrabms.entities.auth_context import AuthContext
from ultrabms.entities.user import UserProfile
from ultrabms.infrastructure.database.session import db_session
from ultrabms.services.service_factory import build_auth_service, build_user_service

bp_users = Blueprint("users", __name__)


# -------------------------
# Minha conta
# -------------------------

@bp_users.get("/me")
@require_auth
def get_me(auth: AuthContext):
    with db_session() as session:
        user = build_user_service(session).get_user(user_id=auth.user_id)
        profile = UserProfile.from_model(user)

    return jsonify(UserResponse.from_profile(profile).to_json()), 200


@bp_users.post("/me/password")
@require_auth
def change_password(auth: AuthContext):
    payload = ChangePasswordRequest.model_validate(request.get_json(force=True))

    if payload.current_password == payload.new_password:
        raise BadRequestError("New password must differ from the current one")

    with db_session() as session:
        build_auth_service(session).change_password(
            auth=auth,
            current_password=payload.current_password,
            new_password=payload.new_password,
        )

    return ("", 204)
