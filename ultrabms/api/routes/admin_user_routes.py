# ultrabms/api/routes/admin_user_routes.py

from __future__ import annotations

from flask import Blueprint, jsonify, request

from ultrabms.api.middlewares.auth_middleware import client_ip, require_auth, user_agent
from ultrabms.api.schemas.user_schema import (
    AdminCreateUserRequest,
    AdminUpdateUserRequest,
    AdminUserResponse,
    AdminUsersListResponse,
)
from ultrabms.core.exceptions import BadRequestError
from ultrabms.entities.auth_context import AuthContext
from ultrabms.entities.role import Role
from ultrabms.infrastructure.database.models.user_model import UserModel
from ultrabms.infrastructure.database.session import db_session
from ultrabms.services.service_factory import build_audit_service, build_user_service

bp_admin_users = Blueprint("admin_users", __name__)

MAX_PAGE_SIZE = 100


# -------------------------
# Helpers
# -------------------------

def _to_response(u: UserModel) -> AdminUserResponse:
    return AdminUserResponse(
        id=u.id,
        email=u.email,
        first_name=u.first_name,
        last_name=u.last_name,
        phone=u.phone,
        role=Role(u.role),
        is_active=bool(u.is_active),
        created_at=u.created_at,
        updated_at=u.updated_at,
        last_login=u.last_login,
        failed_login_attempts=int(u.failed_login_attempts or 0),
        locked_until=u.locked_until,
    )


def _parse_paging() -> tuple[int, int]:
    try:
        page = max(0, int(request.args.get("page", 0)))
        size = max(1, min(int(request.args.get("size", 20)), MAX_PAGE_SIZE))
    except ValueError:
        raise BadRequestError("Invalid page/size parameters")
    return page, size


def _parse_role() -> Role | None:
    raw = (request.args.get("role") or "").strip()
    if not raw:
        return None
    try:
        return Role(raw.upper())
    except ValueError:
        raise BadRequestError(f"Unknown role: {raw}")


def _parse_active() -> bool | None:
    raw = (request.args.get("active") or "").strip().lower()
    if not raw:
        return None
    return raw in ("1", "true", "yes")


# -------------------------
# ADMIN
# -------------------------

@bp_admin_users.get("")
@require_auth
def list_users(auth: AuthContext):
    page, size = _parse_paging()
    search = (request.args.get("q") or "").strip() or None

    with db_session() as session:
        users, total = build_user_service(session).list_users(
            limit=size,
            offset=page * size,
            search=search,
            role=_parse_role(),
            is_active=_parse_active(),
        )
        items = [_to_response(u) for u in users]

    return jsonify(AdminUsersListResponse(items=items, total=total, page=page, size=size).to_json()), 200


@bp_admin_users.post("")
@require_auth
def create_user(auth: AuthContext):
    payload = AdminCreateUserRequest.model_validate(request.get_json(force=True))

    with db_session() as session:
        created = build_user_service(session).create_user(
            acting_role=auth.role,
            email=payload.email,
            temporary_password=payload.temporary_password,
            first_name=payload.first_name,
            last_name=payload.last_name,
            role=payload.role,
            phone=payload.phone,
        )
        build_audit_service(session).log(
            action_name="USER_CREATED",
            user_id=auth.user_id,
            ip_address=client_ip(),
            user_agent=user_agent(),
            details={"target_user_id": created.id, "target_email": created.email, "role": created.role},
        )
        response = _to_response(created)

    return jsonify(response.to_json()), 201


@bp_admin_users.get("/<user_id>")
@require_auth
def get_user(user_id: str, auth: AuthContext):
    with db_session() as session:
        response = _to_response(build_user_service(session).get_user(user_id=user_id))

    return jsonify(response.to_json()), 200


@bp_admin_users.put("/<user_id>")
@require_auth
def update_user(user_id: str, auth: AuthContext):
    payload = AdminUpdateUserRequest.model_validate(request.get_json(force=True))
    data = payload.model_dump(exclude_none=True)

    if auth.role != Role.SUPER_ADMIN and payload.role == Role.SUPER_ADMIN:
        raise BadRequestError("Only a super administrator can grant SUPER_ADMIN")

    with db_session() as session:
        updated = build_user_service(session).admin_update_user(
            user_id=user_id,
            acting_user_id=auth.user_id,
            role=payload.role,
            is_active=payload.is_active,
        )
        build_audit_service(session).log(
            action_name="USER_UPDATED",
            user_id=auth.user_id,
            ip_address=client_ip(),
            user_agent=user_agent(),
            details={"target_user_id": user_id, "changed_keys": sorted(data.keys())},
        )
        response = _to_response(updated)

    return jsonify(response.to_json()), 200


@bp_admin_users.post("/<user_id>/unlock")
@require_auth
def unlock_user(user_id: str, auth: AuthContext):
    with db_session() as session:
        updated = build_user_service(session).unlock_user(user_id=user_id)
        build_audit_service(session).log(
            action_name="ACCOUNT_UNLOCKED",
            user_id=auth.user_id,
            ip_address=client_ip(),
            user_agent=user_agent(),
            details={"target_user_id": user_id},
        )
        response = _to_response(updated)

    return jsonify(response.to_json()), 200
