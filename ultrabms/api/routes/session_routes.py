# ultrabms/api/routes/session_routes.py

from __future__ import annotations

from flask import Blueprint, jsonify

from ultrabms.api.middlewares.auth_middleware import require_auth
from ultrabms.api.schemas.session_schema import RevokeOthersResponse, SessionResponse
from ultrabms.entities.auth_context import AuthContext
from ultrabms.infrastructure.database.session import db_session
from ultrabms.services.service_factory import build_audit_service, build_session_service

bp_sessions = Blueprint("auth_sessions", __name__)


@bp_sessions.get("")
@require_auth
def list_sessions(auth: AuthContext):
    with db_session() as session:
        views = build_session_service(session).list_active(
            user_id=auth.user_id,
            current_session_id=auth.session_id,
        )

    return jsonify([SessionResponse.from_view(v).to_json() for v in views]), 200


@bp_sessions.delete("/<session_id>")
@require_auth
def revoke_session(session_id: str, auth: AuthContext):
    with db_session() as session:
        build_session_service(session).revoke(user_id=auth.user_id, session_id=session_id)
        build_audit_service(session).log(
            action_name="SESSION_REVOKED",
            user_id=auth.user_id,
            details={"session_id": session_id, "by_session": auth.session_id},
        )

    return ("", 204)


@bp_sessions.post("/revoke-others")
@require_auth
def revoke_other_sessions(auth: AuthContext):
    with db_session() as session:
        revoked = build_session_service(session).revoke_all_except(
            user_id=auth.user_id,
            except_session_id=auth.session_id,
        )
        build_audit_service(session).log(
            action_name="SESSIONS_REVOKED",
            user_id=auth.user_id,
            details={"revoked": revoked, "kept": auth.session_id},
        )

    return jsonify(RevokeOthersResponse(revoked=revoked).to_json()), 200
