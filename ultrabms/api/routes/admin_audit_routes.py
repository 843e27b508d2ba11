# ultrabms/api/routes/admin_audit_routes.py

from __future__ import annotations

from datetime import datetime, timezone

from flask import Blueprint, jsonify, request

from ultrabms.api.middlewares.auth_middleware import require_auth
from ultrabms.api.schemas.audit_schema import AuditLogResponse, AuditLogsListResponse
from ultrabms.core.exceptions import BadRequestError
from ultrabms.entities.auth_context import AuthContext
from ultrabms.infrastructure.database.session import db_session
from ultrabms.services.service_factory import build_audit_service

bp_admin_audit = Blueprint("admin_audit", __name__)

MAX_LIMIT = 200


def _parse_dt(name: str) -> datetime | None:
    raw = (request.args.get(name) or "").strip()
    if not raw:
        return None
    try:
        parsed = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError:
        raise BadRequestError(f"Invalid {name} parameter. Use ISO 8601 (e.g. 2026-01-26T10:30:00).")
    # gravamos UTC ingênuo
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


@bp_admin_audit.get("")
@require_auth
def list_audit_logs(auth: AuthContext):
    try:
        limit = max(1, min(int(request.args.get("limit", 50)), MAX_LIMIT))
        offset = max(0, int(request.args.get("offset", 0)))
    except ValueError:
        raise BadRequestError("Invalid limit/offset parameters")

    user_id = (request.args.get("userId") or "").strip() or None
    action_name = (request.args.get("action") or "").strip() or None

    with db_session() as session:
        rows, total = build_audit_service(session).list_logs(
            limit=limit,
            offset=offset,
            user_id=user_id,
            action_name=action_name,
            occurred_from=_parse_dt("from"),
            occurred_to=_parse_dt("to"),
        )
        items = [AuditLogResponse.from_model(r) for r in rows]

    return jsonify(AuditLogsListResponse(items=items, total=total, limit=limit, offset=offset).to_json()), 200
