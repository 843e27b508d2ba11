import json

from conftest import API, bearer, login_user, register_user

from ultrabms.infrastructure.database.session import db_session
from ultrabms.repositories.audit_log_repository import AuditLogRepository


def test_auth_events_are_audited(app, client):
    user_id = register_user(client, "audited@example.com").get_json()["id"]
    login_user(client, "audited@example.com", password="bad-password")
    login = login_user(client, "audited@example.com").get_json()
    client.post(f"{API}/auth/logout", headers={"Authorization": f"Bearer {login['accessToken']}"})

    with db_session() as session:
        repo = AuditLogRepository(session)
        rows, total = repo.list_logs(user_id=user_id)
        failures, _ = repo.list_logs(action_name="LOGIN_FAILED")

        assert total == 3
        assert {row.action_name for row in rows} == {"REGISTRATION", "LOGIN_SUCCESS", "LOGOUT"}
        assert len(failures) == 1
        assert failures[0].user_id is None
        assert json.loads(failures[0].details) == {"email": "audited@example.com", "reason": "invalid_credentials"}


def test_refresh_reuse_is_audited(app, tenant):
    login, _ = tenant
    client = app.test_client()
    client.post(f"{API}/auth/refresh", json={"refreshToken": login["refreshToken"]})
    client.post(f"{API}/auth/refresh", json={"refreshToken": login["refreshToken"]})

    with db_session() as session:
        rows, total = AuditLogRepository(session).list_logs(action_name="REFRESH_REUSE_DETECTED")

    assert total == 1
    assert rows[0].user_id == login["user"]["id"]


def test_admin_reads_audit_trail_filtered_by_user_and_action(app, admin, tenant):
    admin_login, _ = admin
    tenant_login, _ = tenant
    tenant_id = tenant_login["user"]["id"]

    resp = app.test_client().get(
        f"{API}/admin/audit-logs?userId={tenant_id}&action=login_success",
        headers=bearer(admin_login["accessToken"]),
    )

    assert resp.status_code == 200
    body = resp.get_json()
    assert body["total"] == 1
    assert body["limit"] == 50
    assert body["offset"] == 0
    entry = body["items"][0]
    assert entry["userId"] == tenant_id
    assert entry["actionName"] == "LOGIN_SUCCESS"
    assert set(entry["details"]) == {"session_id"}


def test_audit_trail_pages_with_limit_and_offset(app, admin, tenant):
    admin_login, _ = admin
    client = app.test_client()

    everything = client.get(f"{API}/admin/audit-logs", headers=bearer(admin_login["accessToken"])).get_json()
    page = client.get(f"{API}/admin/audit-logs?limit=1&offset=1", headers=bearer(admin_login["accessToken"])).get_json()

    assert everything["total"] >= 4
    assert page["total"] == everything["total"]
    assert [e["id"] for e in page["items"]] == [everything["items"][1]["id"]]


def test_audit_trail_rejects_bad_parameters(app, admin):
    admin_login, _ = admin
    client = app.test_client()

    bad_limit = client.get(f"{API}/admin/audit-logs?limit=abc", headers=bearer(admin_login["accessToken"]))
    bad_from = client.get(f"{API}/admin/audit-logs?from=yesterday", headers=bearer(admin_login["accessToken"]))

    assert bad_limit.status_code == 400
    assert bad_from.status_code == 400


def test_tenant_cannot_read_audit_trail(app, tenant):
    login, _ = tenant

    resp = app.test_client().get(f"{API}/admin/audit-logs", headers=bearer(login["accessToken"]))

    assert resp.status_code == 403
