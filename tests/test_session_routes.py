from conftest import API, bearer, login_user, register_user

FIREFOX_UA = "Mozilla/5.0 (X11; Linux x86_64; rv:121.0) Gecko/20100101 Firefox/121.0"


def test_list_marks_current_session(app, tenant):
    login, email = tenant
    login_user(app.test_client(), email, user_agent=FIREFOX_UA)
    client = app.test_client()

    resp = client.get(f"{API}/auth/sessions", headers=bearer(login["accessToken"]))

    assert resp.status_code == 200
    sessions = resp.get_json()
    assert len(sessions) == 2
    current = [s for s in sessions if s["isCurrent"]]
    assert len(current) == 1
    assert {"sessionId", "deviceType", "browser", "ipAddress", "createdAt", "lastSeenAt", "expiresAt"} <= set(current[0])
    assert "Firefox" in {s["browser"] for s in sessions}


def test_fourth_login_evicts_the_oldest_session(app, client):
    register_user(client, "busy@example.com")
    logins = [login_user(app.test_client(), "busy@example.com").get_json() for _ in range(4)]

    assert client.get(f"{API}/users/me", headers=bearer(logins[0]["accessToken"])).status_code == 401

    sessions = client.get(f"{API}/auth/sessions", headers=bearer(logins[-1]["accessToken"])).get_json()
    assert len(sessions) == 3
    assert logins[0]["user"]["id"] == logins[-1]["user"]["id"]


def test_revoke_one_session(app, tenant):
    login, email = tenant
    other = login_user(app.test_client(), email).get_json()
    client = app.test_client()

    sessions = client.get(f"{API}/auth/sessions", headers=bearer(login["accessToken"])).get_json()
    target = next(s["sessionId"] for s in sessions if not s["isCurrent"])

    resp = client.delete(f"{API}/auth/sessions/{target}", headers=bearer(login["accessToken"]))

    assert resp.status_code == 204
    assert client.get(f"{API}/users/me", headers=bearer(other["accessToken"])).status_code == 401
    assert client.post(f"{API}/auth/refresh", json={"refreshToken": other["refreshToken"]}).status_code == 401
    assert client.get(f"{API}/users/me", headers=bearer(login["accessToken"])).status_code == 200


def test_cannot_revoke_someone_elses_session(app, tenant):
    login, _ = tenant
    client = app.test_client()
    register_user(client, "intruder@example.com")
    intruder = login_user(app.test_client(), "intruder@example.com").get_json()

    victim_session = client.get(f"{API}/auth/sessions", headers=bearer(login["accessToken"])).get_json()[0]["sessionId"]

    resp = client.delete(f"{API}/auth/sessions/{victim_session}", headers=bearer(intruder["accessToken"]))

    assert resp.status_code == 404
    assert client.get(f"{API}/users/me", headers=bearer(login["accessToken"])).status_code == 200


def test_revoke_unknown_session_is_not_found(app, tenant):
    login, _ = tenant

    resp = app.test_client().delete(
        f"{API}/auth/sessions/00000000-0000-0000-0000-000000000000", headers=bearer(login["accessToken"])
    )

    assert resp.status_code == 404


def test_revoke_others_keeps_the_caller(app, tenant):
    login, email = tenant
    others = [login_user(app.test_client(), email).get_json() for _ in range(2)]
    client = app.test_client()

    resp = client.post(f"{API}/auth/sessions/revoke-others", headers=bearer(login["accessToken"]))

    assert resp.status_code == 200
    assert resp.get_json() == {"revoked": 2}
    for o in others:
        assert client.get(f"{API}/users/me", headers=bearer(o["accessToken"])).status_code == 401

    sessions = client.get(f"{API}/auth/sessions", headers=bearer(login["accessToken"])).get_json()
    assert [s["isCurrent"] for s in sessions] == [True]
