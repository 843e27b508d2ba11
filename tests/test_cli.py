from conftest import API, DEFAULT_PASSWORD, bearer


def test_init_db_is_repeatable(app):
    runner = app.test_cli_runner()

    first = runner.invoke(args=["init-db"])
    second = runner.invoke(args=["init-db"])

    assert first.exit_code == 0
    assert second.exit_code == 0
    assert "up to date" in second.output


def test_create_admin_rejects_weak_password(app):
    result = app.test_cli_runner().invoke(args=["create-admin", "--email", "weak@example.com", "--password", "short"])

    assert result.exit_code != 0
    assert "at least 8 characters" in result.output


def test_purge_expired_keeps_live_entries(app, tenant):
    login, _ = tenant
    client = app.test_client()
    client.post(f"{API}/auth/logout", headers=bearer(login["accessToken"]))

    result = app.test_cli_runner().invoke(args=["purge-expired"])

    assert result.exit_code == 0
    assert "Purged 0 blacklisted tokens, 0 expired sessions, 0 reset tokens and 0 old attempts." in result.output


def test_create_admin_refuses_to_promote_existing_user(app, tenant):
    _, email = tenant

    result = app.test_cli_runner().invoke(args=["create-admin", "--email", email, "--password", DEFAULT_PASSWORD])

    assert result.exit_code != 0
    assert "already exists" in result.output
