from clubroster.core.security import create_refresh_token


def _login(client, email, password="secret-pass"):
    return client.post("/api/auth/login", json={"email": email, "password": password})


def test_health(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_login_redirects_by_role(client, super_admin, club_admin):
    admin = _login(client, "lead@clubs.example.com")
    root = _login(client, "ROOT@clubs.example.com")

    assert admin.status_code == 200
    assert admin.json()["redirect_path"] == "/dashboard/admin"
    assert admin.json()["user"]["first_name"] == "Lee"
    assert root.json()["redirect_path"] == "/dashboard/super-admin"


def test_login_with_wrong_password(client, club_admin):
    response = _login(client, "lead@clubs.example.com", "wrong-pass")

    assert response.status_code == 401
    assert response.json() == {"detail": "Incorrect email or password", "code": "invalid_credentials"}


def test_login_without_profile(client, ctx, session):
    ctx.auth.sign_up("orphan@x.com", "orphan-pass")
    session.commit()

    response = _login(client, "orphan@x.com", "orphan-pass")

    assert response.status_code == 401


def test_me_lists_led_clubs(client, club_admin, make_club, auth_headers):
    make_club("Drama Club")

    response = client.get("/api/auth/me", headers=auth_headers(club_admin))

    assert response.status_code == 200
    data = response.json()
    assert data["email"] == "lead@clubs.example.com"
    assert data["role"] == "admin"
    assert [c["club_name"] for c in data["clubs"]] == ["Chess Club"]


def test_me_for_super_admin_lists_all_clubs(client, super_admin, make_club, auth_headers):
    make_club("Drama Club")
    make_club("Chess Club")

    response = client.get("/api/auth/me", headers=auth_headers(super_admin))

    assert [c["club_name"] for c in response.json()["clubs"]] == ["Chess Club", "Drama Club"]
    assert response.json()["redirect_path"] == "/dashboard/super-admin"


def test_refresh_token_is_not_an_access_token(client, club_admin):
    token = create_refresh_token({"sub": str(club_admin.auth_user_id)})

    response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401


def test_logout_revokes_token(client, club_admin, auth_headers, redis_service):
    headers = auth_headers(club_admin)

    response = client.post("/api/auth/logout", headers=headers)

    assert response.status_code == 200
    token = headers["Authorization"].split(" ", 1)[1]
    assert redis_service.is_blacklisted(token)
    assert client.get("/api/auth/me", headers=headers).status_code == 401
