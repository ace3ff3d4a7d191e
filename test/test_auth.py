import config
from conftest import PASSWORD


def _signup(client, email="new@school.org", password=PASSWORD, **extra):
    body = {"email": email, "password": password, "firstName": "Nina", "lastName": "Ng"}
    body.update(extra)
    return client.post("/api/auth/signup", json=body)


def test_signup_creates_student_profile(client):
    response = _signup(client, studentId="S-100")
    assert response.status_code == 201
    data = response.json()
    assert data["token_type"] == "bearer"
    assert data["user"]["roles"] == ["student"]
    assert data["user"]["primaryRole"] == "student"
    assert data["user"]["profile"]["firstName"] == "Nina"
    assert data["user"]["profile"]["studentId"] == "S-100"

    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {data['access_token']}"})
    assert me.status_code == 200
    assert me.json()["email"] == "new@school.org"


def test_signup_rejects_duplicate_email(client):
    assert _signup(client).status_code == 201
    response = _signup(client, email="NEW@school.org")
    assert response.status_code == 400
    assert response.json()["detail"] == "User with this email already exists"


def test_signup_password_policy(client):
    assert _signup(client, password="abc").json()["detail"] == "Password must be at least 6 characters long"
    assert _signup(client, password="abcdefg!").json()["detail"] == "Password must contain at least one number"
    response = _signup(client, password="abcdef12")
    assert response.status_code == 400
    assert "special character" in response.json()["detail"]


def test_login_and_wrong_password(client, make_user):
    make_user("faculty", email="staff@school.org")
    ok = client.post("/api/auth/login", json={"email": "staff@school.org", "password": PASSWORD})
    assert ok.status_code == 200
    assert ok.json()["user"]["primaryRole"] == "faculty"

    bad = client.post("/api/auth/login", json={"email": "staff@school.org", "password": "Wrong#123"})
    assert bad.status_code == 401
    assert bad.json()["detail"] == "Invalid email or password"


def test_refresh_rotates_token(client):
    tokens = _signup(client).json()
    response = client.post("/api/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
    assert response.status_code == 200
    assert response.json()["refresh_token"] != tokens["refresh_token"]

    reused = client.post("/api/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
    assert reused.status_code == 401


def test_logout_revokes_refresh_tokens(client):
    tokens = _signup(client).json()
    headers = {"Authorization": f"Bearer {tokens['access_token']}"}
    assert client.post("/api/auth/logout", headers=headers).json() == {"success": True}
    response = client.post("/api/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
    assert response.status_code == 401


def test_me_requires_token(client):
    response = client.get("/api/auth/me")
    assert response.status_code == 401
    assert response.headers["www-authenticate"] == "Bearer"

    garbage = client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert garbage.status_code == 401


def test_forgot_password_without_mail_configured(client, student):
    response = client.post("/api/auth/forgot-password", json={"email": "student1@school.org"})
    assert response.status_code == 503


def test_reset_password_with_bad_code(client, student):
    response = client.post(
        "/api/auth/reset-password",
        json={"email": "student1@school.org", "otp": "000000", "password": "Another#123"},
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid or expired OTP"


def test_health_is_public(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["checks"]["database"]["status"] == "ok"


def test_login_lockout(client, make_user):
    make_user("student", email="locked@school.org")
    for _ in range(config.MAX_LOGIN_ATTEMPTS):
        bad = client.post("/api/auth/login", json={"email": "locked@school.org", "password": "Wrong#123"})
        assert bad.status_code == 401

    locked = client.post("/api/auth/login", json={"email": "locked@school.org", "password": PASSWORD})
    assert locked.status_code == 401
    assert locked.json()["detail"] == "Invalid email or password"


def test_successful_login_resets_failed_attempts(client, make_user):
    make_user("student", email="careful@school.org")
    for _ in range(config.MAX_LOGIN_ATTEMPTS - 1):
        client.post("/api/auth/login", json={"email": "careful@school.org", "password": "Wrong#123"})
    assert client.post("/api/auth/login", json={"email": "careful@school.org", "password": PASSWORD}).status_code == 200

    client.post("/api/auth/login", json={"email": "careful@school.org", "password": "Wrong#123"})
    assert client.post("/api/auth/login", json={"email": "careful@school.org", "password": PASSWORD}).status_code == 200


def test_unknown_route_is_404(client, student):
    assert client.get("/api/nope", headers=student[1]).status_code == 404
    assert client.get("/api/nope").status_code == 404
