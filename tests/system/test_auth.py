"""认证接口的集成测试用例。"""

from fastapi.testclient import TestClient

DEFAULT_PASSWORD = "secret123"

REGISTER_BODY = {"email": "Alice@Example.com", "firstName": "Alice", "lastName": "Liddell", "password": DEFAULT_PASSWORD}


def _register(client: TestClient, body: dict = REGISTER_BODY):
    return client.post("/api/auth/register", json=body)


def test_register_sends_activation_mail(client: TestClient, mailer):
    response = _register(client)

    assert response.status_code == 201
    payload = response.json()
    assert payload["success"] is True
    assert "check your email" in payload["message"]
    assert mailer.sent[-1]["to"] == "alice@example.com"
    assert mailer.sent[-1]["subject"] == "Activate Your DriveClone Account"


def test_register_reports_mail_failure_but_keeps_account(client: TestClient, mailer):
    mailer.succeed = False
    response = _register(client)

    assert response.status_code == 201
    assert "could not send the activation email" in response.json()["message"]
    assert _register(client).status_code == 400


def test_register_duplicate_email_is_case_insensitive(client: TestClient):
    _register(client)
    response = _register(client, {**REGISTER_BODY, "email": "ALICE@example.com"})

    assert response.status_code == 400
    assert response.json() == {"success": False, "error": "User with this email already exists"}


def test_register_validation_error(client: TestClient):
    response = _register(client, {**REGISTER_BODY, "email": "not-an-email"})

    assert response.status_code == 422
    payload = response.json()
    assert payload["success"] is False
    assert payload["error"].startswith("email")


def test_login_requires_activation(client: TestClient):
    _register(client)
    response = client.post("/api/auth/login", json={"email": "alice@example.com", "password": DEFAULT_PASSWORD})

    assert response.status_code == 401
    assert response.json()["error"] == "Please activate your account first"


def test_activate_with_invalid_token(client: TestClient):
    response = client.get("/api/auth/activate/deadbeef")

    assert response.status_code == 400
    assert response.json()["error"] == "Invalid or expired activation token"


def test_account_lifecycle(client: TestClient, mailer):
    """注册 → 激活 → 登录 → me → 忘记密码 → 重置 → 新密码登录。"""
    _register(client)
    activation_token = mailer.last_token("alice@example.com", "activate")
    activated = client.get(f"/api/auth/activate/{activation_token}")
    assert activated.status_code == 200
    # 激活令牌只能使用一次
    assert client.get(f"/api/auth/activate/{activation_token}").status_code == 400

    login = client.post("/api/auth/login", json={"email": "alice@example.com", "password": DEFAULT_PASSWORD})
    assert login.status_code == 200
    body = login.json()
    assert body["token"]
    assert body["user"]["email"] == "alice@example.com"
    assert body["user"]["storageUsed"] == 0
    assert body["user"]["storageLimit"] == 5 * 1024 * 1024 * 1024

    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {body['token']}"})
    assert me.status_code == 200
    assert me.json()["user"]["firstName"] == "Alice"

    forgot = client.post("/api/auth/forgotpassword", json={"email": "alice@example.com"})
    assert forgot.status_code == 200
    reset_token = mailer.last_token("alice@example.com", "reset-password")

    reset = client.put(f"/api/auth/resetpassword/{reset_token}", json={"password": "newpass456"})
    assert reset.status_code == 200
    assert client.put(f"/api/auth/resetpassword/{reset_token}", json={"password": "again789"}).status_code == 400

    old = client.post("/api/auth/login", json={"email": "alice@example.com", "password": DEFAULT_PASSWORD})
    assert old.status_code == 401
    assert old.json()["error"] == "Invalid credentials"
    new = client.post("/api/auth/login", json={"email": "alice@example.com", "password": "newpass456"})
    assert new.status_code == 200


def test_forgot_password_unknown_email(client: TestClient):
    response = client.post("/api/auth/forgotpassword", json={"email": "nobody@example.com"})

    assert response.status_code == 404
    assert response.json()["error"] == "No account found with this email address"


def test_forgot_password_mail_failure_discards_token(client: TestClient, mailer, create_user):
    user = create_user()
    mailer.succeed = False

    response = client.post("/api/auth/forgotpassword", json={"email": user["email"]})

    assert response.status_code == 500
    assert response.json()["error"] == "Failed to send reset email. Please try again later."
    token = mailer.last_token(user["email"], "reset-password")
    assert client.put(f"/api/auth/resetpassword/{token}", json={"password": "newpass456"}).status_code == 400


def test_protected_route_requires_token(client: TestClient):
    assert client.get("/api/auth/me").status_code == 401
    response = client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401
    assert response.json()["success"] is False


def test_logout_revokes_session(client: TestClient, create_user):
    user = create_user()

    response = client.post("/api/auth/logout", headers=user["headers"])
    assert response.status_code == 200
    assert client.get("/api/auth/me", headers=user["headers"]).status_code == 401


def test_reset_password_revokes_existing_sessions(client: TestClient, mailer, create_user):
    """重置密码后，该用户此前登录的所有会话都失效，其他用户不受影响。"""
    user = create_user()
    other = create_user()
    second_login = client.post("/api/auth/login", json={"email": user["email"], "password": DEFAULT_PASSWORD})
    assert second_login.status_code == 200
    second_headers = {"Authorization": f"Bearer {second_login.json()['token']}"}

    assert client.post("/api/auth/forgotpassword", json={"email": user["email"]}).status_code == 200
    token = mailer.last_token(user["email"], "reset-password")
    reset = client.put(f"/api/auth/resetpassword/{token}", json={"password": "newpass456"})
    assert reset.status_code == 200

    for headers in (user["headers"], second_headers):
        response = client.get("/api/auth/me", headers=headers)
        assert response.status_code == 401
        assert response.json()["success"] is False
    assert client.get("/api/auth/me", headers=other["headers"]).status_code == 200

    fresh = client.post("/api/auth/login", json={"email": user["email"], "password": "newpass456"})
    assert fresh.status_code == 200
    fresh_headers = {"Authorization": f"Bearer {fresh.json()['token']}"}
    assert client.get("/api/auth/me", headers=fresh_headers).status_code == 200
