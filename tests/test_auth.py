from unittest.mock import AsyncMock, patch

from app.exceptions import ApiError


def test_protected_pages_redirect_to_login(client):
    for path in ("/dashboard", "/products/", "/products/new"):
        resp = client.get(path)
        assert resp.status_code == 302
        assert "/login" in resp.headers["Location"]


def test_index_redirects_to_dashboard_when_logged_in(auth_client):
    resp = auth_client.get("/")
    assert resp.headers["Location"].endswith("/dashboard")


def test_login_page_renders(client):
    resp = client.get("/login")
    assert resp.status_code == 200
    assert b"Log in" in resp.data


def test_login_success_stores_token_and_clears_old_state(client):
    with client.session_transaction() as sess:
        sess["dashboard"] = {"session_expired": True}

    with patch(
        "app.services.auth_service.login", new=AsyncMock(return_value="fresh-token")
    ) as login:
        resp = client.post(
            "/login?next=/products/",
            data={"username": "admin", "password": "secret"},
        )

    assert resp.status_code == 302
    assert resp.headers["Location"].endswith("/products/")
    assert login.await_args.args[1:] == ("admin", "secret")
    with client.session_transaction() as sess:
        assert sess["auth_token"] == "fresh-token"
        assert sess["username"] == "admin"
        assert "dashboard" not in sess


def test_login_ignores_external_next(client):
    with patch("app.services.auth_service.login", new=AsyncMock(return_value="t")):
        resp = client.post(
            "/login?next=//evil.example/",
            data={"username": "admin", "password": "secret"},
        )
    assert resp.headers["Location"].endswith("/dashboard")


def test_login_failure_shows_message(client):
    with patch(
        "app.services.auth_service.login",
        new=AsyncMock(side_effect=ApiError("Invalid username or password", status_code=401)),
    ):
        resp = client.post("/login", data={"username": "admin", "password": "bad"})

    assert resp.status_code == 401
    assert b"Invalid username or password" in resp.data
    with client.session_transaction() as sess:
        assert "auth_token" not in sess


def test_login_requires_both_fields(client):
    resp = client.post("/login", data={"username": "admin"})
    assert resp.status_code == 400


def test_logout_clears_session(auth_client):
    resp = auth_client.post("/logout")
    assert resp.status_code == 302
    with auth_client.session_transaction() as sess:
        assert "auth_token" not in sess


def test_reset_password_mismatch(client):
    resp = client.post(
        "/reset-password",
        data={
            "username": "admin",
            "email": "a@example.com",
            "new_password": "one",
            "confirm_password": "two",
        },
    )
    assert resp.status_code == 400
    assert b"Passwords do not match." in resp.data


def test_reset_password_success(client):
    with patch(
        "app.services.auth_service.reset_password",
        new=AsyncMock(return_value="Password reset successfully"),
    ):
        resp = client.post(
            "/reset-password",
            data={
                "username": "admin",
                "email": "a@example.com",
                "new_password": "one",
                "confirm_password": "one",
            },
        )
    assert resp.status_code == 302
    assert resp.headers["Location"].endswith("/login")
