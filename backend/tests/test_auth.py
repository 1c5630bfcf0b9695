"""登录、会话与限流"""
from datetime import datetime, timedelta

from sqlalchemy import update

from encurtador.config import settings
from encurtador.models import LoginAttempt
from encurtador.modules import accounts
from conftest import ADMIN_PASSWORD


async def _login(client, username, password):
    return await client.post("/api/auth/login", json={"username": username, "password": password})


async def _age_attempts(session_factory, minutes):
    """把失败记录的时间往前推"""
    async with session_factory() as session:
        await session.execute(
            update(LoginAttempt).values(
                last_attempt_at=datetime.utcnow() - timedelta(minutes=minutes)
            )
        )
        await session.commit()


async def test_login_success_sets_cookie(client, admin):
    response = await _login(client, "admin", ADMIN_PASSWORD)
    assert response.status_code == 200
    data = response.json()
    assert data["user"]["username"] == "admin"
    assert data["access_token"]
    assert settings.SESSION_COOKIE_NAME in response.cookies
    assert f"Max-Age={settings.SESSION_COOKIE_MAX_AGE_DAYS * 24 * 60 * 60}" in response.headers["set-cookie"]

    response = await client.get("/api/auth/session")
    assert response.json()["authenticated"] is True
    assert response.json()["user"]["id"] == admin.id


async def test_empty_fields_rejected_without_counting(client, admin, session_factory):
    response = await _login(client, "  ", "")
    assert response.status_code == 400
    assert response.json()["detail"] == "Preencha usuário e senha"
    async with session_factory() as session:
        assert await session.get(LoginAttempt, "127.0.0.1") is None


async def test_wrong_password_reports_remaining_attempts(client, admin):
    response = await _login(client, "admin", "wrongpass")
    assert response.status_code == 401
    assert response.json()["detail"] == "Usuário ou senha inválidos. Restam 4 tentativa(s)."


async def test_unknown_user_gets_same_message(client, admin):
    response = await _login(client, "nobody", "whatever")
    assert response.status_code == 401
    assert response.json()["detail"] == "Usuário ou senha inválidos. Restam 4 tentativa(s)."


async def test_sixth_attempt_is_locked_without_lookup(client, admin, monkeypatch):
    for attempt in range(5):
        response = await _login(client, "admin", "wrongpass")
    assert response.status_code == 429
    assert "15" in response.json()["detail"]

    calls = []

    async def spy(db, username):
        calls.append(username)
        return None

    monkeypatch.setattr(accounts, "get_user_by_username", spy)
    response = await _login(client, "admin", ADMIN_PASSWORD)
    assert response.status_code == 429
    assert "15" in response.json()["detail"]
    assert calls == []


async def test_block_lapses_after_fifteen_minutes(client, admin, session_factory):
    for _ in range(5):
        await _login(client, "admin", "wrongpass")
    await _age_attempts(session_factory, 16)

    response = await _login(client, "admin", ADMIN_PASSWORD)
    assert response.status_code == 200


async def test_failures_forgotten_after_thirty_minutes(client, admin, session_factory):
    for _ in range(4):
        await _login(client, "admin", "wrongpass")
    await _age_attempts(session_factory, 31)

    response = await _login(client, "admin", "wrongpass")
    assert response.json()["detail"] == "Usuário ou senha inválidos. Restam 4 tentativa(s)."


async def test_success_clears_counter(client, admin, session_factory):
    for _ in range(3):
        await _login(client, "admin", "wrongpass")
    assert (await _login(client, "admin", ADMIN_PASSWORD)).status_code == 200

    async with session_factory() as session:
        assert await session.get(LoginAttempt, "127.0.0.1") is None
    response = await _login(client, "admin", "wrongpass")
    assert response.json()["detail"].endswith("Restam 4 tentativa(s).")


async def test_lookup_failure_counts_as_invalid(client, admin, monkeypatch):
    async def broken(db, username):
        raise RuntimeError("database unavailable")

    monkeypatch.setattr(accounts, "get_user_by_username", broken)
    response = await _login(client, "admin", ADMIN_PASSWORD)
    assert response.status_code == 401


async def test_logout_clears_session(client, admin):
    await _login(client, "admin", ADMIN_PASSWORD)
    response = await client.post("/api/auth/logout")
    assert response.status_code == 200
    set_cookie = response.headers["set-cookie"]
    assert set_cookie.startswith(f"{settings.SESSION_COOKIE_NAME}=")
    assert "Max-Age=0" in set_cookie

    client.cookies.clear()
    response = await client.get("/api/auth/session")
    assert response.json() == {"authenticated": False, "user": None}


async def test_protected_route_requires_session(client):
    response = await client.get("/api/users/me")
    assert response.status_code == 401
    assert response.json()["detail"] == "Não autenticado"


async def test_invalid_token_is_not_logged_in(client):
    response = await client.get("/api/users/me", headers={"Authorization": "Bearer not-a-token"})
    assert response.status_code == 401
