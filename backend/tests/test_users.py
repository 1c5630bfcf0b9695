"""用户管理"""
from conftest import USER_PASSWORD


async def test_get_me(client, user, user_headers):
    response = await client.get("/api/users/me", headers=user_headers)
    assert response.status_code == 200
    assert response.json()["username"] == "maria"
    assert "password_hash" not in response.json()


async def test_update_profile(client, user_headers):
    response = await client.patch(
        "/api/users/me", json={"full_name": "Maria Silva", "avatar_url": "https://img/a.png"}, headers=user_headers
    )
    assert response.status_code == 200
    assert response.json()["full_name"] == "Maria Silva"


async def test_change_password(client, user_headers):
    response = await client.patch(
        "/api/users/me/password",
        json={"old_password": "wrong", "new_password": "new-pass-1"},
        headers=user_headers,
    )
    assert response.status_code == 400

    response = await client.patch(
        "/api/users/me/password",
        json={"old_password": USER_PASSWORD, "new_password": "new-pass-1"},
        headers=user_headers,
    )
    assert response.status_code == 200

    response = await client.post("/api/auth/login", json={"username": "maria", "password": "new-pass-1"})
    assert response.status_code == 200


async def test_admin_routes_require_admin(client, user_headers):
    response = await client.get("/api/users", headers=user_headers)
    assert response.status_code == 403


async def test_list_users_admin_first(client, admin, user, admin_headers):
    response = await client.get("/api/users", headers=admin_headers)
    assert [item["username"] for item in response.json()] == ["admin", "maria"]


async def test_create_user(client, admin_headers):
    payload = {"username": "joao", "password": "joao-pass", "full_name": "João", "email": "joao@example.com"}
    response = await client.post("/api/users", json=payload, headers=admin_headers)
    assert response.status_code == 201
    assert response.json()["role"] == "user"

    response = await client.post("/api/users", json=payload, headers=admin_headers)
    assert response.status_code == 409


async def test_create_user_requires_all_fields(client, admin_headers):
    payload = {"username": "joao", "password": "joao-pass", "full_name": "   ", "email": "joao@example.com"}
    response = await client.post("/api/users", json=payload, headers=admin_headers)
    assert response.status_code == 400
    assert response.json()["detail"] == "Todos os campos são obrigatórios"


async def test_update_user_info(client, user, admin_headers):
    response = await client.patch(
        f"/api/users/{user.id}", json={"username": "maria2", "password": "reset-pass"}, headers=admin_headers
    )
    assert response.status_code == 200
    assert response.json()["username"] == "maria2"

    response = await client.post("/api/auth/login", json={"username": "maria2", "password": "reset-pass"})
    assert response.status_code == 200


async def test_admin_cannot_be_deleted(client, admin, admin_headers):
    response = await client.delete(f"/api/users/{admin.id}", headers=admin_headers)
    assert response.status_code == 403
    assert response.json()["detail"] == "Administradores não podem ser excluídos"


async def test_delete_user_removes_links(client, user, user_headers, admin_headers):
    await client.post("/api/links", json={"destination_url": "example.com", "slug": "gone"}, headers=user_headers)
    response = await client.delete(f"/api/users/{user.id}", headers=admin_headers)
    assert response.status_code == 204
    assert (await client.get("/gone")).status_code == 404
