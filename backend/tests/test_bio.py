"""Bio 页面"""
import itertools

import pytest

from encurtador.models import Link
from encurtador.modules.bio import BioError, move_item, validate_bio_slug


@pytest.mark.parametrize("value, ok", [
    ("maria", True),
    ("maria-silva-2", True),
    ("ab", False),
    ("a" * 31, False),
    ("Maria", False),
    ("maria_silva", False),
    ("", False),
])
def test_validate_bio_slug(value, ok):
    assert (validate_bio_slug(value) is None) == ok


def test_move_item():
    assert move_item(["a", "b", "c", "d"], 0, 2) == ["b", "c", "a", "d"]
    assert move_item(["a", "b", "c"], 2, 0) == ["c", "a", "b"]
    with pytest.raises(BioError):
        move_item(["a"], 0, 3)


async def _add(client, headers, title, url="example.com", icon="link"):
    response = await client.post(
        "/api/bio/links", json={"title": title, "url": url, "icon": icon}, headers=headers
    )
    assert response.status_code == 201
    return response.json()


async def test_save_profile_creates_bio_link(client, user, user_headers):
    response = await client.put(
        "/api/bio/profile", json={"slug": "maria", "bio_name": "Maria"}, headers=user_headers
    )
    assert response.status_code == 200
    assert response.json()["slug"] == "maria"
    assert response.json()["public_url"].endswith("/maria")

    response = await client.get("/.netlify/functions/redirect/maria")
    assert response.headers["location"] == f"/bio/{user.id}"

    links = (await client.get("/api/links", headers=user_headers)).json()
    assert len(links) == 1
    assert links[0]["is_bio_link"] is True
    assert links[0]["title"] == "Maria"


async def test_changing_bio_slug_replaces_row(client, user_headers):
    await client.put("/api/bio/profile", json={"slug": "maria"}, headers=user_headers)
    response = await client.put("/api/bio/profile", json={"slug": "maria-s"}, headers=user_headers)
    assert response.status_code == 200

    links = (await client.get("/api/links", headers=user_headers)).json()
    assert [link["slug"] for link in links] == ["maria-s"]
    assert links[0]["title"] == "Meu Bio"
    assert (await client.get("/.netlify/functions/redirect/maria")).status_code == 404


async def test_bio_slug_is_globally_unique(client, db, admin, user_headers):
    db.add(Link(user_id=admin.id, slug="promo", destination_url="https://example.com"))
    await db.commit()
    response = await client.put("/api/bio/profile", json={"slug": "promo"}, headers=user_headers)
    assert response.status_code == 409
    assert response.json()["detail"] == "Este link personalizado já está em uso"


async def test_invalid_bio_slug(client, user_headers):
    response = await client.put("/api/bio/profile", json={"slug": "Ma"}, headers=user_headers)
    assert response.status_code == 400


async def test_links_append_in_order(client, user_headers):
    for title in ("A", "B", "C"):
        await _add(client, user_headers, title)
    items = (await client.get("/api/bio/links", headers=user_headers)).json()
    assert [(item["title"], item["sort_order"]) for item in items] == [("A", 0), ("B", 1), ("C", 2)]


TITLES = ("A", "B", "C", "D")


@pytest.mark.parametrize("order", list(itertools.permutations(range(len(TITLES)))))
async def test_reorder_by_ids(client, user_headers, order):
    ids = [(await _add(client, user_headers, title))["id"] for title in TITLES]
    response = await client.put(
        "/api/bio/links/order", json={"ids": [ids[i] for i in order]}, headers=user_headers
    )
    assert response.status_code == 200
    assert [item["title"] for item in response.json()] == [TITLES[i] for i in order]
    assert [item["sort_order"] for item in response.json()] == list(range(len(TITLES)))

    items = (await client.get("/api/bio/links", headers=user_headers)).json()
    assert [item["id"] for item in items] == [ids[i] for i in order]


async def test_reorder_requires_permutation(client, user_headers):
    ids = [(await _add(client, user_headers, title))["id"] for title in ("A", "B")]
    response = await client.put("/api/bio/links/order", json={"ids": [ids[0], ids[0]]}, headers=user_headers)
    assert response.status_code == 400


async def test_move_link(client, user_headers):
    for title in ("A", "B", "C"):
        await _add(client, user_headers, title)
    response = await client.post(
        "/api/bio/links/move", json={"source_index": 0, "destination_index": 2}, headers=user_headers
    )
    assert [item["title"] for item in response.json()] == ["B", "C", "A"]


async def test_delete_keeps_order_dense(client, user_headers):
    ids = [(await _add(client, user_headers, title))["id"] for title in ("A", "B", "C")]
    response = await client.delete(f"/api/bio/links/{ids[1]}", headers=user_headers)
    assert response.status_code == 204
    items = (await client.get("/api/bio/links", headers=user_headers)).json()
    assert [(item["title"], item["sort_order"]) for item in items] == [("A", 0), ("C", 1)]


async def test_invalid_icon_rejected(client, user_headers):
    response = await client.post(
        "/api/bio/links", json={"title": "X", "url": "example.com", "icon": "rocket-ship"}, headers=user_headers
    )
    assert response.status_code == 400


async def test_missing_fields_rejected(client, user_headers):
    response = await client.post("/api/bio/links", json={"title": " ", "url": "example.com"}, headers=user_headers)
    assert response.status_code == 400
    assert response.json()["detail"] == "Preencha todos os campos"


async def test_public_bio_page(client, user, user_headers):
    await client.put(
        "/api/bio/profile", json={"slug": "maria", "bio_name": "Maria"}, headers=user_headers
    )
    await _add(client, user_headers, "Instagram", "instagram.com/maria", "instagram")

    response = await client.get(f"/bio/{user.id}")
    assert response.status_code == 200
    data = response.json()
    assert data["bio_name"] == "Maria"
    assert data["links"][0]["url"] == "https://instagram.com/maria"

    # 通过 bio 短码访问同一页面
    assert (await client.get("/maria")).json() == data


async def test_public_bio_unknown_user(client):
    response = await client.get("/bio/unknown")
    assert response.status_code == 404


async def test_bio_link_rename_follows_bio_slug_rules(client, user_headers):
    await client.put("/api/bio/profile", json={"slug": "maria"}, headers=user_headers)
    bio_link = (await client.get("/api/links", headers=user_headers)).json()[0]

    response = await client.patch(
        f"/api/links/{bio_link['id']}", json={"slug": "maria_silva"}, headers=user_headers
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "O link deve conter apenas letras minúsculas, números e hífen"

    response = await client.patch(f"/api/links/{bio_link['id']}", json={"slug": "ms"}, headers=user_headers)
    assert response.status_code == 400

    response = await client.patch(
        f"/api/links/{bio_link['id']}", json={"slug": "maria-silva"}, headers=user_headers
    )
    assert response.status_code == 200
    assert response.json()["slug"] == "maria-silva"


async def test_normal_link_keeps_underscore_slugs(client, user_headers):
    created = (await client.post(
        "/api/links", json={"destination_url": "example.com", "slug": "old"}, headers=user_headers
    )).json()
    response = await client.patch(
        f"/api/links/{created['id']}", json={"slug": "black_friday"}, headers=user_headers
    )
    assert response.status_code == 200
