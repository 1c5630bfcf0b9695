"""标题与短码建议"""
import pytest

from encurtador.modules import suggest
from encurtador.modules.suggest import (
    SuggestionError,
    extract_youtube_video_id,
    slug_from_domain,
    slug_from_title,
    suggest_title_and_slug,
)
from encurtador.utils import http_client
from encurtador.utils.http_client import SSRFError, extract_meta_info, validate_url


def test_slug_from_title_skips_short_and_stop_words():
    assert slug_from_title("Como fazer pão de queijo") == "fazer-pao"
    assert slug_from_title("Promoção para Black Friday") == "promocao-black"


def test_slug_from_title_limits_length():
    assert len(slug_from_title("Extraordinariamente Desproporcionalmente")) <= 20


def test_slug_from_domain():
    assert slug_from_domain("https://www.example.com/path") == "example"


def test_extract_youtube_video_id():
    assert extract_youtube_video_id("https://www.youtube.com/watch?v=abc123&t=4") == "abc123"
    assert extract_youtube_video_id("https://youtu.be/xyz789") == "xyz789"
    assert extract_youtube_video_id("https://example.com") is None


def test_extract_meta_info():
    html = """
    <html><head>
      <title>Página Inicial</title>
      <meta property="og:title" content="Loja da Maria">
      <meta name="description" content="Roupas e acessórios">
    </head></html>
    """
    meta = extract_meta_info(html)
    assert meta["title"] == "Página Inicial"
    assert meta["og_title"] == "Loja da Maria"
    assert meta["description"] == "Roupas e acessórios"


async def test_suggest_uses_page_title(db, user, monkeypatch):
    async def fake_title(url):
        return "Receitas de bolo caseiro"

    monkeypatch.setattr(suggest, "fetch_page_title", fake_title)
    result = await suggest_title_and_slug(db, "example.com/receitas")
    assert result.title == "Receitas de bolo caseiro"
    assert result.slug == "receitas-bolo"


async def test_suggest_falls_back_to_domain(db, user, monkeypatch):
    async def no_title(url):
        return None

    monkeypatch.setattr(suggest, "fetch_page_title", no_title)
    result = await suggest_title_and_slug(db, "https://www.example.com")
    assert result.slug == "example"
    assert result.title == "www.example.com"


async def test_suggest_refuses_private_address(db, monkeypatch):
    async def blocked(url):
        raise SSRFError("blocked")

    monkeypatch.setattr(suggest, "fetch_page_title", blocked)
    with pytest.raises(SuggestionError):
        await suggest_title_and_slug(db, "http://127.0.0.1/admin")


async def test_suggest_endpoint(client, user_headers, monkeypatch):
    async def fake_title(url):
        return "Curso de Python"

    monkeypatch.setattr(suggest, "fetch_page_title", fake_title)
    response = await client.post("/api/links/suggest", json={"url": "example.com"}, headers=user_headers)
    assert response.status_code == 200
    assert response.json() == {"title": "Curso de Python", "slug": "curso-python"}


async def test_suggest_endpoint_error(client, user_headers, monkeypatch):
    async def no_title(url):
        return None

    monkeypatch.setattr(suggest, "fetch_page_title", no_title)
    monkeypatch.setattr(suggest, "slug_from_domain", lambda url: "")
    response = await client.post("/api/links/suggest", json={"url": "example.com"}, headers=user_headers)
    assert response.status_code == 502


async def test_validate_url_blocks_private_addresses():
    with pytest.raises(SSRFError):
        await validate_url("http://127.0.0.1/admin")
    with pytest.raises(SSRFError):
        await validate_url("http://localhost:8000")
    with pytest.raises(SSRFError):
        await validate_url("ftp://example.com/file")


async def test_validate_url_checks_resolved_addresses(monkeypatch):
    async def private(hostname):
        return ["10.0.0.5"]

    monkeypatch.setattr(http_client, "resolve_host", private)
    with pytest.raises(SSRFError):
        await validate_url("https://intranet.example.com")

    async def public(hostname):
        return ["93.184.216.34"]

    monkeypatch.setattr(http_client, "resolve_host", public)
    assert await validate_url("https://example.com/page") == "https://example.com/page"
