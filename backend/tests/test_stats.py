"""仪表盘统计"""
from datetime import datetime

from encurtador.models import Link
from encurtador.modules.stats import build_dashboard_stats, daily_clicks, monthly_clicks


def _link(slug, clicks, created_at, title=None, updated_at=None):
    return Link(slug=slug, title=title, clicks=clicks, created_at=created_at,
                updated_at=updated_at or created_at, destination_url="https://example.com")


def test_daily_clicks_has_31_buckets():
    links = [
        _link("a", 3, datetime(2024, 1, 5)),
        _link("b", 2, datetime(2024, 2, 5)),
        _link("c", 7, datetime(2024, 3, 31)),
    ]
    buckets = daily_clicks(links)
    assert len(buckets) == 31
    assert buckets[4] == {"date": "5", "count": 5}
    assert buckets[30] == {"date": "31", "count": 7}


def test_monthly_clicks_skips_empty_months():
    links = [
        _link("a", 3, datetime(2024, 1, 5)),
        _link("b", 0, datetime(2024, 2, 5)),
        _link("c", 4, datetime(2024, 12, 1)),
    ]
    assert monthly_clicks(links) == [{"month": "Jan", "count": 3}, {"month": "Dez", "count": 4}]


def test_build_dashboard_stats():
    now = datetime(2024, 6, 15)
    links = [
        _link("a", 3, datetime(2024, 6, 14), title="Promo"),
        _link("b", 5, datetime(2024, 5, 1), updated_at=datetime(2024, 6, 14, 12)),
    ]
    stats = build_dashboard_stats(links, now=now)
    assert stats["total_links"] == 2
    assert stats["recent_links"] == 1
    assert stats["total_clicks"] == 8
    assert stats["link_clicks"] == [{"name": "Promo", "value": 3}, {"name": "b", "value": 5}]
    assert stats["last_modified_link"].slug == "b"


def test_empty_stats():
    stats = build_dashboard_stats([])
    assert stats["total_links"] == 0
    assert stats["monthly_clicks"] == []
    assert stats["last_modified_link"] is None


async def test_stats_endpoint_excludes_bio_link(client, user_headers):
    await client.put("/api/bio/profile", json={"slug": "maria"}, headers=user_headers)
    await client.post("/api/links", json={"destination_url": "example.com", "slug": "promo"}, headers=user_headers)
    await client.get("/promo")

    response = await client.get("/api/dashboard/stats", headers=user_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["total_links"] == 1
    assert data["total_clicks"] == 1
    assert data["last_modified_link"]["slug"] == "promo"
