"""仪表盘统计"""

from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Sequence

from ...models import Link

MONTH_NAMES = ["Jan", "Fev", "Mar", "Abr", "Mai", "Jun", "Jul", "Ago", "Set", "Out", "Nov", "Dez"]
RECENT_DAYS = 7


def daily_clicks(links: Sequence[Link]) -> List[Dict[str, Any]]:
    """按创建日期的日（1-31）汇总点击"""
    counts = [0] * 31
    for link in links:
        if link.created_at is None:
            continue
        counts[link.created_at.day - 1] += link.clicks or 0
    return [{"date": str(day), "count": counts[day - 1]} for day in range(1, 32)]


def monthly_clicks(links: Sequence[Link]) -> List[Dict[str, Any]]:
    """按创建月份汇总点击，去掉为 0 的月份"""
    counts = [0] * 12
    for link in links:
        if link.created_at is None:
            continue
        counts[link.created_at.month - 1] += link.clicks or 0
    return [
        {"month": name, "count": count}
        for name, count in zip(MONTH_NAMES, counts)
        if count > 0
    ]


def link_clicks(links: Sequence[Link]) -> List[Dict[str, Any]]:
    return [{"name": link.title or link.slug, "value": link.clicks or 0} for link in links]


def last_modified(links: Sequence[Link]) -> Optional[Link]:
    if not links:
        return None
    return max(links, key=lambda link: link.updated_at or link.created_at or datetime.min)


def build_dashboard_stats(links: Sequence[Link], now: Optional[datetime] = None) -> Dict[str, Any]:
    now = now or datetime.utcnow()
    since = now - timedelta(days=RECENT_DAYS)
    return {
        "total_links": len(links),
        "recent_links": sum(1 for link in links if link.created_at and link.created_at >= since),
        "total_clicks": sum(link.clicks or 0 for link in links),
        "daily_clicks": daily_clicks(links),
        "monthly_clicks": monthly_clicks(links),
        "link_clicks": link_clicks(links),
        "last_modified_link": last_modified(links),
    }
