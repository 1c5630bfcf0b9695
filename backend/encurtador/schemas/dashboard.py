"""仪表盘 Schema"""
from pydantic import BaseModel
from typing import Optional, List

from .link import LinkResponse


class DailyClicks(BaseModel):
    date: str
    count: int


class MonthlyClicks(BaseModel):
    month: str
    count: int


class LinkClicks(BaseModel):
    name: str
    value: int


class DashboardStats(BaseModel):
    total_links: int
    recent_links: int
    total_clicks: int
    daily_clicks: List[DailyClicks]
    monthly_clicks: List[MonthlyClicks]
    link_clicks: List[LinkClicks]
    last_modified_link: Optional[LinkResponse] = None

    class Config:
        from_attributes = True
