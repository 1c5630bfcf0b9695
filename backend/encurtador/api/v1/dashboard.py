"""仪表盘路由"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ...database import get_db
from ...models import User
from ...schemas import DashboardStats, LinkResponse
from ...api.deps import get_current_user
from ...modules.links import list_links
from ...modules.stats import build_dashboard_stats

router = APIRouter()


@router.get("/stats", response_model=DashboardStats)
async def get_stats(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """当前用户的点击统计（不含 bio 短链）"""
    links = await list_links(db, current_user, include_bio=False)
    stats = build_dashboard_stats(links)
    if stats["last_modified_link"] is not None:
        stats["last_modified_link"] = LinkResponse.model_validate(stats["last_modified_link"])
    return stats
