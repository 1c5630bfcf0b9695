"""公开短链操作（无需登录）"""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from ...database import get_db
from ...schemas import UnlockRequest, DestinationResponse
from ...modules.links import LinkError, LinkNotFound, download_link, unlock_link

router = APIRouter()


@router.post("/links/{slug}/unlock", response_model=DestinationResponse)
async def unlock(slug: str, data: UnlockRequest, db: AsyncSession = Depends(get_db)):
    """输入密码后获取目标地址"""
    try:
        destination = await unlock_link(db, slug, data.password)
    except LinkNotFound:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Link não encontrado")
    except LinkError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return DestinationResponse(destination_url=destination)


@router.post("/links/{slug}/download", response_model=DestinationResponse)
async def download(slug: str, db: AsyncSession = Depends(get_db)):
    """下载页确认下载"""
    try:
        destination = await download_link(db, slug)
    except LinkNotFound:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Link não encontrado")
    except LinkError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return DestinationResponse(destination_url=destination)
