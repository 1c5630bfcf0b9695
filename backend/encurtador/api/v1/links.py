"""短链路由"""
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List

from ...database import get_db
from ...models import User
from ...schemas import LinkCreate, LinkUpdate, LinkResponse, SuggestRequest, SuggestResponse
from ...api.deps import get_current_user
from ...modules import links as link_service
from ...modules.links import LinkError, LinkNotFound
from ...modules.suggest import SuggestionError, suggest_title_and_slug

router = APIRouter()


async def _get_link_or_404(db: AsyncSession, user: User, link_id: int):
    try:
        return await link_service.get_link(db, user, link_id)
    except LinkNotFound:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Link não encontrado")


@router.get("", response_model=List[LinkResponse])
async def list_links(
    include_bio: bool = Query(True, description="是否包含 bio 短链"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """当前用户的短链，最新的在前"""
    return await link_service.list_links(db, current_user, include_bio=include_bio)


@router.post("", response_model=LinkResponse, status_code=status.HTTP_201_CREATED)
async def create_link(
    link_in: LinkCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """创建短链"""
    try:
        return await link_service.create_link(
            db,
            current_user,
            destination_url=link_in.destination_url,
            title=link_in.title,
            slug=link_in.slug,
            advanced_type=link_in.advanced_type,
            expiration_value=link_in.expiration_value,
            expiration_unit=link_in.expiration_unit,
            password=link_in.password,
            is_download=link_in.is_download,
        )
    except LinkError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post("/suggest", response_model=SuggestResponse)
async def suggest(
    data: SuggestRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """根据目标网页生成标题和短码"""
    try:
        suggestion = await suggest_title_and_slug(db, data.url)
    except SuggestionError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=e.message)
    except LinkError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return SuggestResponse(title=suggestion.title, slug=suggestion.slug)


@router.get("/{link_id}", response_model=LinkResponse)
async def get_link(
    link_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await _get_link_or_404(db, current_user, link_id)


@router.patch("/{link_id}", response_model=LinkResponse)
async def update_link(
    link_id: int,
    link_in: LinkUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """修改标题、短码或目标地址"""
    link = await _get_link_or_404(db, current_user, link_id)
    try:
        return await link_service.update_link(
            db,
            link,
            title=link_in.title,
            slug=link_in.slug,
            destination_url=link_in.destination_url,
        )
    except LinkError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.delete("/{link_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_link(
    link_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    link = await _get_link_or_404(db, current_user, link_id)
    await link_service.delete_link(db, link)
