"""Bio 页面路由"""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List

from ...database import get_db
from ...models import User
from ...schemas import (
    BioProfileUpdate, BioProfileResponse, BioLinkCreate, BioLinkUpdate,
    BioLinkOrder, BioLinkMove, BioLinkResponse,
)
from ...api.deps import get_current_user
from ...modules import bio as bio_service
from ...modules.bio import BioError

router = APIRouter()


@router.get("/profile", response_model=BioProfileResponse)
async def get_profile(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """当前用户的 bio 资料"""
    return await bio_service.get_bio_profile(db, current_user)


@router.put("/profile", response_model=BioProfileResponse)
async def save_profile(
    data: BioProfileUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """保存 bio 资料，同时替换 bio 短链"""
    try:
        return await bio_service.save_bio_profile(
            db, current_user, data.slug, data.bio_name, data.bio_avatar_url
        )
    except BioError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/links", response_model=List[BioLinkResponse])
async def list_bio_links(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await bio_service.list_bio_links(db, current_user.id)


@router.post("/links", response_model=BioLinkResponse, status_code=status.HTTP_201_CREATED)
async def add_bio_link(
    data: BioLinkCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """添加链接到末尾"""
    try:
        return await bio_service.add_bio_link(db, current_user, data.title, data.url, data.icon)
    except BioError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.put("/links/order", response_model=List[BioLinkResponse])
async def reorder_bio_links(
    data: BioLinkOrder,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """按 ID 列表重排"""
    try:
        return await bio_service.reorder_bio_links(db, current_user, data.ids)
    except BioError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post("/links/move", response_model=List[BioLinkResponse])
async def move_bio_link(
    data: BioLinkMove,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """拖拽移动"""
    try:
        return await bio_service.move_bio_link(
            db, current_user, data.source_index, data.destination_index
        )
    except BioError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.patch("/links/{bio_link_id}", response_model=BioLinkResponse)
async def update_bio_link(
    bio_link_id: str,
    data: BioLinkUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    try:
        return await bio_service.update_bio_link(
            db, current_user, bio_link_id, data.title, data.url, data.icon
        )
    except BioError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.delete("/links/{bio_link_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_bio_link(
    bio_link_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    try:
        await bio_service.delete_bio_link(db, current_user, bio_link_id)
    except BioError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
