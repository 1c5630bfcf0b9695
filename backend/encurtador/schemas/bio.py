"""Bio 页面相关 Schema"""
from pydantic import BaseModel, Field, computed_field
from datetime import datetime
from typing import Optional, List

from ..config import settings


class BioProfileUpdate(BaseModel):
    """保存 bio 资料"""
    slug: str
    bio_name: Optional[str] = Field(None, max_length=255)
    bio_avatar_url: Optional[str] = Field(None, max_length=2000)


class BioProfileResponse(BaseModel):
    bio_name: Optional[str] = None
    bio_avatar_url: Optional[str] = None
    slug: Optional[str] = None

    @computed_field
    @property
    def public_url(self) -> Optional[str]:
        if not self.slug:
            return None
        return f"{settings.PUBLIC_BASE_URL.rstrip('/')}/{self.slug}"

    class Config:
        from_attributes = True


class BioLinkCreate(BaseModel):
    """添加 bio 链接"""
    title: str = Field(..., max_length=255)
    url: str = Field(..., max_length=2000)
    icon: Optional[str] = "link"


class BioLinkUpdate(BaseModel):
    """更新 bio 链接"""
    title: Optional[str] = Field(None, max_length=255)
    url: Optional[str] = Field(None, max_length=2000)
    icon: Optional[str] = None


class BioLinkOrder(BaseModel):
    """按 ID 重排"""
    ids: List[str]


class BioLinkMove(BaseModel):
    """拖拽移动"""
    source_index: int = Field(..., ge=0)
    destination_index: int = Field(..., ge=0)


class BioLinkResponse(BaseModel):
    id: str
    title: str
    url: str
    icon: str
    sort_order: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PublicBioLink(BaseModel):
    id: str
    title: str
    url: str
    icon: str
    sort_order: int

    class Config:
        from_attributes = True


class PublicBioResponse(BaseModel):
    """公开 bio 页面"""
    id: str
    bio_name: Optional[str] = None
    bio_avatar_url: Optional[str] = None
    links: List[PublicBioLink] = []

    class Config:
        from_attributes = True
