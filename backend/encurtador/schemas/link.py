"""短链相关 Schema"""
from pydantic import BaseModel, Field, computed_field
from datetime import datetime
from typing import Optional, Literal

from ..config import settings


class LinkCreate(BaseModel):
    """创建短链"""
    destination_url: str = Field(..., min_length=1, max_length=2000)
    title: Optional[str] = Field(None, max_length=255)
    slug: Optional[str] = Field(None, max_length=64)
    advanced_type: Optional[Literal["expirable", "selfDestruct", "password"]] = None
    expiration_value: Optional[int] = None
    expiration_unit: Literal["minutes", "hours", "days"] = "hours"
    password: Optional[str] = Field(None, max_length=100)
    is_download: bool = False


class LinkUpdate(BaseModel):
    """更新短链"""
    title: Optional[str] = Field(None, max_length=255)
    slug: Optional[str] = Field(None, min_length=1, max_length=64)
    destination_url: Optional[str] = Field(None, min_length=1, max_length=2000)


class LinkResponse(BaseModel):
    """短链响应"""
    id: int
    slug: str
    title: Optional[str] = None
    destination_url: str
    is_bio_link: bool
    clicks: int
    advanced_type: Optional[str] = None
    expires_at: Optional[datetime] = None
    is_self_destruct: bool
    is_destroyed: bool
    is_download: bool
    is_password_protected: bool
    created_at: datetime
    updated_at: Optional[datetime] = None

    @computed_field
    @property
    def short_url(self) -> str:
        return f"{settings.PUBLIC_BASE_URL.rstrip('/')}/{self.slug}"
    
    class Config:
        from_attributes = True


class SuggestRequest(BaseModel):
    """标题/短码建议请求"""
    url: str = Field(..., min_length=1, max_length=2000)


class SuggestResponse(BaseModel):
    title: str
    slug: str


class UnlockRequest(BaseModel):
    """密码保护短链解锁"""
    password: str


class DestinationResponse(BaseModel):
    destination_url: str
