"""
Bio 页面

每个用户一个公开的链接聚合页：资料（名称、头像、短码）和一组有序链接。
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, TypeVar

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from ...models import BioLink, Link, User
from ..links import RESERVED_SLUGS, bio_destination, normalize_url, validate_bio_slug

logger = logging.getLogger(__name__)

DEFAULT_ICON = "link"

# 可选图标
ICON_REGISTRY = frozenset({
    "instagram", "facebook", "twitter", "x", "linkedin", "youtube", "tiktok",
    "threads", "snapchat", "whatsapp", "telegram", "github", "reddit",
    "pinterest", "spotify", "discord", "twitch", "medium", "buymeacoffee",
    "substack", "patreon", "kofi", "email", "phone", "store", "location",
    "calendar", "play", "news", "shop", "payment", "chat", "website", "globe",
    "code", "company", "blog", "education", "photo", "video", "link",
})

DEFAULT_BIO_TITLE = "Meu Bio"

T = TypeVar("T")


class BioError(Exception):
    """Bio 操作错误"""

    def __init__(self, message: str, status_code: int = 400):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


def validate_icon(icon: Optional[str]) -> str:
    icon = icon or DEFAULT_ICON
    if icon not in ICON_REGISTRY:
        raise BioError(f"Ícone inválido: {icon}")
    return icon


# ==================== 排序 ====================

def move_item(items: Sequence[T], source_index: int, destination_index: int) -> List[T]:
    """拖拽排序：从 source_index 取出，插入到 destination_index"""
    size = len(items)
    if not (0 <= source_index < size and 0 <= destination_index < size):
        raise BioError("Posição inválida")
    result = list(items)
    moved = result.pop(source_index)
    result.insert(destination_index, moved)
    return result


def apply_sort_order(items: Sequence[BioLink]) -> List[BioLink]:
    """按当前顺序重写 sort_order 为 0..n-1"""
    for index, item in enumerate(items):
        item.sort_order = index
    return list(items)


# ==================== 资料 ====================

@dataclass
class BioProfile:
    bio_name: Optional[str]
    bio_avatar_url: Optional[str]
    slug: Optional[str]


@dataclass
class PublicBioItem:
    id: str
    title: str
    url: str
    icon: str
    sort_order: int


@dataclass
class PublicBio:
    id: str
    bio_name: Optional[str]
    bio_avatar_url: Optional[str]
    links: List[PublicBioItem] = field(default_factory=list)


async def get_bio_link_row(db: AsyncSession, user_id: str) -> Optional[Link]:
    result = await db.execute(
        select(Link).where(Link.user_id == user_id, Link.is_bio_link.is_(True))
    )
    return result.scalars().first()


async def get_bio_profile(db: AsyncSession, user: User) -> BioProfile:
    row = await get_bio_link_row(db, user.id)
    return BioProfile(
        bio_name=user.bio_name,
        bio_avatar_url=user.bio_avatar_url,
        slug=row.slug if row else None,
    )


async def save_bio_profile(
    db: AsyncSession,
    user: User,
    slug: str,
    bio_name: Optional[str] = None,
    bio_avatar_url: Optional[str] = None,
) -> BioProfile:
    """
    保存 bio 资料并替换用户的 bio 短链（先删后插）

    短码在所有短链中全局唯一，用户自己的旧 bio 短链除外
    """
    slug = (slug or "").strip().lower()
    error = validate_bio_slug(slug)
    if error:
        raise BioError(error)

    result = await db.execute(
        select(Link.id).where(
            Link.slug == slug,
            ~((Link.user_id == user.id) & Link.is_bio_link.is_(True)),
        )
    )
    if slug in RESERVED_SLUGS or result.first() is not None:
        raise BioError("Este link personalizado já está em uso", status_code=409)

    user.bio_name = bio_name
    user.bio_avatar_url = bio_avatar_url or None

    await db.execute(
        delete(Link).where(Link.user_id == user.id, Link.is_bio_link.is_(True))
    )
    await db.flush()

    db.add(Link(
        user_id=user.id,
        slug=slug,
        is_bio_link=True,
        title=bio_name or DEFAULT_BIO_TITLE,
        destination_url=bio_destination(user.id),
    ))
    await db.flush()
    logger.info(f"[Bio] 保存 bio 页面: {user.username} -> {slug}")
    return BioProfile(bio_name=user.bio_name, bio_avatar_url=user.bio_avatar_url, slug=slug)


# ==================== 链接 ====================

async def list_bio_links(db: AsyncSession, user_id: str) -> List[BioLink]:
    result = await db.execute(
        select(BioLink)
        .where(BioLink.user_id == user_id)
        .order_by(BioLink.sort_order, BioLink.created_at)
    )
    return list(result.scalars().all())


async def _get_own_bio_link(db: AsyncSession, user: User, bio_link_id: str) -> BioLink:
    result = await db.execute(
        select(BioLink).where(BioLink.id == bio_link_id, BioLink.user_id == user.id)
    )
    bio_link = result.scalar_one_or_none()
    if bio_link is None:
        raise BioError("Link não encontrado", status_code=404)
    return bio_link


async def add_bio_link(db: AsyncSession, user: User, title: str, url: str, icon: Optional[str] = None) -> BioLink:
    """追加到列表末尾"""
    if not (title or "").strip() or not (url or "").strip():
        raise BioError("Preencha todos os campos")
    items = await list_bio_links(db, user.id)
    bio_link = BioLink(
        user_id=user.id,
        title=title.strip(),
        url=url.strip(),
        icon=validate_icon(icon),
        sort_order=len(items),
    )
    db.add(bio_link)
    await db.flush()
    await db.refresh(bio_link)
    return bio_link


async def update_bio_link(
    db: AsyncSession,
    user: User,
    bio_link_id: str,
    title: Optional[str] = None,
    url: Optional[str] = None,
    icon: Optional[str] = None,
) -> BioLink:
    bio_link = await _get_own_bio_link(db, user, bio_link_id)
    if title is not None:
        if not title.strip():
            raise BioError("Preencha todos os campos")
        bio_link.title = title.strip()
    if url is not None:
        if not url.strip():
            raise BioError("Preencha todos os campos")
        bio_link.url = url.strip()
    if icon is not None:
        bio_link.icon = validate_icon(icon)
    await db.flush()
    await db.refresh(bio_link)
    return bio_link


async def delete_bio_link(db: AsyncSession, user: User, bio_link_id: str) -> None:
    """删除后重新编号，保持 sort_order 连续"""
    bio_link = await _get_own_bio_link(db, user, bio_link_id)
    await db.delete(bio_link)
    await db.flush()
    apply_sort_order(await list_bio_links(db, user.id))
    await db.flush()


async def reorder_bio_links(db: AsyncSession, user: User, ids: Sequence[str]) -> List[BioLink]:
    """按给定 ID 顺序重排，ids 必须是用户全部链接的一个排列"""
    items = await list_bio_links(db, user.id)
    by_id = {item.id: item for item in items}
    if len(ids) != len(items) or set(ids) != set(by_id):
        raise BioError("A nova ordem deve conter todos os links exatamente uma vez")
    ordered = apply_sort_order([by_id[i] for i in ids])
    await db.flush()
    return ordered


async def move_bio_link(db: AsyncSession, user: User, source_index: int, destination_index: int) -> List[BioLink]:
    """拖拽结束：移动一个链接到新位置"""
    items = await list_bio_links(db, user.id)
    ordered = apply_sort_order(move_item(items, source_index, destination_index))
    await db.flush()
    return ordered


# ==================== 公开页面 ====================

async def get_public_bio(db: AsyncSession, user_id: str) -> PublicBio:
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if user is None:
        raise BioError("Usuário não encontrado", status_code=404)

    links = [
        PublicBioItem(
            id=item.id,
            title=item.title,
            url=normalize_url(item.url),
            icon=item.icon,
            sort_order=item.sort_order,
        )
        for item in await list_bio_links(db, user.id)
    ]
    return PublicBio(
        id=user.id,
        bio_name=user.bio_name,
        bio_avatar_url=user.bio_avatar_url,
        links=links,
    )
