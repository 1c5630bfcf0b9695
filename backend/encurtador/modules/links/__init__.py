"""
短链

- 目标地址规范化与短码清洗
- 短码解析（重定向函数与公开短链页面共用）
- 短链增删改查
- 打开短链：过期、阅后即焚、密码保护、下载页、bio 页面
"""

import logging
import random
import re
import string
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import List, Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ...models import Link, User
from ...models.link import (
    ADVANCED_EXPIRABLE,
    ADVANCED_PASSWORD,
    ADVANCED_SELF_DESTRUCT,
    ADVANCED_TYPES,
)
from ...utils.security import hash_password, verify_password

logger = logging.getLogger(__name__)

SLUG_ALPHABET = string.ascii_lowercase + string.digits
RANDOM_SLUG_LENGTH = 6
MAX_SLUG_SUFFIX = 100

# 与公开路由冲突的短码
RESERVED_SLUGS = frozenset({"api", "bio", "health"})
BIO_SLUG_PATTERN = re.compile(r"^[a-z0-9-]+$")

EXPIRATION_UNITS = {
    "minutes": 1,
    "hours": 60,
    "days": 24 * 60,
}


class LinkNotFound(Exception):
    """短码不存在"""
    pass


class LinkError(Exception):
    """短链操作错误"""

    def __init__(self, message: str, status_code: int = 400):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class SlugTakenError(LinkError):
    """短码已被占用"""

    def __init__(self, message: str = "Este slug já está em uso"):
        super().__init__(message, status_code=409)


class SlugGenerationError(LinkError):
    """无法生成唯一短码"""

    def __init__(self):
        super().__init__("Não foi possível gerar um slug único", status_code=409)


# ==================== 工具函数 ====================

def normalize_url(url: str) -> str:
    """没有 http:// 或 https:// 前缀时补上 https://"""
    url = (url or "").strip()
    if url.startswith(("http://", "https://")):
        return url
    return f"https://{url}"


def clean_slug(value: str) -> str:
    """只保留小写字母、数字、连字符和下划线"""
    return re.sub(r"[^a-z0-9_-]", "", (value or "").lower())


def validate_bio_slug(value: str) -> Optional[str]:
    """校验 bio 短码，合法返回 None，否则返回错误信息"""
    if not value:
        return "O link personalizado é obrigatório"
    if len(value) < 3:
        return "O link deve ter pelo menos 3 caracteres"
    if len(value) > 30:
        return "O link deve ter no máximo 30 caracteres"
    if not BIO_SLUG_PATTERN.match(value):
        return "O link deve conter apenas letras minúsculas, números e hífen"
    return None


def random_slug(length: int = RANDOM_SLUG_LENGTH) -> str:
    return "".join(random.choice(SLUG_ALPHABET) for _ in range(length))


def bio_destination(user_id: str) -> str:
    return f"/bio/{user_id}"


def compute_expires_at(value: int, unit: str, now: datetime) -> datetime:
    """根据数值和单位计算过期时间"""
    if value is None or value <= 0:
        raise LinkError("O tempo de expiração deve ser maior que zero")
    if unit not in EXPIRATION_UNITS:
        raise LinkError("Unidade de expiração inválida")
    try:
        return now + timedelta(minutes=value * EXPIRATION_UNITS[unit])
    except (OverflowError, ValueError):
        raise LinkError("Tempo de expiração inválido")


async def get_link_by_slug(db: AsyncSession, slug: str) -> Optional[Link]:
    result = await db.execute(select(Link).where(Link.slug == slug))
    return result.scalar_one_or_none()


async def slug_exists(db: AsyncSession, slug: str, exclude_id: Optional[int] = None) -> bool:
    query = select(Link.id).where(Link.slug == slug)
    if exclude_id is not None:
        query = query.where(Link.id != exclude_id)
    result = await db.execute(query)
    return result.first() is not None


async def generate_unique_slug(db: AsyncSession, base: str) -> str:
    """base 被占用时依次尝试 base-1 ... base-100"""
    base = base or random_slug()
    slug = base
    counter = 1
    while slug in RESERVED_SLUGS or await slug_exists(db, slug):
        if counter > MAX_SLUG_SUFFIX:
            raise SlugGenerationError()
        slug = f"{base}-{counter}"
        counter += 1
    return slug


async def _random_unique_slug(db: AsyncSession) -> str:
    for _ in range(MAX_SLUG_SUFFIX):
        slug = random_slug()
        if not await slug_exists(db, slug):
            return slug
    raise SlugGenerationError()


# ==================== 短码解析 ====================

@dataclass
class ResolvedSlug:
    """短码解析结果"""
    kind: str  # link / bio
    target: str
    link: Link


async def resolve_slug(db: AsyncSession, slug: str) -> ResolvedSlug:
    """
    解析短码（区分大小写）

    Raises:
        LinkNotFound: 短码不存在
    """
    link = await get_link_by_slug(db, slug)
    if link is None:
        raise LinkNotFound(slug)
    if link.is_bio_link:
        return ResolvedSlug(kind="bio", target=bio_destination(link.user_id), link=link)
    return ResolvedSlug(kind="link", target=normalize_url(link.destination_url), link=link)


# ==================== 增删改查 ====================

async def list_links(db: AsyncSession, user: User, include_bio: bool = True) -> List[Link]:
    query = select(Link).where(Link.user_id == user.id)
    if not include_bio:
        query = query.where(Link.is_bio_link.is_(False))
    query = query.order_by(Link.created_at.desc(), Link.id.desc())
    result = await db.execute(query)
    return list(result.scalars().all())


async def get_link(db: AsyncSession, user: User, link_id: int) -> Link:
    """获取短链，管理员可访问任意短链"""
    query = select(Link).where(Link.id == link_id)
    if not user.is_admin:
        query = query.where(Link.user_id == user.id)
    result = await db.execute(query)
    link = result.scalar_one_or_none()
    if link is None:
        raise LinkNotFound(str(link_id))
    return link


async def create_link(
    db: AsyncSession,
    user: User,
    destination_url: str,
    title: Optional[str] = None,
    slug: Optional[str] = None,
    advanced_type: Optional[str] = None,
    expiration_value: Optional[int] = None,
    expiration_unit: str = "hours",
    password: Optional[str] = None,
    is_download: bool = False,
    now: Optional[datetime] = None,
) -> Link:
    """创建短链"""
    now = now or datetime.utcnow()
    if not (destination_url or "").strip():
        raise LinkError("O link de destino é obrigatório")

    if advanced_type is not None and advanced_type not in ADVANCED_TYPES:
        raise LinkError("Tipo de link inválido")

    expires_at = None
    password_hash = None
    if advanced_type == ADVANCED_EXPIRABLE:
        expires_at = compute_expires_at(expiration_value, expiration_unit, now)
    elif advanced_type == ADVANCED_PASSWORD:
        if not password:
            raise LinkError("A senha é obrigatória para links protegidos")
        password_hash = hash_password(password)

    if slug:
        slug = clean_slug(slug)
        if not slug:
            raise LinkError("Slug inválido")
        if slug in RESERVED_SLUGS:
            raise SlugTakenError()
        if await slug_exists(db, slug):
            raise SlugTakenError()
    else:
        slug = await _random_unique_slug(db)

    link = Link(
        user_id=user.id,
        slug=slug,
        title=title,
        destination_url=normalize_url(destination_url),
        advanced_type=advanced_type,
        expires_at=expires_at,
        password_hash=password_hash,
        is_self_destruct=advanced_type == ADVANCED_SELF_DESTRUCT,
        is_download=is_download,
        created_at=now,
        updated_at=now,
    )
    db.add(link)
    await db.flush()
    await db.refresh(link)
    logger.info(f"[Links] 创建短链: {slug} -> {link.destination_url}")
    return link


async def update_link(
    db: AsyncSession,
    link: Link,
    title: Optional[str] = None,
    slug: Optional[str] = None,
    destination_url: Optional[str] = None,
) -> Link:
    """修改标题、短码或目标地址"""
    if slug is not None:
        slug = clean_slug(slug)
        if not slug:
            raise LinkError("Slug inválido")
        if link.is_bio_link:
            error = validate_bio_slug(slug)
            if error:
                raise LinkError(error)
        if slug in RESERVED_SLUGS:
            raise SlugTakenError()
        if slug != link.slug and await slug_exists(db, slug, exclude_id=link.id):
            raise SlugTakenError()
        link.slug = slug
    if title is not None:
        link.title = title
    if destination_url is not None:
        if link.is_bio_link:
            raise LinkError("O destino de uma página bio não pode ser alterado")
        link.destination_url = normalize_url(destination_url)
    link.updated_at = datetime.utcnow()
    await db.flush()
    await db.refresh(link)
    return link


async def delete_link(db: AsyncSession, link: Link) -> None:
    await db.delete(link)
    await db.flush()


# ==================== 打开短链 ====================

OPEN_REDIRECT = "redirect"
OPEN_BIO = "bio"
OPEN_PASSWORD = "password"
OPEN_DOWNLOAD = "download"
OPEN_EXPIRED = "expired"
OPEN_DESTROYED = "destroyed"


@dataclass
class LinkOpening:
    """打开短链的结果"""
    kind: str
    link: Link
    destination_url: Optional[str] = None


async def register_click(db: AsyncSession, link: Link) -> None:
    """点击数 +1"""
    await db.execute(update(Link).where(Link.id == link.id).values(clicks=Link.clicks + 1))
    await db.flush()
    await db.refresh(link)


async def _claim_self_destruct(db: AsyncSession, link: Link) -> bool:
    """原子地把未销毁的阅后即焚短链标记为已销毁，返回是否抢到"""
    result = await db.execute(
        update(Link)
        .where(Link.id == link.id, Link.is_destroyed.is_(False))
        .values(is_destroyed=True, clicks=Link.clicks + 1)
    )
    await db.flush()
    await db.refresh(link)
    return result.rowcount == 1


def _is_expired(link: Link, now: datetime) -> bool:
    return link.expires_at is not None and link.expires_at < now


async def open_link(db: AsyncSession, slug: str, now: Optional[datetime] = None) -> LinkOpening:
    """
    按访问者视角打开短链

    Raises:
        LinkNotFound: 短码不存在
    """
    now = now or datetime.utcnow()
    link = await get_link_by_slug(db, slug)
    if link is None:
        raise LinkNotFound(slug)

    if _is_expired(link, now):
        return LinkOpening(kind=OPEN_EXPIRED, link=link)

    if link.is_bio_link:
        return LinkOpening(kind=OPEN_BIO, link=link, destination_url=bio_destination(link.user_id))

    destination = normalize_url(link.destination_url)

    if link.is_password_protected:
        return LinkOpening(kind=OPEN_PASSWORD, link=link)

    if link.is_self_destruct:
        if link.is_destroyed or not await _claim_self_destruct(db, link):
            return LinkOpening(kind=OPEN_DESTROYED, link=link)
        logger.info(f"[Links] 阅后即焚短链已使用: {slug}")
        if link.is_download:
            return LinkOpening(kind=OPEN_DOWNLOAD, link=link, destination_url=destination)
        return LinkOpening(kind=OPEN_REDIRECT, link=link, destination_url=destination)

    if link.is_download:
        return LinkOpening(kind=OPEN_DOWNLOAD, link=link, destination_url=destination)

    await register_click(db, link)
    return LinkOpening(kind=OPEN_REDIRECT, link=link, destination_url=destination)


async def unlock_link(db: AsyncSession, slug: str, password: str, now: Optional[datetime] = None) -> str:
    """验证密码保护短链，返回目标地址"""
    now = now or datetime.utcnow()
    link = await get_link_by_slug(db, slug)
    if link is None or link.is_bio_link:
        raise LinkNotFound(slug)
    if _is_expired(link, now):
        raise LinkError("Este link expirou", status_code=410)
    if not link.is_password_protected:
        raise LinkError("Este link não é protegido por senha")
    if not password or not verify_password(password, link.password_hash):
        raise LinkError("Senha incorreta", status_code=403)

    if link.is_self_destruct:
        if link.is_destroyed or not await _claim_self_destruct(db, link):
            raise LinkError("Este link já foi destruído", status_code=410)
    else:
        await register_click(db, link)
    return normalize_url(link.destination_url)


async def download_link(db: AsyncSession, slug: str, now: Optional[datetime] = None) -> str:
    """下载页确认下载，返回目标地址

    阅后即焚的下载链接在打开时已经给出地址，这里不再放行
    """
    now = now or datetime.utcnow()
    link = await get_link_by_slug(db, slug)
    if link is None or not link.is_download:
        raise LinkNotFound(slug)
    if _is_expired(link, now):
        raise LinkError("Este link expirou", status_code=410)
    if link.is_password_protected:
        raise LinkError("Este link é protegido por senha", status_code=401)
    if link.is_self_destruct:
        raise LinkError("Este link já foi destruído", status_code=410)
    await register_click(db, link)
    return normalize_url(link.destination_url)
