"""
标题与短码建议

根据目标地址的网页标题生成短链标题和短码：
- YouTube 视频通过 oEmbed 获取标题
- 其他网页读取 og:title / <title>
- 取标题中前两个有效词作为短码
"""

import logging
import re
import unicodedata
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlparse

from sqlalchemy.ext.asyncio import AsyncSession

from ...config import settings
from ...utils.cache import cached
from ...utils.http_client import SSRFError, extract_meta_info, safe_fetch
from ..links import generate_unique_slug, normalize_url

logger = logging.getLogger(__name__)

STOP_WORDS = {"como", "para", "com", "dos", "das", "que", "por"}
MAX_SLUG_LENGTH = 20
MAX_TITLE_LENGTH = 50

YOUTUBE_PATTERNS = [
    re.compile(r"(?:youtube\.com/watch\?v=|youtu\.be/|youtube\.com/embed/)([^&\n?#]+)"),
    re.compile(r"youtube\.com/shorts/([^&\n?#]+)"),
]


class SuggestionError(Exception):
    """无法生成建议"""

    def __init__(self, message: str = "Não foi possível gerar sugestões para o link"):
        self.message = message
        super().__init__(message)


@dataclass
class Suggestion:
    title: str
    slug: str


def strip_accents(text: str) -> str:
    normalized = unicodedata.normalize("NFD", text)
    return "".join(c for c in normalized if unicodedata.category(c) != "Mn")


def slug_from_title(title: str) -> str:
    """取标题中前两个有效词（长度 > 2 且非停用词）"""
    text = strip_accents(title or "").lower()
    text = re.sub(r"[^a-z0-9\s-]", "", text)
    words = [w for w in text.split() if len(w) > 2 and w not in STOP_WORDS]
    slug = "-".join(words[:2])
    slug = re.sub(r"-{2,}", "-", slug).strip("-")
    return slug[:MAX_SLUG_LENGTH].strip("-")


def slug_from_domain(url: str) -> str:
    host = (urlparse(url).hostname or "").lower()
    if host.startswith("www."):
        host = host[4:]
    name = host.split(".")[0] if host else ""
    return re.sub(r"[^a-z0-9-]", "", name)[:MAX_SLUG_LENGTH]


def extract_youtube_video_id(url: str) -> Optional[str]:
    for pattern in YOUTUBE_PATTERNS:
        match = pattern.search(url)
        if match:
            return match.group(1)
    return None


@cached()
async def fetch_page_title(url: str) -> Optional[str]:
    """获取网页标题，失败返回 None"""
    video_id = extract_youtube_video_id(url)
    try:
        if video_id:
            oembed = f"https://www.youtube.com/oembed?url=https://www.youtube.com/watch?v={video_id}&format=json"
            response = await safe_fetch(oembed, timeout=settings.SUGGEST_FETCH_TIMEOUT)
            if response.status_code == 200:
                return (response.json().get("title") or "").strip() or None

        response = await safe_fetch(url, timeout=settings.SUGGEST_FETCH_TIMEOUT)
        if response.status_code != 200:
            logger.warning(f"[Suggest] 获取网页失败: {url} -> {response.status_code}")
            return None
        meta = extract_meta_info(response.text)
        return meta.get("og_title") or meta.get("title") or None
    except SSRFError:
        raise
    except Exception as e:
        logger.warning(f"[Suggest] 获取网页失败: {url} - {e}")
        return None


async def suggest_title_and_slug(db: AsyncSession, url: str) -> Suggestion:
    """
    生成标题和唯一短码

    Raises:
        SuggestionError: 地址不安全或无法生成短码
    """
    url = normalize_url(url)
    try:
        title = await fetch_page_title(url)
    except SSRFError as e:
        logger.warning(f"[Suggest] 拒绝地址: {url} - {e}")
        raise SuggestionError()

    base = slug_from_title(title) if title else ""
    if not base:
        base = slug_from_domain(url)
    if not base:
        raise SuggestionError()

    if not title:
        title = urlparse(url).hostname or url
    title = title[:MAX_TITLE_LENGTH].strip()

    return Suggestion(title=title, slug=await generate_unique_slug(db, base))
