"""
短链跳转

- 跳转函数：纯查询，301 到目标地址，不计点击
- 公开短链页面：处理过期、阅后即焚、密码保护、下载页和 bio 页面
"""
import logging

from fastapi import Request, status
from fastapi.responses import JSONResponse, RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ...config import settings
from ...modules.bio import BioError, get_public_bio
from ...modules.links import (
    OPEN_BIO,
    OPEN_DESTROYED,
    OPEN_DOWNLOAD,
    OPEN_EXPIRED,
    OPEN_PASSWORD,
    LinkNotFound,
    open_link,
    resolve_slug,
)
from ...schemas import PublicBioResponse

logger = logging.getLogger(__name__)

REDIRECT_HEADERS = {
    "Cache-Control": "public, max-age=0, must-revalidate",
    "Access-Control-Allow-Origin": "*",
}


def slug_from_path(path: str) -> str:
    """去掉函数前缀和开头的 l/ 段，取第一段作为短码"""
    prefix = settings.REDIRECT_FUNCTION_PREFIX.rstrip("/")
    if path.startswith(prefix):
        path = path[len(prefix):]
    segments = [segment for segment in path.split("/") if segment]
    if segments and segments[0] == "l":
        segments = segments[1:]
    return segments[0] if segments else ""


def _message(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"message": message}, headers=REDIRECT_HEADERS)


async def handle_redirect(request: Request, db: AsyncSession):
    """跳转函数"""
    try:
        slug = slug_from_path(request.url.path)
        if not slug:
            return _message(status.HTTP_404_NOT_FOUND, "Slug não fornecido")

        try:
            resolved = await resolve_slug(db, slug)
        except LinkNotFound:
            return _message(status.HTTP_404_NOT_FOUND, "Link não encontrado")

        return RedirectResponse(
            url=resolved.target,
            status_code=status.HTTP_301_MOVED_PERMANENTLY,
            headers=REDIRECT_HEADERS,
        )
    except Exception as e:
        logger.exception(f"[Redirect] 跳转失败: {request.url.path} - {e}")
        return _message(status.HTTP_500_INTERNAL_SERVER_ERROR, "Erro interno do servidor")


async def _public_bio_payload(db: AsyncSession, user_id: str) -> dict:
    bio = await get_public_bio(db, user_id)
    return PublicBioResponse.model_validate(bio).model_dump()


async def handle_public_bio(user_id: str, db: AsyncSession):
    """公开 bio 页面"""
    try:
        return await _public_bio_payload(db, user_id)
    except BioError as e:
        return JSONResponse(status_code=e.status_code, content={"detail": e.message})


async def handle_slug_page(slug: str, db: AsyncSession):
    """公开短链页面"""
    try:
        opening = await open_link(db, slug)
    except LinkNotFound:
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": "Link não encontrado"})

    link = opening.link
    if opening.kind == OPEN_EXPIRED:
        return JSONResponse(
            status_code=status.HTTP_410_GONE,
            content={"detail": "Este link expirou", "expires_at": link.expires_at.isoformat()},
        )
    if opening.kind == OPEN_DESTROYED:
        return JSONResponse(status_code=status.HTTP_410_GONE, content={"detail": "Este link já foi destruído"})
    if opening.kind == OPEN_PASSWORD:
        return JSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED,
            content={"password_required": True, "title": link.title, "slug": link.slug},
        )
    if opening.kind == OPEN_DOWNLOAD:
        content = {"download": True, "title": link.title, "slug": link.slug}
        if link.is_self_destruct:
            # 阅后即焚只有这一次机会拿到地址
            content["destination_url"] = opening.destination_url
        return content
    if opening.kind == OPEN_BIO:
        return await handle_public_bio(link.user_id, db)

    logger.info(f"[Redirect] {slug} -> {opening.destination_url}")
    return RedirectResponse(
        url=opening.destination_url,
        status_code=status.HTTP_302_FOUND,
        headers={"Cache-Control": "no-store"},
    )
