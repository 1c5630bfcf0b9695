"""FastAPI 应用入口"""
import logging
import logging.config
import os

# 日志配置
# 设置 LOG_FILE 时额外写入文件
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
LOG_FILE = os.environ.get("LOG_FILE")

_handlers = {
    "console": {
        "class": "logging.StreamHandler",
        "formatter": "standard",
    }
}
if LOG_FILE:
    _handlers["file"] = {
        "class": "logging.FileHandler",
        "formatter": "standard",
        "filename": LOG_FILE,
        "mode": "a",
        "encoding": "utf-8",
    }

logging.config.dictConfig({
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "standard": {"format": "%(levelname)s:%(name)s:%(message)s"}
    },
    "handlers": _handlers,
    "root": {
        "level": LOG_LEVEL,
        "handlers": list(_handlers),
    },
    "loggers": {
        "encurtador": {"level": LOG_LEVEL},
        "httpx": {"level": "WARNING"},
    }
})

from fastapi import FastAPI, Request, Depends
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from sqlalchemy.ext.asyncio import AsyncSession

from .config import settings
from .database import init_db, get_db
from .api import api_router
from .api.v1.redirect import handle_redirect, handle_public_bio, handle_slug_page

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """应用生命周期管理"""
    await init_db()
    logger.info(f"[App] {settings.APP_NAME} v{settings.APP_VERSION} 启动成功")
    yield
    logger.info("[App] 应用关闭完成")


# 创建应用
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="短链接与 Bio 页面服务 API",
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
    lifespan=lifespan,
)

# CORS 配置
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    """未处理异常统一返回 500"""
    logger.exception(f"[App] 未处理异常: {request.method} {request.url.path} - {exc}")
    return JSONResponse(status_code=500, content={"detail": "Erro interno do servidor"})


# 注册路由
app.include_router(api_router, prefix="/api")


# 健康检查
@app.get("/health", tags=["系统"], summary="健康检查")
async def health_check():
    """检查服务运行状态"""
    return {
        "status": "healthy",
        "app": settings.APP_NAME,
        "version": settings.APP_VERSION
    }


# 根路由
@app.get("/", tags=["系统"], summary="欢迎页")
async def root():
    """返回 API 基本信息"""
    return {
        "message": f"Welcome to {settings.APP_NAME}",
        "version": settings.APP_VERSION,
        "docs": "/api/docs"
    }


# ==================== 跳转函数（公开，无需认证）====================
_redirect_prefix = settings.REDIRECT_FUNCTION_PREFIX.rstrip("/")


@app.get(_redirect_prefix, tags=["跳转"], summary="跳转函数（缺少短码）")
async def redirect_function_root(request: Request, db: AsyncSession = Depends(get_db)):
    return await handle_redirect(request, db)


@app.get(_redirect_prefix + "/{path:path}", tags=["跳转"], summary="跳转函数")
async def redirect_function(request: Request, path: str, db: AsyncSession = Depends(get_db)):
    """
    按短码 301 跳转到目标地址

    - 路径中开头的 l/ 会被忽略
    - 只做查询，不统计点击
    """
    return await handle_redirect(request, db)


# ==================== 公开页面 ====================
@app.get("/bio/{user_id}", tags=["公开访问"], summary="公开 bio 页面")
async def public_bio(user_id: str, db: AsyncSession = Depends(get_db)):
    return await handle_public_bio(user_id, db)


# 必须最后注册，避免覆盖其它路由
@app.get("/{slug}", tags=["公开访问"], summary="打开短链")
async def open_slug(slug: str, db: AsyncSession = Depends(get_db)):
    """
    打开短链

    - 普通短链：点击数 +1 并 302 跳转
    - 过期 / 已销毁：410
    - 密码保护：401，需调用解锁接口
    - 下载页：返回下载信息
    - bio 短链：返回公开 bio 页面
    """
    return await handle_slug_page(slug, db)
