"""路由依赖：会话、当前用户、登录限流器"""
from datetime import timedelta
from typing import Optional

from fastapi import Depends, HTTPException, Request, Response, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import settings
from ..database import get_db
from ..models import User
from ..modules.accounts import get_user_by_id
from ..modules.ratelimit import (
    DatabaseAttemptStore,
    LoginAttemptStore,
    MemoryAttemptStore,
    RateLimiter,
)
from ..utils.security import create_session_token, read_session_user_id

security = HTTPBearer(auto_error=False)


class SessionStore:
    """
    会话存储

    会话是签名的 JWT，写在 HttpOnly Cookie 中；同时接受
    Authorization: Bearer 头，方便脚本和测试调用。
    """

    def __init__(self, request: Request, credentials: Optional[HTTPAuthorizationCredentials] = None):
        self.request = request
        self.credentials = credentials

    def set(self, response: Response, user_id: str) -> str:
        token = create_session_token(user_id)
        if settings.SESSION_EXPIRE_MINUTES > 0:
            max_age = settings.SESSION_EXPIRE_MINUTES * 60
        else:
            # 令牌不过期，Cookie 也需跨浏览器重启保留
            max_age = settings.SESSION_COOKIE_MAX_AGE_DAYS * 24 * 60 * 60
        response.set_cookie(
            key=settings.SESSION_COOKIE_NAME,
            value=token,
            max_age=max_age,
            httponly=True,
            samesite="lax",
            secure=settings.SESSION_COOKIE_SECURE,
            path="/",
        )
        return token

    def token(self) -> Optional[str]:
        if self.credentials and self.credentials.credentials:
            return self.credentials.credentials
        return self.request.cookies.get(settings.SESSION_COOKIE_NAME)

    def get(self) -> Optional[str]:
        """返回会话中的用户 ID"""
        token = self.token()
        if not token:
            return None
        return read_session_user_id(token)

    def clear(self, response: Response) -> None:
        response.delete_cookie(key=settings.SESSION_COOKIE_NAME, path="/")

    async def get_current_user(self, db: AsyncSession) -> Optional[User]:
        user_id = self.get()
        if not user_id:
            return None
        return await get_user_by_id(db, user_id)


def get_session_store(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> SessionStore:
    return SessionStore(request, credentials)


async def get_optional_user(
    session: SessionStore = Depends(get_session_store),
    db: AsyncSession = Depends(get_db),
) -> Optional[User]:
    """已登录返回用户，否则返回 None"""
    return await session.get_current_user(db)


async def get_current_user(user: Optional[User] = Depends(get_optional_user)) -> User:
    """获取当前登录用户"""
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Não autenticado",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


async def require_admin(user: User = Depends(get_current_user)) -> User:
    """仅管理员"""
    if not user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Acesso restrito a administradores",
        )
    return user


def get_client_identity(request: Request) -> str:
    """登录限流使用的客户端标识"""
    if settings.TRUST_FORWARDED_FOR:
        forwarded = request.headers.get("x-forwarded-for", "")
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


# 进程内存储，LOGIN_ATTEMPT_STORE=memory 时使用
memory_attempt_store = MemoryAttemptStore(
    ttl=timedelta(minutes=max(settings.LOGIN_BLOCK_MINUTES, settings.LOGIN_ATTEMPT_RESET_MINUTES)),
)


def get_attempt_store(db: AsyncSession = Depends(get_db)) -> LoginAttemptStore:
    if settings.LOGIN_ATTEMPT_STORE == "memory":
        return memory_attempt_store
    return DatabaseAttemptStore(db)


def get_rate_limiter(store: LoginAttemptStore = Depends(get_attempt_store)) -> RateLimiter:
    return RateLimiter(
        store,
        max_attempts=settings.LOGIN_MAX_ATTEMPTS,
        block_duration=timedelta(minutes=settings.LOGIN_BLOCK_MINUTES),
        reset_time=timedelta(minutes=settings.LOGIN_ATTEMPT_RESET_MINUTES),
    )
