"""认证路由"""
import logging

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from ...database import get_db
from ...models import User
from ...schemas import LoginRequest, LoginResponse, SessionResponse, UserResponse
from ...modules.accounts import LoginError, sign_in
from ...modules.ratelimit import RateLimiter
from ...api.deps import (
    SessionStore,
    get_client_identity,
    get_optional_user,
    get_rate_limiter,
    get_session_store,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/login", response_model=LoginResponse)
async def login(
    user_in: LoginRequest,
    request: Request,
    response: Response,
    db: AsyncSession = Depends(get_db),
    limiter: RateLimiter = Depends(get_rate_limiter),
    session: SessionStore = Depends(get_session_store),
):
    """用户名密码登录，失败次数过多时锁定"""
    identity = get_client_identity(request)
    try:
        user = await sign_in(db, limiter, identity, user_in.username, user_in.password)
    except LoginError as e:
        # 失败计数需要在抛出 HTTPException 之前落库
        await db.commit()
        logger.info(f"[Auth] 登录失败: {identity} - {e.message}")
        raise HTTPException(status_code=e.status_code, detail=e.message)

    token = session.set(response, user.id)
    return LoginResponse(access_token=token, user=UserResponse.model_validate(user))


@router.post("/logout")
async def logout(response: Response, session: SessionStore = Depends(get_session_store)):
    """退出登录"""
    session.clear(response)
    return {"message": "Sessão encerrada"}


@router.get("/session", response_model=SessionResponse)
async def get_session(user: User = Depends(get_optional_user)):
    """当前会话状态"""
    if user is None:
        return SessionResponse(authenticated=False)
    return SessionResponse(authenticated=True, user=UserResponse.model_validate(user))
