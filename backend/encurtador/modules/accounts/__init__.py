"""
账户

- 用户查询与维护（check_password / create_new_user / update_user_info 等）
- 登录校验：结合限流器验证用户名和密码
"""

import logging
from typing import List, NoReturn, Optional

from sqlalchemy import select, or_
from sqlalchemy.ext.asyncio import AsyncSession

from ...models import User
from ...models.user import ROLE_ADMIN, ROLE_USER
from ...utils.security import hash_password, verify_password
from ..ratelimit import RateLimiter, LoginBlocked, lockout_message

logger = logging.getLogger(__name__)


class AccountError(Exception):
    """账户操作错误"""

    def __init__(self, message: str, status_code: int = 400):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class LoginError(Exception):
    """登录失败"""

    def __init__(self, message: str, status_code: int = 401):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


def invalid_credentials_message(remaining: int) -> str:
    return f"Usuário ou senha inválidos. Restam {remaining} tentativa(s)."


# ==================== 查询 ====================

async def get_user_by_id(db: AsyncSession, user_id: str) -> Optional[User]:
    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def get_user_by_username(db: AsyncSession, username: str) -> Optional[User]:
    result = await db.execute(select(User).where(User.username == username))
    return result.scalar_one_or_none()


async def list_users(db: AsyncSession) -> List[User]:
    """管理员在前，其余按创建时间倒序"""
    result = await db.execute(select(User).order_by(User.created_at.desc()))
    users = list(result.scalars().all())
    return sorted(users, key=lambda u: 0 if u.role == ROLE_ADMIN else 1)


async def check_password(db: AsyncSession, user_id: str, password: str) -> bool:
    """校验用户密码，用户不存在时抛出 AccountError"""
    user = await get_user_by_id(db, user_id)
    if user is None:
        raise AccountError("Usuário não encontrado", status_code=404)
    return verify_password(password, user.password_hash)


# ==================== 维护 ====================

async def _ensure_unique(db: AsyncSession, username: Optional[str], email: Optional[str], exclude_id: Optional[str] = None):
    conditions = []
    if username:
        conditions.append(User.username == username)
    if email:
        conditions.append(User.email == email)
    if not conditions:
        return

    query = select(User).where(or_(*conditions))
    if exclude_id:
        query = query.where(User.id != exclude_id)
    result = await db.execute(query)
    existing = result.scalars().first()
    if existing is None:
        return
    if username and existing.username == username:
        raise AccountError("Este nome de usuário já está em uso", status_code=409)
    raise AccountError("Este email já está em uso", status_code=409)


async def create_new_user(
    db: AsyncSession,
    username: str,
    password: str,
    full_name: str,
    email: str,
    role: str = ROLE_USER,
) -> User:
    """创建用户，所有字段必填"""
    username = (username or "").strip()
    full_name = (full_name or "").strip()
    email = (email or "").strip()
    if not username or not password or not full_name or not email:
        raise AccountError("Todos os campos são obrigatórios")

    await _ensure_unique(db, username, email)

    user = User(
        username=username,
        email=email,
        full_name=full_name,
        role=role,
        password_hash=hash_password(password),
    )
    db.add(user)
    await db.flush()
    await db.refresh(user)
    logger.info(f"[Accounts] 创建用户: {username}")
    return user


async def update_user_info(
    db: AsyncSession,
    user_id: str,
    new_username: str,
    new_password: Optional[str] = None,
) -> User:
    """修改用户名，可选同时重置密码"""
    new_username = (new_username or "").strip()
    if not new_username:
        raise AccountError("Nome de usuário é obrigatório")

    user = await get_user_by_id(db, user_id)
    if user is None:
        raise AccountError("Usuário não encontrado", status_code=404)

    await _ensure_unique(db, new_username, None, exclude_id=user_id)

    user.username = new_username
    if new_password:
        user.password_hash = hash_password(new_password)
    await db.flush()
    await db.refresh(user)
    return user


async def update_profile(
    db: AsyncSession,
    user: User,
    username: Optional[str] = None,
    full_name: Optional[str] = None,
    email: Optional[str] = None,
    avatar_url: Optional[str] = None,
) -> User:
    """更新个人资料"""
    if username is not None:
        username = username.strip()
        if not username:
            raise AccountError("Nome de usuário é obrigatório")
    await _ensure_unique(db, username, email, exclude_id=user.id)

    if username is not None:
        user.username = username
    if full_name is not None:
        user.full_name = full_name
    if email is not None:
        user.email = email
    if avatar_url is not None:
        user.avatar_url = avatar_url or None
    await db.flush()
    await db.refresh(user)
    return user


async def delete_user(db: AsyncSession, user_id: str) -> None:
    """删除用户，管理员不可删除"""
    user = await get_user_by_id(db, user_id)
    if user is None:
        raise AccountError("Usuário não encontrado", status_code=404)
    if user.role == ROLE_ADMIN:
        raise AccountError("Administradores não podem ser excluídos", status_code=403)
    await db.delete(user)
    await db.flush()
    logger.info(f"[Accounts] 删除用户: {user.username}")


# ==================== 登录 ====================

async def sign_in(
    db: AsyncSession,
    limiter: RateLimiter,
    identity: str,
    username: str,
    password: str,
) -> User:
    """
    校验用户名和密码

    Args:
        db: 数据库会话
        limiter: 登录限流器
        identity: 客户端标识（IP）
        username: 用户名
        password: 密码

    Returns:
        登录成功的用户

    Raises:
        LoginError: 参数为空、已锁定或凭据错误
    """
    username = (username or "").strip()
    password = (password or "").strip()
    if not username or not password:
        raise LoginError("Preencha usuário e senha", status_code=400)

    try:
        await limiter.check(identity)
    except LoginBlocked as e:
        raise LoginError(str(e), status_code=429)

    try:
        user = await get_user_by_username(db, username)
    except Exception as e:
        logger.error(f"[Auth] 查询用户失败: {e}")
        user = None

    if user is None:
        await _fail(limiter, identity)

    try:
        valid = await check_password(db, user.id, password)
    except Exception as e:
        logger.error(f"[Auth] 密码校验失败: {e}")
        valid = False

    if not valid:
        await _fail(limiter, identity)

    await limiter.reset(identity)
    logger.info(f"[Auth] 登录成功: {username}")
    return user


async def _fail(limiter: RateLimiter, identity: str) -> NoReturn:
    record = await limiter.register_failure(identity)
    if record.blocked:
        raise LoginError(lockout_message(limiter.blocked_minutes(record)), status_code=429)
    raise LoginError(invalid_credentials_message(limiter.remaining_attempts(record)))
