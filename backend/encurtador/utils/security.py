"""安全相关工具"""
from datetime import datetime, timedelta
from typing import Optional
from jose import jwt, JWTError
from passlib.context import CryptContext

from ..config import settings

# 密码加密上下文
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

SESSION_TOKEN_TYPE = "session"


def hash_password(password: str) -> str:
    """哈希密码"""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """验证密码"""
    return pwd_context.verify(plain_password, hashed_password)


def create_session_token(user_id: str) -> str:
    """创建会话令牌

    SESSION_EXPIRE_MINUTES 为 0 时不写入 exp，令牌永不过期
    """
    payload = {
        "sub": user_id,
        "type": SESSION_TOKEN_TYPE,
    }
    if settings.SESSION_EXPIRE_MINUTES > 0:
        payload["exp"] = datetime.utcnow() + timedelta(minutes=settings.SESSION_EXPIRE_MINUTES)
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> Optional[dict]:
    """解码令牌"""
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
        return payload
    except JWTError:
        return None


def read_session_user_id(token: str) -> Optional[str]:
    """从会话令牌中取出用户 ID，无效令牌返回 None"""
    payload = decode_token(token)
    if payload is None or payload.get("type") != SESSION_TOKEN_TYPE:
        return None
    return payload.get("sub")
