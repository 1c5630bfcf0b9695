"""应用配置"""
from pydantic import model_validator
from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import Optional
from pathlib import Path
import os

# 确定项目根目录
# 本地开发: backend/encurtador/config.py -> 项目根目录是 ../../
_current_file = Path(__file__).resolve()
_backend_dir = _current_file.parent.parent  # backend 目录
_project_root = _backend_dir.parent  # 项目根目录

if os.path.exists("/app/.env"):
    # Docker 环境
    _env_file = Path("/app/.env")
else:
    _env_file = _project_root / ".env" if (_project_root / ".env").exists() else None


class Settings(BaseSettings):
    """应用设置"""
    # 应用
    APP_NAME: str = "Encurtador"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False

    # 后端（数据库地址与签名密钥，启动时必须提供）
    DATABASE_URL: str = ""
    SECRET_KEY: str = ""

    # 会话
    JWT_ALGORITHM: str = "HS256"
    SESSION_COOKIE_NAME: str = "encurtador_session"
    SESSION_EXPIRE_MINUTES: int = 0  # 0 表示永不过期
    SESSION_COOKIE_MAX_AGE_DAYS: int = 400  # 令牌永不过期时 Cookie 的保留天数（浏览器上限约 400 天）
    SESSION_COOKIE_SECURE: bool = False

    # 登录限流
    LOGIN_MAX_ATTEMPTS: int = 5
    LOGIN_BLOCK_MINUTES: int = 15
    LOGIN_ATTEMPT_RESET_MINUTES: int = 30
    LOGIN_ATTEMPT_STORE: str = "database"  # database | memory
    TRUST_FORWARDED_FOR: bool = False  # 位于反向代理之后时开启

    # 短链
    PUBLIC_BASE_URL: str = "http://localhost:8000"
    REDIRECT_FUNCTION_PREFIX: str = "/.netlify/functions/redirect"

    # 缓存
    CACHE_TTL: int = 300  # 5 分钟
    CACHE_MAX_SIZE: int = 500

    # 标题/短码建议
    SUGGEST_FETCH_TIMEOUT: float = 10.0

    # CORS
    CORS_ORIGINS: list[str] = [
        "http://localhost",
        "http://localhost:5173",
        "https://localhost",
        "https://localhost:5173",
    ]

    # 日志
    LOG_LEVEL: str = "INFO"
    LOG_FILE: Optional[str] = None

    @model_validator(mode="after")
    def check_backend(self) -> "Settings":
        """缺少数据库地址或密钥时拒绝启动"""
        missing = [name for name in ("DATABASE_URL", "SECRET_KEY") if not getattr(self, name).strip()]
        if missing:
            raise ValueError(f"缺少必需的环境变量: {', '.join(missing)}")
        if self.LOGIN_ATTEMPT_STORE not in ("database", "memory"):
            raise ValueError("LOGIN_ATTEMPT_STORE 只能是 database 或 memory")
        return self

    class Config:
        env_file = str(_env_file) if _env_file else ".env"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    """获取配置单例"""
    return Settings()


settings = get_settings()
