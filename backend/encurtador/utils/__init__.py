"""工具函数"""
from .cache import cache, cached, invalidate_cache
from .security import hash_password, verify_password, create_session_token, decode_token, read_session_user_id
from .http_client import safe_fetch, extract_meta_info, validate_url, SSRFError

__all__ = [
    "cache", "cached", "invalidate_cache",
    "hash_password", "verify_password", "create_session_token", "decode_token", "read_session_user_id",
    "safe_fetch", "extract_meta_info", "validate_url", "SSRFError",
]
