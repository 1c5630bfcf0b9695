"""数据模型"""
from .user import User
from .link import Link
from .bio_link import BioLink
from .login_attempt import LoginAttempt

__all__ = [
    "User",
    "Link",
    "BioLink",
    "LoginAttempt",
]
