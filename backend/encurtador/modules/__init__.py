"""业务模块"""
from . import ratelimit
from . import accounts
from . import links
from . import bio
from . import stats
from . import suggest

__all__ = [
    "ratelimit",
    "accounts",
    "links",
    "bio",
    "stats",
    "suggest",
]
