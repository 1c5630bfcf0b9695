"""
登录限流

按客户端标识统计登录失败次数，超过上限后锁定一段时间。

状态:
- Clear: count = 0
- Accumulating: 0 < count < max_attempts
- Blocked: count >= max_attempts

距上次失败超过 block_duration 时解除锁定；未锁定且距上次失败超过
reset_time 时计数归零。
"""

import logging
import math
from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import Callable, Optional

from cachetools import TTLCache
from sqlalchemy.ext.asyncio import AsyncSession

from ...models import LoginAttempt

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 5
BLOCK_DURATION = timedelta(minutes=15)
ATTEMPT_RESET_TIME = timedelta(minutes=30)


class LoginBlocked(Exception):
    """登录已被锁定"""

    def __init__(self, minutes: int):
        self.minutes = minutes
        super().__init__(lockout_message(minutes))


def lockout_message(minutes: int) -> str:
    return f"Muitas tentativas de login. Tente novamente em {minutes} minutos."


@dataclass
class LoginAttemptRecord:
    """单个客户端的失败记录"""
    identity: str
    count: int = 0
    last_attempt: Optional[datetime] = None
    blocked: bool = False


# ==================== 存储 ====================

class LoginAttemptStore(ABC):
    """失败记录存储"""

    @abstractmethod
    async def get(self, identity: str) -> Optional[LoginAttemptRecord]:
        ...

    @abstractmethod
    async def save(self, record: LoginAttemptRecord) -> None:
        ...

    @abstractmethod
    async def delete(self, identity: str) -> None:
        ...


class MemoryAttemptStore(LoginAttemptStore):
    """进程内存储，仅适用于单实例部署"""

    def __init__(self, maxsize: int = 10000, ttl: timedelta = ATTEMPT_RESET_TIME):
        self._records: TTLCache = TTLCache(maxsize=maxsize, ttl=ttl.total_seconds())

    async def get(self, identity: str) -> Optional[LoginAttemptRecord]:
        record = self._records.get(identity)
        # 返回副本，调用方修改后需显式 save
        return replace(record) if record is not None else None

    async def save(self, record: LoginAttemptRecord) -> None:
        self._records[record.identity] = replace(record)

    async def delete(self, identity: str) -> None:
        self._records.pop(identity, None)

    def clear(self) -> None:
        self._records.clear()


class DatabaseAttemptStore(LoginAttemptStore):
    """数据库存储，多个实例共享同一份计数"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, identity: str) -> Optional[LoginAttemptRecord]:
        row = await self.db.get(LoginAttempt, identity)
        if row is None:
            return None
        return LoginAttemptRecord(
            identity=row.identity,
            count=row.count,
            last_attempt=row.last_attempt_at,
            blocked=bool(row.blocked),
        )

    async def save(self, record: LoginAttemptRecord) -> None:
        row = await self.db.get(LoginAttempt, record.identity)
        if row is None:
            row = LoginAttempt(identity=record.identity)
            self.db.add(row)
        row.count = record.count
        row.last_attempt_at = record.last_attempt
        row.blocked = record.blocked
        await self.db.flush()

    async def delete(self, identity: str) -> None:
        row = await self.db.get(LoginAttempt, identity)
        if row is not None:
            await self.db.delete(row)
            await self.db.flush()


# ==================== 限流器 ====================

class RateLimiter:
    """登录失败限流器"""

    def __init__(
        self,
        store: LoginAttemptStore,
        max_attempts: int = MAX_ATTEMPTS,
        block_duration: timedelta = BLOCK_DURATION,
        reset_time: timedelta = ATTEMPT_RESET_TIME,
        clock: Callable[[], datetime] = datetime.utcnow,
    ):
        self.store = store
        self.max_attempts = max_attempts
        self.block_duration = block_duration
        self.reset_time = reset_time
        self.clock = clock

    async def check(self, identity: str) -> None:
        """检查是否允许尝试登录

        Raises:
            LoginBlocked: 仍处于锁定期
        """
        record = await self.store.get(identity)
        if record is None or record.last_attempt is None:
            return

        elapsed = self.clock() - record.last_attempt
        if record.blocked:
            if elapsed > self.block_duration:
                logger.info(f"[RateLimit] 解除锁定: {identity}")
                await self.store.delete(identity)
                return
            raise LoginBlocked(self._minutes_left(elapsed))

        if elapsed > self.reset_time:
            await self.store.delete(identity)

    async def register_failure(self, identity: str) -> LoginAttemptRecord:
        """记录一次失败，达到上限时进入锁定状态"""
        now = self.clock()
        record = await self.store.get(identity) or LoginAttemptRecord(identity=identity)

        if record.last_attempt is not None:
            elapsed = now - record.last_attempt
            if record.blocked and elapsed > self.block_duration:
                record = LoginAttemptRecord(identity=identity)
            elif not record.blocked and elapsed > self.reset_time:
                record.count = 0

        record.count += 1
        record.last_attempt = now
        if record.count >= self.max_attempts:
            if not record.blocked:
                logger.warning(f"[RateLimit] 登录失败 {record.count} 次，锁定: {identity}")
            record.blocked = True

        await self.store.save(record)
        return record

    async def reset(self, identity: str) -> None:
        """登录成功后清除记录"""
        await self.store.delete(identity)

    def remaining_attempts(self, record: LoginAttemptRecord) -> int:
        return max(0, self.max_attempts - record.count)

    def blocked_minutes(self, record: LoginAttemptRecord) -> int:
        """锁定剩余分钟数（向上取整）"""
        if record.last_attempt is None:
            return math.ceil(self.block_duration.total_seconds() / 60)
        return self._minutes_left(self.clock() - record.last_attempt)

    def _minutes_left(self, elapsed: timedelta) -> int:
        remaining = self.block_duration - elapsed
        return max(1, math.ceil(remaining.total_seconds() / 60))
