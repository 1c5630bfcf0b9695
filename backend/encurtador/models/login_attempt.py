"""登录失败记录模型"""
from sqlalchemy import Column, String, DateTime, Integer, Boolean

from ..database import Base


class LoginAttempt(Base):
    """登录失败计数，按客户端标识（IP）记录，多实例共享"""
    __tablename__ = "login_attempts"
    
    identity = Column(String(255), primary_key=True)
    count = Column(Integer, nullable=False, default=0)
    last_attempt_at = Column(DateTime, nullable=False)
    blocked = Column(Boolean, nullable=False, default=False)
