"""短链模型"""
from sqlalchemy import Column, String, DateTime, Integer, Boolean, ForeignKey
from sqlalchemy.orm import relationship
from datetime import datetime

from ..database import Base

# 高级类型
ADVANCED_EXPIRABLE = "expirable"
ADVANCED_SELF_DESTRUCT = "selfDestruct"
ADVANCED_PASSWORD = "password"
ADVANCED_TYPES = (ADVANCED_EXPIRABLE, ADVANCED_SELF_DESTRUCT, ADVANCED_PASSWORD)


class Link(Base):
    """短链表

    slug 在普通短链与 bio 页面之间全局唯一
    """
    __tablename__ = "links"
    
    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    slug = Column(String(64), unique=True, nullable=False, index=True)
    title = Column(String(255), nullable=True)
    destination_url = Column(String(2000), nullable=False)
    is_bio_link = Column(Boolean, default=False, nullable=False)
    clicks = Column(Integer, default=0, nullable=False)
    
    # 高级选项
    advanced_type = Column(String(20), nullable=True)
    expires_at = Column(DateTime, nullable=True)
    password_hash = Column(String(255), nullable=True)
    is_self_destruct = Column(Boolean, default=False, nullable=False)
    is_destroyed = Column(Boolean, default=False, nullable=False)
    is_download = Column(Boolean, default=False, nullable=False)
    
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    
    # 关系
    user = relationship("User", back_populates="links")

    @property
    def is_password_protected(self) -> bool:
        return bool(self.password_hash)
