from sqlalchemy import Column, String, DateTime, Enum as SQLEnum, Integer, ForeignKey, Text
from datetime import datetime
import enum

from campusdesk.core.database import Base


class NoticePriority(str, enum.Enum):
    HIGH = "high"
    NORMAL = "normal"
    LOW = "low"


class Notice(Base):
    """Announcement; branch_id NULL means every branch"""
    __tablename__ = "notices"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    priority = Column(SQLEnum(NoticePriority), default=NoticePriority.NORMAL, nullable=False)
    branch_id = Column(Integer, ForeignKey("branches.id"), nullable=True, index=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<Notice {self.title}>"
