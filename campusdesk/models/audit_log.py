from sqlalchemy import Column, String, DateTime, Text, Integer, ForeignKey, JSON
from datetime import datetime

from campusdesk.core.database import Base


class AuditLog(Base):
    """Audit log for tracking admin actions"""
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    admin_id = Column(Integer, ForeignKey("admins.id"), nullable=True, index=True)

    action = Column(String(100), nullable=False)  # e.g. LOGIN, DELETE_BRANCH, DELETE_BATCH
    target_type = Column(String(50), nullable=True)  # e.g. branch, batch
    target_id = Column(Integer, nullable=True)
    details = Column(JSON, nullable=True)

    ip_address = Column(String(45), nullable=True)
    user_agent = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

    def __repr__(self):
        return f"<AuditLog {self.action} by {self.admin_id}>"
