from sqlalchemy import Column, String, DateTime, Enum as SQLEnum, Integer, ForeignKey, Text
from datetime import datetime
import enum

from campusdesk.core.database import Base


class AdminRole(str, enum.Enum):
    """Admin roles"""
    ADMIN = "admin"
    SUPER_ADMIN = "super_admin"


class AdminStatus(str, enum.Enum):
    """Admin account status"""
    ACTIVE = "active"
    INACTIVE = "inactive"


class Admin(Base):
    """Staff account that manages the college records"""
    __tablename__ = "admins"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)

    role = Column(SQLEnum(AdminRole), default=AdminRole.ADMIN, nullable=False)
    status = Column(SQLEnum(AdminStatus), default=AdminStatus.ACTIVE, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    last_login = Column(DateTime, nullable=True)

    def __repr__(self):
        return f"<Admin {self.name}>"


class Student(Base):
    """Student account and profile"""
    __tablename__ = "students"

    id = Column(Integer, primary_key=True, autoincrement=True)
    roll_no = Column(String(50), unique=True, index=True, nullable=False)
    name = Column(String(255), nullable=False)
    branch_id = Column(Integer, ForeignKey("branches.id"), nullable=False, index=True)

    password_hash = Column(String(255), nullable=True)
    # Plaintext from rows seeded before hashing; read only by verify_legacy_password
    password = Column(String(255), nullable=True)

    # Lockout tracking
    failed_login_attempts = Column(Integer, default=0, nullable=False)
    lockout_until = Column(DateTime, nullable=True)

    # Password recovery
    security_question = Column(Text, nullable=True)
    security_answer = Column(String(255), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<Student {self.roll_no}>"
