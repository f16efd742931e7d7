from sqlalchemy import Column, Date, Enum as SQLEnum, Integer, ForeignKey, Index
import enum

from campusdesk.core.database import Base


class AttendanceStatus(str, enum.Enum):
    PRESENT = "present"
    ABSENT = "absent"


class DailyAttendance(Base):
    """One attendance mark per (student, subject, date)"""
    __tablename__ = "daily_attendance"
    __table_args__ = (
        Index("ix_daily_attendance_student_subject_date", "student_id", "subject_id", "date"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    student_id = Column(Integer, ForeignKey("students.id"), nullable=False, index=True)
    subject_id = Column(Integer, ForeignKey("subjects.id"), nullable=False, index=True)
    date = Column(Date, nullable=False)
    status = Column(SQLEnum(AttendanceStatus), nullable=False)

    def __repr__(self):
        return f"<DailyAttendance {self.student_id}/{self.subject_id} {self.date} {self.status}>"
