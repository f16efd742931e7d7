from typing import Optional

from campusdesk.schemas.base import CamelModel


class StatsScope(CamelModel):
    """Filter for analytics. branch_id wins when both are given."""
    branch_id: Optional[int] = None
    batch_id: Optional[int] = None


class GlobalStats(CamelModel):
    total_students: int = 0
    avg_attendance: float = 0.0
    avg_marks: float = 0.0
    total_books_issued: int = 0


class SubjectStats(CamelModel):
    subject_id: int
    subject_code: str
    subject_name: str
    avg_attendance: float = 0.0
    avg_marks: float = 0.0


class AttendanceSummary(CamelModel):
    """Attendance of one student in one subject for one month (YYYY-MM)"""
    student_id: int
    subject_id: int
    month: str
    total_days: int
    present_days: int
    percentage: float
    status: str


class MarkSummary(CamelModel):
    student_id: int
    exam_id: int
    subject_id: int
    exam_name: str
    month: Optional[str] = None
    marks_obtained: float
    total_marks: int
    percentage: float
    grade: str
