import datetime
from typing import Optional

from pydantic import Field, model_validator

from campusdesk.models.attendance import AttendanceStatus
from campusdesk.models.notice import NoticePriority
from campusdesk.schemas.base import CamelModel


# ============================================
# Batches & Branches
# ============================================

class BatchCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=50)
    start_year: int
    end_year: int

    @model_validator(mode="after")
    def validate_years(self):
        if self.end_year < self.start_year:
            raise ValueError("End year cannot be before start year")
        return self


class BatchResponse(CamelModel):
    id: int
    name: str
    start_year: int
    end_year: int


class BranchCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=100)
    batch_id: int


class BranchResponse(CamelModel):
    id: int
    name: str
    batch_id: int


# ============================================
# Students & Subjects
# ============================================

class StudentCreate(CamelModel):
    roll_no: str = Field(..., min_length=1, max_length=50, pattern=r"^[A-Za-z0-9\-./]+$")
    name: str = Field(..., min_length=1, max_length=255)
    branch_id: int
    # Defaults to the student's name, as the college issues it
    password: Optional[str] = None
    security_question: Optional[str] = None
    security_answer: Optional[str] = None


class StudentResponse(CamelModel):
    id: int
    roll_no: str
    name: str
    branch_id: int


class SubjectCreate(CamelModel):
    code: str = Field(..., min_length=1, max_length=20)
    name: str = Field(..., min_length=1, max_length=255)
    branch_id: int
    total_marks: int = Field(100, gt=0)


class SubjectResponse(CamelModel):
    id: int
    code: str
    name: str
    branch_id: int
    total_marks: int


# ============================================
# Exams, Marks & Attendance
# ============================================

class ExamCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=255)
    subject_id: int
    total_marks: int = Field(100, gt=0)
    date: Optional[datetime.date] = None


class ExamResponse(CamelModel):
    id: int
    name: str
    subject_id: int
    total_marks: int
    date: Optional[datetime.date] = None


class ExamMarkUpsert(CamelModel):
    exam_id: int
    student_id: int
    marks_obtained: float = Field(..., ge=0)


class ExamMarkResponse(CamelModel):
    id: int
    exam_id: int
    student_id: int
    marks_obtained: float


class AttendanceUpsert(CamelModel):
    student_id: int
    subject_id: int
    date: datetime.date
    status: AttendanceStatus


class AttendanceResponse(CamelModel):
    id: int
    student_id: int
    subject_id: int
    date: datetime.date
    status: AttendanceStatus


# ============================================
# Notices
# ============================================

class NoticeCreate(CamelModel):
    title: str = Field(..., min_length=1, max_length=255)
    message: str = Field(..., min_length=1)
    priority: NoticePriority = NoticePriority.NORMAL
    branch_id: Optional[int] = None


class NoticeResponse(CamelModel):
    id: int
    title: str
    message: str
    priority: NoticePriority
    branch_id: Optional[int] = None
    created_at: Optional[datetime.datetime] = None
