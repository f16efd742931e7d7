"""
Analytics Service Layer
Dashboard statistics over attendance, marks and library rows, scoped by branch or batch
"""

from typing import List, Optional

from sqlalchemy import select, func, case
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import Select

from campusdesk.core.logging_config import logger
from campusdesk.models.attendance import DailyAttendance, AttendanceStatus
from campusdesk.models.college import Branch, Subject
from campusdesk.models.exam import Exam, ExamMark
from campusdesk.models.library import BookIssue, IssueStatus
from campusdesk.models.principal import Student
from campusdesk.schemas.analytics import (
    AttendanceSummary,
    GlobalStats,
    MarkSummary,
    StatsScope,
    SubjectStats,
)
from campusdesk.services.aggregation import (
    AttendanceRecord,
    GradeScale,
    MarkRecord,
    aggregate_attendance,
    aggregate_marks,
    percentage,
)


def _present_count():
    return func.sum(case((DailyAttendance.status == AttendanceStatus.PRESENT, 1), else_=0))


def _mark_percentage():
    """Per-record percentage; a zero-total exam scores 0"""
    return case(
        (Exam.total_marks > 0, ExamMark.marks_obtained * 100.0 / Exam.total_marks),
        else_=0.0,
    )


def scoped_student_ids(scope: Optional[StatsScope] = None) -> Select:
    """Student ids in scope. branch_id wins over batch_id; neither means everyone."""
    stmt = select(Student.id)
    if scope is None:
        return stmt
    if scope.branch_id is not None:
        return stmt.where(Student.branch_id == scope.branch_id)
    if scope.batch_id is not None:
        return (
            stmt.join(Branch, Student.branch_id == Branch.id)
            .where(Branch.batch_id == scope.batch_id)
        )
    return stmt


def scoped_subjects(scope: Optional[StatsScope] = None) -> Select:
    stmt = select(Subject)
    if scope is None:
        return stmt
    if scope.branch_id is not None:
        return stmt.where(Subject.branch_id == scope.branch_id)
    if scope.batch_id is not None:
        return (
            stmt.join(Branch, Subject.branch_id == Branch.id)
            .where(Branch.batch_id == scope.batch_id)
        )
    return stmt


class AnalyticsService:
    """Service for dashboard statistics"""

    def __init__(self, db: AsyncSession, grade_scale: Optional[GradeScale] = None):
        self.db = db
        self.grade_scale = grade_scale or GradeScale.from_settings()

    # =====================================================
    # GLOBAL
    # =====================================================

    async def compute_global_stats(self, scope: Optional[StatsScope] = None) -> GlobalStats:
        """
        Student count, attendance and marks averages, and open book issues in scope.

        Attendance is averaged over rows (present rows / all rows), so a student
        with more recorded days weighs more. Marks are the mean of per-record
        percentages. An empty scope returns zeros without further queries.
        """
        scope = scope or StatsScope()
        student_ids = scoped_student_ids(scope)

        total_students = await self.db.scalar(
            select(func.count()).select_from(scoped_student_ids(scope).subquery())
        ) or 0

        if total_students == 0:
            return GlobalStats()

        attendance = await self.db.execute(
            select(func.count(DailyAttendance.id), _present_count())
            .where(DailyAttendance.student_id.in_(student_ids))
        )
        total_rows, present_rows = attendance.one()

        avg_marks = await self.db.scalar(
            select(func.avg(_mark_percentage()))
            .select_from(ExamMark)
            .join(Exam, ExamMark.exam_id == Exam.id)
            .where(ExamMark.student_id.in_(student_ids))
        )

        total_books_issued = await self.db.scalar(
            select(func.count(BookIssue.id))
            .where(
                BookIssue.status == IssueStatus.ISSUED,
                BookIssue.student_id.in_(student_ids),
            )
        ) or 0

        stats = GlobalStats(
            total_students=total_students,
            avg_attendance=percentage(present_rows or 0, total_rows or 0),
            avg_marks=float(avg_marks or 0),
            total_books_issued=total_books_issued,
        )
        logger.debug(
            f"Global stats computed for scope {scope.model_dump()}",
            extra={"event_type": "analytics", **stats.model_dump()}
        )
        return stats

    # =====================================================
    # PER SUBJECT
    # =====================================================

    async def compute_subject_stats(self, scope: Optional[StatsScope] = None) -> List[SubjectStats]:
        """Attendance and marks averages grouped by subject, ordered by subject code"""
        scope = scope or StatsScope()
        subjects_result = await self.db.execute(scoped_subjects(scope).order_by(Subject.code))
        subjects = subjects_result.scalars().all()
        if not subjects:
            return []

        subject_ids = [subject.id for subject in subjects]
        student_ids = scoped_student_ids(scope)

        attendance_result = await self.db.execute(
            select(DailyAttendance.subject_id, func.count(DailyAttendance.id), _present_count())
            .where(
                DailyAttendance.subject_id.in_(subject_ids),
                DailyAttendance.student_id.in_(student_ids),
            )
            .group_by(DailyAttendance.subject_id)
        )
        attendance_by_subject = {
            subject_id: percentage(present or 0, total or 0)
            for subject_id, total, present in attendance_result.all()
        }

        marks_result = await self.db.execute(
            select(Exam.subject_id, func.avg(_mark_percentage()))
            .select_from(ExamMark)
            .join(Exam, ExamMark.exam_id == Exam.id)
            .where(
                Exam.subject_id.in_(subject_ids),
                ExamMark.student_id.in_(student_ids),
            )
            .group_by(Exam.subject_id)
        )
        marks_by_subject = {
            subject_id: float(avg or 0)
            for subject_id, avg in marks_result.all()
        }

        return [
            SubjectStats(
                subject_id=subject.id,
                subject_code=subject.code,
                subject_name=subject.name,
                avg_attendance=attendance_by_subject.get(subject.id, 0.0),
                avg_marks=marks_by_subject.get(subject.id, 0.0),
            )
            for subject in subjects
        ]

    # =====================================================
    # PER STUDENT
    # =====================================================

    async def compute_student_attendance(self, student_id: int) -> List[AttendanceSummary]:
        """Monthly attendance per subject for one student"""
        result = await self.db.execute(
            select(DailyAttendance)
            .where(DailyAttendance.student_id == student_id)
            .order_by(DailyAttendance.subject_id, DailyAttendance.date)
        )
        records = [
            AttendanceRecord(
                student_id=row.student_id,
                subject_id=row.subject_id,
                date=row.date,
                status=row.status,
            )
            for row in result.scalars().all()
        ]
        return aggregate_attendance(records)

    async def compute_student_marks(self, student_id: int) -> List[MarkSummary]:
        """Percentage and grade for each exam mark of one student"""
        result = await self.db.execute(
            select(ExamMark, Exam)
            .join(Exam, ExamMark.exam_id == Exam.id)
            .where(ExamMark.student_id == student_id)
            .order_by(Exam.subject_id, Exam.id)
        )
        records = [
            MarkRecord(
                student_id=mark.student_id,
                exam_id=exam.id,
                subject_id=exam.subject_id,
                exam_name=exam.name,
                marks_obtained=mark.marks_obtained,
                total_marks=exam.total_marks,
                date=exam.date,
            )
            for mark, exam in result.all()
        ]
        return aggregate_marks(records, self.grade_scale)
