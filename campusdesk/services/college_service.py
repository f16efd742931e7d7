"""
College Records Service
Creates batches, branches, students, subjects, exams and notices, and
records attendance and exam marks
"""

from typing import List, Optional

from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession

from campusdesk.core.exceptions import (
    BatchNotFoundError,
    BranchNotFoundError,
    ConflictError,
    ExamNotFoundError,
    StudentNotFoundError,
    SubjectNotFoundError,
    ValidationError,
)
from campusdesk.core.logging_config import logger
from campusdesk.core.security import get_password_hash
from campusdesk.models.attendance import DailyAttendance
from campusdesk.models.college import Batch, Branch, Subject
from campusdesk.models.exam import Exam, ExamMark
from campusdesk.models.notice import Notice
from campusdesk.models.principal import Student
from campusdesk.schemas.college import (
    AttendanceUpsert,
    BatchCreate,
    BranchCreate,
    ExamCreate,
    ExamMarkUpsert,
    NoticeCreate,
    StudentCreate,
    SubjectCreate,
)


class CollegeService:
    """Service for college record keeping"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _save(self, instance):
        self.db.add(instance)
        await self.db.commit()
        await self.db.refresh(instance)
        return instance

    async def _require(self, model, record_id: int, error_cls):
        instance = await self.db.get(model, record_id)
        if not instance:
            raise error_cls(record_id)
        return instance

    # =====================================================
    # STRUCTURE
    # =====================================================

    async def create_batch(self, data: BatchCreate) -> Batch:
        existing = await self.db.scalar(select(Batch.id).where(Batch.name == data.name))
        if existing is not None:
            raise ConflictError(f"Batch '{data.name}' already exists", field="name")

        batch = await self._save(Batch(
            name=data.name,
            start_year=data.start_year,
            end_year=data.end_year,
        ))
        logger.info(f"Created batch {batch.name}", extra={"event_type": "batch_created", "batch_id": batch.id})
        return batch

    async def create_branch(self, data: BranchCreate) -> Branch:
        await self._require(Batch, data.batch_id, BatchNotFoundError)

        existing = await self.db.scalar(
            select(Branch.id).where(Branch.batch_id == data.batch_id, Branch.name == data.name)
        )
        if existing is not None:
            raise ConflictError(f"Branch '{data.name}' already exists in this batch", field="name")

        return await self._save(Branch(name=data.name, batch_id=data.batch_id))

    async def create_student(self, data: StudentCreate) -> Student:
        """New students log in with their name unless a password is given"""
        await self._require(Branch, data.branch_id, BranchNotFoundError)

        existing = await self.db.scalar(select(Student.id).where(Student.roll_no == data.roll_no))
        if existing is not None:
            raise ConflictError(f"Roll number '{data.roll_no}' already exists", field="rollNo")

        student = await self._save(Student(
            roll_no=data.roll_no,
            name=data.name,
            branch_id=data.branch_id,
            password_hash=get_password_hash(data.password or data.name),
            security_question=data.security_question,
            security_answer=data.security_answer,
        ))
        logger.info(
            f"Created student {student.roll_no}",
            extra={"event_type": "student_created", "student_id": student.id, "branch_id": student.branch_id}
        )
        return student

    async def create_subject(self, data: SubjectCreate) -> Subject:
        await self._require(Branch, data.branch_id, BranchNotFoundError)

        existing = await self.db.scalar(select(Subject.id).where(Subject.code == data.code))
        if existing is not None:
            raise ConflictError(f"Subject code '{data.code}' already exists", field="code")

        return await self._save(Subject(
            code=data.code,
            name=data.name,
            branch_id=data.branch_id,
            total_marks=data.total_marks,
        ))

    async def create_exam(self, data: ExamCreate) -> Exam:
        await self._require(Subject, data.subject_id, SubjectNotFoundError)
        return await self._save(Exam(
            name=data.name,
            subject_id=data.subject_id,
            total_marks=data.total_marks,
            date=data.date,
        ))

    async def create_notice(self, data: NoticeCreate) -> Notice:
        if data.branch_id is not None:
            await self._require(Branch, data.branch_id, BranchNotFoundError)
        return await self._save(Notice(
            title=data.title,
            message=data.message,
            priority=data.priority,
            branch_id=data.branch_id,
        ))

    # =====================================================
    # RECORDS
    # =====================================================

    async def record_attendance(self, data: AttendanceUpsert) -> DailyAttendance:
        """Set the mark for (student, subject, date), replacing any earlier one"""
        await self._require(Student, data.student_id, StudentNotFoundError)
        await self._require(Subject, data.subject_id, SubjectNotFoundError)

        try:
            await self.db.execute(
                delete(DailyAttendance).where(
                    DailyAttendance.student_id == data.student_id,
                    DailyAttendance.subject_id == data.subject_id,
                    DailyAttendance.date == data.date,
                )
            )
            record = DailyAttendance(
                student_id=data.student_id,
                subject_id=data.subject_id,
                date=data.date,
                status=data.status,
            )
            return await self._save(record)
        except Exception:
            await self.db.rollback()
            raise

    async def record_exam_mark(self, data: ExamMarkUpsert) -> ExamMark:
        """Set a student's marks for an exam, updating the existing row if there is one"""
        exam = await self._require(Exam, data.exam_id, ExamNotFoundError)
        await self._require(Student, data.student_id, StudentNotFoundError)

        if data.marks_obtained > exam.total_marks:
            raise ValidationError(
                f"Marks obtained cannot exceed the exam total of {exam.total_marks}",
                field="marksObtained",
            )

        mark = await self.db.scalar(
            select(ExamMark).where(
                ExamMark.exam_id == data.exam_id,
                ExamMark.student_id == data.student_id,
            )
        )
        if mark:
            mark.marks_obtained = data.marks_obtained
        else:
            mark = ExamMark(
                exam_id=data.exam_id,
                student_id=data.student_id,
                marks_obtained=data.marks_obtained,
            )
        return await self._save(mark)

    # =====================================================
    # LISTINGS
    # =====================================================

    async def list_students(self, branch_id: Optional[int] = None) -> List[Student]:
        """Students ordered by roll number, optionally for one branch"""
        query = select(Student).order_by(Student.roll_no)
        if branch_id is not None:
            query = query.where(Student.branch_id == branch_id)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def list_notices(self, branch_id: Optional[int] = None) -> List[Notice]:
        """
        Notices newest first.

        With a branch_id only that branch's notices come back; global notices
        (branch_id NULL) are listed only when no branch is given.
        """
        query = select(Notice).order_by(Notice.created_at.desc(), Notice.id.desc())
        if branch_id is not None:
            query = query.where(Notice.branch_id == branch_id)
        result = await self.db.execute(query)
        return list(result.scalars().all())
