"""
Cascade Deletion Service
========================

Deletes a branch (or every branch of a batch, or a single student) together
with everything that hangs off it, in one transaction.

The order lives in BRANCH_CASCADE_PLAN and STUDENT_CASCADE_PLAN: each step deletes rows of one table
whose key column is in one of the id sets collected up front. Children come
before parents so the plan also holds on engines that enforce foreign keys.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from sqlalchemy import select, delete, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import Delete

from campusdesk.core.logging_config import logger
from campusdesk.models.attendance import DailyAttendance
from campusdesk.models.audit_log import AuditLog
from campusdesk.models.college import Batch, Branch, Subject
from campusdesk.models.exam import Exam, ExamMark
from campusdesk.models.library import BookIssue, LibraryBook
from campusdesk.models.notice import Notice
from campusdesk.models.principal import Student
from campusdesk.services.library_service import LibraryService


IdSets = Dict[str, List[int]]


@dataclass(frozen=True)
class CascadeStep:
    """Delete rows of ``model`` where any (column, id-set key) pair matches"""
    model: type
    matches: Tuple[Tuple[str, str], ...]

    @property
    def table_name(self) -> str:
        return self.model.__tablename__

    def build_delete(self, ids: IdSets) -> Optional[Delete]:
        """DELETE statement for the collected ids, or None when every id set is empty"""
        conditions = [
            getattr(self.model, column).in_(ids[key])
            for column, key in self.matches
            if ids.get(key)
        ]
        if not conditions:
            return None
        return delete(self.model).where(or_(*conditions))


BRANCH_CASCADE_PLAN: Tuple[CascadeStep, ...] = (
    CascadeStep(BookIssue, (("student_id", "student_ids"), ("book_id", "book_ids"))),
    CascadeStep(DailyAttendance, (("student_id", "student_ids"), ("subject_id", "subject_ids"))),
    CascadeStep(ExamMark, (("student_id", "student_ids"), ("exam_id", "exam_ids"))),
    CascadeStep(Notice, (("branch_id", "branch_ids"),)),
    CascadeStep(Student, (("branch_id", "branch_ids"),)),
    CascadeStep(Exam, (("subject_id", "subject_ids"),)),
    CascadeStep(Subject, (("branch_id", "branch_ids"),)),
    CascadeStep(LibraryBook, (("branch_id", "branch_ids"),)),
)

# Rows owned by a single student, children first
STUDENT_CASCADE_PLAN: Tuple[CascadeStep, ...] = (
    CascadeStep(BookIssue, (("student_id", "student_ids"),)),
    CascadeStep(DailyAttendance, (("student_id", "student_ids"),)),
    CascadeStep(ExamMark, (("student_id", "student_ids"),)),
    CascadeStep(Student, (("id", "student_ids"),)),
)


class CascadeService:
    """Service for branch and batch deletion"""

    def __init__(self, db: AsyncSession, plan: Sequence[CascadeStep] = BRANCH_CASCADE_PLAN):
        self.db = db
        self.plan = plan

    async def delete_branch(self, branch_id: int, admin_id: Optional[int] = None) -> bool:
        """Delete a branch and all of its data. False if the branch does not exist."""
        try:
            exists = await self.db.scalar(select(Branch.id).where(Branch.id == branch_id))
            if exists is None:
                return False

            deleted = await self._delete_branch_data(branch_id)
            await self.db.execute(delete(Branch).where(Branch.id == branch_id))

            self.db.add(AuditLog(
                admin_id=admin_id,
                action="DELETE_BRANCH",
                target_type="branch",
                target_id=branch_id,
                details=deleted,
            ))
            await self.db.commit()
        except Exception as e:
            await self.db.rollback()
            logger.log_error_with_context(e, context="delete_branch", branch_id=branch_id)
            raise

        logger.info(
            f"[Cascade] Deleted branch {branch_id}",
            extra={"event_type": "cascade_delete", "branch_id": branch_id, "deleted": deleted}
        )
        return True

    async def delete_batch(self, batch_id: int, admin_id: Optional[int] = None) -> bool:
        """Delete a batch, each of its branches and all of their data. False if the batch does not exist."""
        try:
            exists = await self.db.scalar(select(Batch.id).where(Batch.id == batch_id))
            if exists is None:
                return False

            result = await self.db.execute(select(Branch.id).where(Branch.batch_id == batch_id))
            branch_ids = list(result.scalars().all())

            deleted: Dict[str, int] = {}
            for branch_id in branch_ids:
                for table, count in (await self._delete_branch_data(branch_id)).items():
                    deleted[table] = deleted.get(table, 0) + count

            await self.db.execute(delete(Branch).where(Branch.batch_id == batch_id))
            await self.db.execute(delete(Batch).where(Batch.id == batch_id))

            self.db.add(AuditLog(
                admin_id=admin_id,
                action="DELETE_BATCH",
                target_type="batch",
                target_id=batch_id,
                details={"branches": branch_ids, **deleted},
            ))
            await self.db.commit()
        except Exception as e:
            await self.db.rollback()
            logger.log_error_with_context(e, context="delete_batch", batch_id=batch_id)
            raise

        logger.info(
            f"[Cascade] Deleted batch {batch_id} with {len(branch_ids)} branch(es)",
            extra={"event_type": "cascade_delete", "batch_id": batch_id, "deleted": deleted}
        )
        return True

    async def delete_student(self, student_id: int, admin_id: Optional[int] = None) -> bool:
        """
        Delete one student with their attendance, marks and book issues.

        Copies the student still holds go back on the shelf first. False if
        the student does not exist.
        """
        try:
            student = (await self.db.execute(
                select(Student.roll_no, Student.name).where(Student.id == student_id)
            )).one_or_none()
            if student is None:
                return False

            released = await LibraryService(self.db).release_student_copies(student_id)
            deleted = await self._run_plan(STUDENT_CASCADE_PLAN, {"student_ids": [student_id]})

            self.db.add(AuditLog(
                admin_id=admin_id,
                action="DELETE_STUDENT",
                target_type="student",
                target_id=student_id,
                details={
                    "roll_no": student.roll_no,
                    "name": student.name,
                    "copies_released": sum(released.values()),
                    **deleted,
                },
            ))
            await self.db.commit()
        except Exception as e:
            await self.db.rollback()
            logger.log_error_with_context(e, context="delete_student", student_id=student_id)
            raise

        logger.info(
            f"[Cascade] Deleted student {student_id}",
            extra={"event_type": "cascade_delete", "student_id": student_id, "deleted": deleted}
        )
        return True

    async def collect_ids(self, branch_id: int) -> IdSets:
        """Ids of the rows a branch owns, keyed the way the plan refers to them"""
        student_ids = (await self.db.execute(
            select(Student.id).where(Student.branch_id == branch_id)
        )).scalars().all()
        subject_ids = (await self.db.execute(
            select(Subject.id).where(Subject.branch_id == branch_id)
        )).scalars().all()
        book_ids = (await self.db.execute(
            select(LibraryBook.id).where(LibraryBook.branch_id == branch_id)
        )).scalars().all()
        exam_ids: Sequence[int] = []
        if subject_ids:
            exam_ids = (await self.db.execute(
                select(Exam.id).where(Exam.subject_id.in_(subject_ids))
            )).scalars().all()

        return {
            "branch_ids": [branch_id],
            "student_ids": list(student_ids),
            "subject_ids": list(subject_ids),
            "book_ids": list(book_ids),
            "exam_ids": list(exam_ids),
        }

    async def _delete_branch_data(self, branch_id: int) -> Dict[str, int]:
        ids = await self.collect_ids(branch_id)
        logger.debug(
            f"[Cascade] Branch {branch_id}: {len(ids['student_ids'])} students, "
            f"{len(ids['subject_ids'])} subjects, {len(ids['book_ids'])} books"
        )

        return await self._run_plan(self.plan, ids)

    async def _run_plan(self, plan: Sequence[CascadeStep], ids: IdSets) -> Dict[str, int]:
        deleted: Dict[str, int] = {}
        for step in plan:
            stmt = step.build_delete(ids)
            if stmt is None:
                continue
            result = await self.db.execute(stmt.execution_options(synchronize_session=False))
            deleted[step.table_name] = deleted.get(step.table_name, 0) + (result.rowcount or 0)
        return deleted
