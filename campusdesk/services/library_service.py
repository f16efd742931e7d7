"""
Library Service Layer
Book catalogue and the issue/return transactions that move copies_available
"""

from datetime import date
from typing import Dict, List, Optional

from sqlalchemy import case, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from campusdesk.core.exceptions import (
    AlreadyReturnedError,
    BookIssueNotFoundError,
    BookNotFoundError,
    BranchNotFoundError,
    StudentNotFoundError,
    UnavailableError,
)
from campusdesk.core.logging_config import logger
from campusdesk.models.college import Branch
from campusdesk.models.library import BookIssue, IssueStatus, LibraryBook
from campusdesk.models.principal import Student
from campusdesk.schemas.library import BookCreate


class LibraryService:
    """
    Service for library operations.

    copies_available is only ever changed here, inside a transaction that
    holds the book row lock. Each change is also a guarded UPDATE
    (``WHERE copies_available > 0`` on issue, ``WHERE status = 'issued'`` on
    return) and the row count is checked, so the counter stays within
    0..total_copies on engines that ignore FOR UPDATE.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def add_book(self, data: BookCreate) -> LibraryBook:
        """Add a title to a branch library with every copy available"""
        branch = await self.db.get(Branch, data.branch_id)
        if not branch:
            raise BranchNotFoundError(data.branch_id)

        book = LibraryBook(
            title=data.title,
            author=data.author,
            total_copies=data.total_copies,
            copies_available=data.total_copies,
            branch_id=data.branch_id,
        )
        self.db.add(book)
        await self.db.commit()
        await self.db.refresh(book)
        return book

    async def _lock_book(self, book_id: int) -> Optional[LibraryBook]:
        result = await self.db.execute(
            select(LibraryBook)
            .where(LibraryBook.id == book_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    # =====================================================
    # ISSUE
    # =====================================================

    async def issue_book(
        self,
        student_id: int,
        book_id: int,
        issue_date: date,
        due_date: date,
    ) -> BookIssue:
        """Lend one copy of a book to a student"""
        try:
            book = await self._lock_book(book_id)
            if not book:
                raise BookNotFoundError(book_id)

            student = await self.db.scalar(select(Student.id).where(Student.id == student_id))
            if student is None:
                raise StudentNotFoundError(student_id)

            if book.copies_available <= 0:
                raise UnavailableError(book_id)

            result = await self.db.execute(
                update(LibraryBook)
                .where(LibraryBook.id == book_id, LibraryBook.copies_available > 0)
                .values(copies_available=LibraryBook.copies_available - 1)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                # Another transaction took the last copy after our read
                raise UnavailableError(book_id)

            issue = BookIssue(
                student_id=student_id,
                book_id=book_id,
                issue_date=issue_date,
                due_date=due_date,
                status=IssueStatus.ISSUED,
            )
            self.db.add(issue)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        await self.db.refresh(issue)
        logger.info(
            f"[Library] Issued book {book_id} to student {student_id} (issue {issue.id})",
            extra={"event_type": "library_issue", "book_id": book_id,
                   "student_id": student_id, "issue_id": issue.id}
        )
        return issue

    # =====================================================
    # RETURN
    # =====================================================

    async def return_book(self, issue_id: int, return_date: date) -> BookIssue:
        """Close an issue and put the copy back"""
        try:
            book_id = await self.db.scalar(select(BookIssue.book_id).where(BookIssue.id == issue_id))
            if book_id is None:
                raise BookIssueNotFoundError(issue_id)

            # Lock order: book, then issue
            book = await self._lock_book(book_id)
            if not book:
                raise BookNotFoundError(book_id)

            issue = (await self.db.execute(
                select(BookIssue)
                .where(BookIssue.id == issue_id)
                .with_for_update()
                .execution_options(populate_existing=True)
            )).scalar_one_or_none()
            if not issue:
                raise BookIssueNotFoundError(issue_id)
            if issue.status == IssueStatus.RETURNED:
                raise AlreadyReturnedError(issue_id)

            result = await self.db.execute(
                update(BookIssue)
                .where(BookIssue.id == issue_id, BookIssue.status == IssueStatus.ISSUED)
                .values(status=IssueStatus.RETURNED, return_date=return_date)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                raise AlreadyReturnedError(issue_id)

            result = await self.db.execute(
                update(LibraryBook)
                .where(LibraryBook.id == book_id, LibraryBook.copies_available < LibraryBook.total_copies)
                .values(copies_available=LibraryBook.copies_available + 1)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                logger.warning(
                    f"[Library] Book {book_id} already at total_copies on return of issue {issue_id}",
                    extra={"event_type": "library_counter_mismatch", "book_id": book_id, "issue_id": issue_id}
                )

            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        await self.db.refresh(issue)
        logger.info(
            f"[Library] Returned issue {issue_id} (book {book_id})",
            extra={"event_type": "library_return", "book_id": book_id, "issue_id": issue_id}
        )
        return issue

    # =====================================================
    # LISTINGS
    # =====================================================

    async def list_books(self, branch_id: Optional[int] = None) -> List[LibraryBook]:
        """Catalogue by id; a branch sees only its own books"""
        query = select(LibraryBook).order_by(LibraryBook.id)
        if branch_id is not None:
            query = query.where(LibraryBook.branch_id == branch_id)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def list_issues(self, student_id: Optional[int] = None) -> List[BookIssue]:
        """Issues newest first, optionally for one student"""
        query = select(BookIssue).order_by(BookIssue.issue_date.desc(), BookIssue.id.desc())
        if student_id is not None:
            query = query.where(BookIssue.student_id == student_id)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    # =====================================================
    # STUDENT REMOVAL
    # =====================================================

    async def release_student_copies(self, student_id: int) -> Dict[int, int]:
        """
        Put back every copy a student still holds, ahead of deleting the student.

        Runs inside the caller's transaction and does not commit. Books are
        locked in id order. Returns {book_id: copies released}.
        """
        result = await self.db.execute(
            select(BookIssue.book_id, func.count(BookIssue.id))
            .where(BookIssue.student_id == student_id, BookIssue.status == IssueStatus.ISSUED)
            .group_by(BookIssue.book_id)
            .order_by(BookIssue.book_id)
        )
        held = dict(result.all())

        for book_id, count in held.items():
            if not await self._lock_book(book_id):
                continue
            restored = LibraryBook.copies_available + count
            await self.db.execute(
                update(LibraryBook)
                .where(LibraryBook.id == book_id)
                .values(copies_available=case(
                    (restored > LibraryBook.total_copies, LibraryBook.total_copies),
                    else_=restored,
                ))
                .execution_options(synchronize_session=False)
            )

        if held:
            logger.info(
                f"[Library] Released {sum(held.values())} copy(ies) held by student {student_id}",
                extra={"event_type": "library_release", "student_id": student_id}
            )
        return held
