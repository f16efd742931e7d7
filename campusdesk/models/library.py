from sqlalchemy import (
    Column, String, Date, Enum as SQLEnum, Integer, ForeignKey, CheckConstraint
)
import enum

from campusdesk.core.database import Base


class IssueStatus(str, enum.Enum):
    ISSUED = "issued"
    RETURNED = "returned"


class LibraryBook(Base):
    """Branch library title with a copy counter"""
    __tablename__ = "library_books"
    __table_args__ = (
        CheckConstraint(
            "copies_available >= 0 AND copies_available <= total_copies",
            name="ck_library_books_copies_range",
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False)
    author = Column(String(255), nullable=True)
    # Written only by LibraryService
    copies_available = Column(Integer, nullable=False)
    total_copies = Column(Integer, nullable=False)
    branch_id = Column(Integer, ForeignKey("branches.id"), nullable=False, index=True)

    def __repr__(self):
        return f"<LibraryBook {self.title} ({self.copies_available}/{self.total_copies})>"


class BookIssue(Base):
    """A copy lent to a student. issued -> returned is terminal."""
    __tablename__ = "book_issues"

    id = Column(Integer, primary_key=True, autoincrement=True)
    student_id = Column(Integer, ForeignKey("students.id"), nullable=False, index=True)
    book_id = Column(Integer, ForeignKey("library_books.id"), nullable=False, index=True)
    issue_date = Column(Date, nullable=False)
    due_date = Column(Date, nullable=False)
    return_date = Column(Date, nullable=True)
    status = Column(SQLEnum(IssueStatus), default=IssueStatus.ISSUED, nullable=False)

    def __repr__(self):
        return f"<BookIssue {self.id} book={self.book_id} {self.status}>"
