from datetime import date
from typing import Optional

from pydantic import Field, model_validator

from campusdesk.models.library import IssueStatus
from campusdesk.schemas.base import CamelModel


class BookCreate(CamelModel):
    title: str = Field(..., min_length=1, max_length=255)
    author: Optional[str] = None
    total_copies: int = Field(..., ge=0)
    branch_id: int


class BookResponse(CamelModel):
    id: int
    title: str
    author: Optional[str] = None
    copies_available: int
    total_copies: int
    branch_id: int


class IssueBookRequest(CamelModel):
    student_id: int
    book_id: int
    issue_date: date
    due_date: date

    @model_validator(mode="after")
    def validate_dates(self):
        if self.due_date < self.issue_date:
            raise ValueError("Due date cannot be before issue date")
        return self


class ReturnBookRequest(CamelModel):
    return_date: date


class BookIssueResponse(CamelModel):
    id: int
    student_id: int
    book_id: int
    issue_date: date
    due_date: date
    return_date: Optional[date] = None
    status: IssueStatus
