from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from campusdesk.core.database import get_db
from campusdesk.modules.auth.dependencies import get_current_principal, require_admin, require_student
from campusdesk.schemas.auth import CurrentPrincipal
from campusdesk.schemas.library import (
    BookCreate,
    BookIssueResponse,
    BookResponse,
    IssueBookRequest,
    ReturnBookRequest,
)
from campusdesk.services.library_service import LibraryService

router = APIRouter()


@router.get("/books", response_model=List[BookResponse])
async def list_books(
    branch_id: Optional[int] = Query(None, alias="branchId"),
    _: CurrentPrincipal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    return await LibraryService(db).list_books(branch_id)


@router.post("/books", response_model=BookResponse, status_code=status.HTTP_201_CREATED)
async def add_book(
    data: BookCreate,
    _: CurrentPrincipal = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await LibraryService(db).add_book(data)


@router.get("/issues", response_model=List[BookIssueResponse])
async def list_issues(
    student_id: Optional[int] = Query(None, alias="studentId"),
    _: CurrentPrincipal = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """All issues newest first, or one student's"""
    return await LibraryService(db).list_issues(student_id)


@router.get("/issues/mine", response_model=List[BookIssueResponse])
async def my_issues(
    principal: CurrentPrincipal = Depends(require_student),
    db: AsyncSession = Depends(get_db),
):
    """The signed-in student's own issues"""
    return await LibraryService(db).list_issues(principal.id)


@router.post("/issues", response_model=BookIssueResponse, status_code=status.HTTP_201_CREATED)
async def issue_book(
    data: IssueBookRequest,
    _: CurrentPrincipal = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Issue one copy; 409 when none are left"""
    return await LibraryService(db).issue_book(
        student_id=data.student_id,
        book_id=data.book_id,
        issue_date=data.issue_date,
        due_date=data.due_date,
    )


@router.put("/issues/{issue_id}/return", response_model=BookIssueResponse)
async def return_book(
    issue_id: int,
    data: ReturnBookRequest,
    _: CurrentPrincipal = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Return an issued copy; 409 if it was already returned"""
    return await LibraryService(db).return_book(issue_id, data.return_date)
