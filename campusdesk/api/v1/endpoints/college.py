from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from campusdesk.core.database import get_db
from campusdesk.core.exceptions import BatchNotFoundError, BranchNotFoundError, StudentNotFoundError
from campusdesk.modules.auth.dependencies import get_current_principal, require_admin, require_super_admin
from campusdesk.schemas.auth import CurrentPrincipal
from campusdesk.schemas.college import (
    AttendanceResponse,
    AttendanceUpsert,
    BatchCreate,
    BatchResponse,
    BranchCreate,
    BranchResponse,
    ExamCreate,
    ExamMarkResponse,
    ExamMarkUpsert,
    ExamResponse,
    NoticeCreate,
    NoticeResponse,
    StudentCreate,
    StudentResponse,
    SubjectCreate,
    SubjectResponse,
)
from campusdesk.services.cascade_service import CascadeService
from campusdesk.services.college_service import CollegeService

router = APIRouter()


# ==================== Batches & Branches ====================

@router.post("/batches", response_model=BatchResponse, status_code=status.HTTP_201_CREATED)
async def create_batch(
    data: BatchCreate,
    _: CurrentPrincipal = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await CollegeService(db).create_batch(data)


@router.delete("/batches/{batch_id}")
async def delete_batch(
    batch_id: int,
    principal: CurrentPrincipal = Depends(require_super_admin),
    db: AsyncSession = Depends(get_db),
):
    """Delete a batch with all of its branches and their data"""
    if not await CascadeService(db).delete_batch(batch_id, admin_id=principal.id):
        raise BatchNotFoundError(batch_id)
    return {"success": True, "message": "Batch deleted successfully"}


@router.post("/branches", response_model=BranchResponse, status_code=status.HTTP_201_CREATED)
async def create_branch(
    data: BranchCreate,
    _: CurrentPrincipal = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await CollegeService(db).create_branch(data)


@router.delete("/branches/{branch_id}")
async def delete_branch(
    branch_id: int,
    principal: CurrentPrincipal = Depends(require_super_admin),
    db: AsyncSession = Depends(get_db),
):
    """Delete a branch with its students, subjects, books and records"""
    if not await CascadeService(db).delete_branch(branch_id, admin_id=principal.id):
        raise BranchNotFoundError(branch_id)
    return {"success": True, "message": "Branch deleted successfully"}


# ==================== Students & Subjects ====================

@router.get("/students", response_model=List[StudentResponse])
async def list_students(
    branch_id: Optional[int] = Query(None, alias="branchId"),
    _: CurrentPrincipal = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await CollegeService(db).list_students(branch_id)


@router.post("/students", response_model=StudentResponse, status_code=status.HTTP_201_CREATED)
async def create_student(
    data: StudentCreate,
    _: CurrentPrincipal = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await CollegeService(db).create_student(data)


@router.delete("/students/{student_id}")
async def delete_student(
    student_id: int,
    principal: CurrentPrincipal = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Delete a student with their attendance, marks and book issues"""
    if not await CascadeService(db).delete_student(student_id, admin_id=principal.id):
        raise StudentNotFoundError(student_id)
    return {"success": True, "message": "Student deleted successfully"}


@router.post("/subjects", response_model=SubjectResponse, status_code=status.HTTP_201_CREATED)
async def create_subject(
    data: SubjectCreate,
    _: CurrentPrincipal = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await CollegeService(db).create_subject(data)


@router.post("/exams", response_model=ExamResponse, status_code=status.HTTP_201_CREATED)
async def create_exam(
    data: ExamCreate,
    _: CurrentPrincipal = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await CollegeService(db).create_exam(data)


# ==================== Records ====================

@router.put("/attendance", response_model=AttendanceResponse)
async def record_attendance(
    data: AttendanceUpsert,
    _: CurrentPrincipal = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Set attendance for a student, subject and date"""
    return await CollegeService(db).record_attendance(data)


@router.put("/exam-marks", response_model=ExamMarkResponse)
async def record_exam_mark(
    data: ExamMarkUpsert,
    _: CurrentPrincipal = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Set a student's marks for an exam"""
    return await CollegeService(db).record_exam_mark(data)


@router.post("/notices", response_model=NoticeResponse, status_code=status.HTTP_201_CREATED)
async def create_notice(
    data: NoticeCreate,
    _: CurrentPrincipal = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await CollegeService(db).create_notice(data)


@router.get("/notices", response_model=List[NoticeResponse])
async def list_notices(
    branch_id: Optional[int] = Query(None, alias="branchId"),
    _: CurrentPrincipal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    """Newest first; a branchId filter leaves out global notices"""
    return await CollegeService(db).list_notices(branch_id)
