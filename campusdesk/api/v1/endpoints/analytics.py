from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from campusdesk.core.database import get_db
from campusdesk.modules.auth.dependencies import (
    ensure_self_or_admin,
    get_current_principal,
    require_admin,
)
from campusdesk.schemas.analytics import (
    AttendanceSummary,
    GlobalStats,
    MarkSummary,
    StatsScope,
    SubjectStats,
)
from campusdesk.schemas.auth import CurrentPrincipal
from campusdesk.services.analytics_service import AnalyticsService

router = APIRouter()


def get_scope(
    branch_id: Optional[int] = Query(None, alias="branchId"),
    batch_id: Optional[int] = Query(None, alias="batchId"),
) -> StatsScope:
    return StatsScope(branch_id=branch_id, batch_id=batch_id)


@router.get("/global", response_model=GlobalStats)
async def global_stats(
    scope: StatsScope = Depends(get_scope),
    _: CurrentPrincipal = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Dashboard totals for a branch, a batch, or the whole college"""
    return await AnalyticsService(db).compute_global_stats(scope)


@router.get("/subjects", response_model=List[SubjectStats])
async def subject_stats(
    scope: StatsScope = Depends(get_scope),
    _: CurrentPrincipal = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await AnalyticsService(db).compute_subject_stats(scope)


@router.get("/students/{student_id}/attendance", response_model=List[AttendanceSummary])
async def student_attendance(
    student_id: int,
    principal: CurrentPrincipal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    ensure_self_or_admin(principal, student_id)
    return await AnalyticsService(db).compute_student_attendance(student_id)


@router.get("/students/{student_id}/marks", response_model=List[MarkSummary])
async def student_marks(
    student_id: int,
    principal: CurrentPrincipal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    ensure_self_or_admin(principal, student_id)
    return await AnalyticsService(db).compute_student_marks(student_id)
