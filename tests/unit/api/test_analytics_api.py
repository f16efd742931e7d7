"""
Unit Tests for Analytics API Endpoints
"""
import pytest
from datetime import date
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from campusdesk.core.security import create_access_token
from campusdesk.models import (
    AttendanceStatus,
    Branch,
    DailyAttendance,
    Exam,
    ExamMark,
    Student,
    Subject,
)


@pytest.fixture
async def records(db_session: AsyncSession, branch: Branch, student: Student) -> Subject:
    subject = Subject(code='CS201', name='Databases', branch_id=branch.id, total_marks=100)
    db_session.add(subject)
    await db_session.flush()

    exam = Exam(name='Mid Term', subject_id=subject.id, total_marks=50)
    db_session.add(exam)
    await db_session.flush()

    db_session.add_all([
        DailyAttendance(student_id=student.id, subject_id=subject.id,
                        date=date(2024, 3, day), status=status)
        for day, status in ((1, AttendanceStatus.PRESENT), (2, AttendanceStatus.PRESENT),
                            (3, AttendanceStatus.PRESENT), (4, AttendanceStatus.ABSENT))
    ])
    db_session.add(ExamMark(exam_id=exam.id, student_id=student.id, marks_obtained=43))
    await db_session.commit()
    return subject


class TestDashboard:

    @pytest.mark.asyncio
    async def test_global_stats_for_branch(self, client: AsyncClient, admin_auth_headers: dict,
                                           branch: Branch, records: Subject):
        response = await client.get(f'/api/v1/analytics/global?branchId={branch.id}', headers=admin_auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert data['totalStudents'] == 1
        assert data['avgAttendance'] == 75.0
        assert data['avgMarks'] == 86.0
        assert data['totalBooksIssued'] == 0

    @pytest.mark.asyncio
    async def test_empty_scope_is_zero(self, client: AsyncClient, admin_auth_headers: dict, records: Subject):
        response = await client.get('/api/v1/analytics/global?branchId=9999', headers=admin_auth_headers)

        assert response.status_code == 200
        assert response.json() == {
            'totalStudents': 0, 'avgAttendance': 0.0, 'avgMarks': 0.0, 'totalBooksIssued': 0,
        }

    @pytest.mark.asyncio
    async def test_students_cannot_see_dashboard(self, client: AsyncClient, student_auth_headers: dict):
        response = await client.get('/api/v1/analytics/global', headers=student_auth_headers)

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_subject_stats(self, client: AsyncClient, admin_auth_headers: dict, records: Subject):
        response = await client.get('/api/v1/analytics/subjects', headers=admin_auth_headers)

        assert response.status_code == 200
        [stats] = response.json()
        assert stats['subjectCode'] == 'CS201'
        assert stats['avgAttendance'] == 75.0


class TestStudentRecords:

    @pytest.mark.asyncio
    async def test_own_attendance(self, client: AsyncClient, student: Student,
                                  student_auth_headers: dict, records: Subject):
        response = await client.get(f'/api/v1/analytics/students/{student.id}/attendance',
                                    headers=student_auth_headers)

        assert response.status_code == 200
        [summary] = response.json()
        assert summary['month'] == '2024-03'
        assert summary['totalDays'] == 4
        assert summary['presentDays'] == 3
        assert summary['percentage'] == 75.0
        assert summary['status'] == 'Average'

    @pytest.mark.asyncio
    async def test_own_marks(self, client: AsyncClient, student: Student,
                             student_auth_headers: dict, records: Subject):
        response = await client.get(f'/api/v1/analytics/students/{student.id}/marks',
                                    headers=student_auth_headers)

        assert response.status_code == 200
        [mark] = response.json()
        assert mark['percentage'] == 86.0
        assert mark['grade'] == 'A'

    @pytest.mark.asyncio
    async def test_other_students_records_forbidden(self, client: AsyncClient, student: Student):
        token = create_access_token({'sub': str(student.id + 1), 'role': 'student', 'username': 'OTHER-1'})

        response = await client.get(f'/api/v1/analytics/students/{student.id}/marks',
                                    headers={'Authorization': f'Bearer {token}'})

        assert response.status_code == 403
