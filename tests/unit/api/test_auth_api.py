"""
Unit Tests for Authentication API Endpoints
"""
import pytest
from datetime import datetime, timedelta
from httpx import AsyncClient
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from campusdesk.core.config import settings
from campusdesk.models import Admin, Branch, Student

LOGIN_URL = '/api/v1/auth/login'


@pytest.fixture
async def legacy_student(db_session: AsyncSession, branch: Branch) -> Student:
    """Seeded student whose password is still stored as plaintext"""
    student = Student(
        roll_no='TEST-001',
        name='Test Student',
        branch_id=branch.id,
        password='Test Student',
        failed_login_attempts=0,
    )
    db_session.add(student)
    await db_session.commit()
    await db_session.refresh(student)
    return student


def student_login(password: str, username: str = 'TEST-001') -> dict:
    return {'username': username, 'password': password, 'role': 'student'}


class TestStudentLogin:
    """Student login, lockout and recovery"""

    @pytest.mark.asyncio
    async def test_legacy_password_login(self, client: AsyncClient, legacy_student: Student):
        response = await client.post(LOGIN_URL, json=student_login('Test Student'))

        assert response.status_code == 200
        data = response.json()
        assert data['success'] is True
        assert data['accessToken']
        assert data['tokenType'] == 'bearer'
        assert data['user']['name'] == 'Test Student'
        assert data['user']['rollNo'] == 'TEST-001'
        assert data['user']['role'] == 'student'

    @pytest.mark.asyncio
    async def test_legacy_password_is_trimmed(self, client: AsyncClient, legacy_student: Student):
        response = await client.post(LOGIN_URL, json=student_login('  Test Student '))
        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_hashed_password_login(self, client: AsyncClient, student: Student):
        response = await client.post(LOGIN_URL, json=student_login(student.name, username=student.roll_no))

        assert response.status_code == 200
        assert response.json()['user']['id'] == student.id

    @pytest.mark.asyncio
    async def test_wrong_password(self, client: AsyncClient, legacy_student: Student):
        response = await client.post(LOGIN_URL, json=student_login('wrong'))

        assert response.status_code == 401
        data = response.json()
        assert data['success'] is False
        assert 'Invalid password' in data['message']
        assert data['error']['details']['attempts_remaining'] == 2

    @pytest.mark.asyncio
    async def test_unknown_roll_number(self, client: AsyncClient, legacy_student: Student):
        response = await client.post(LOGIN_URL, json=student_login('x', username='NOPE-999'))

        assert response.status_code == 401
        assert response.json()['message'] == 'Invalid roll number'

    @pytest.mark.asyncio
    async def test_lockout_and_expiry(self, client: AsyncClient, db_session: AsyncSession,
                                      legacy_student: Student):
        """Third failure locks; correct password is refused until the lockout passes"""
        student_id = legacy_student.id

        for _ in range(2):
            response = await client.post(LOGIN_URL, json=student_login('wrong'))
            assert response.status_code == 401

        response = await client.post(LOGIN_URL, json=student_login('wrong'))
        assert response.status_code == 403
        assert 'Account locked' in response.json()['message']

        response = await client.post(LOGIN_URL, json=student_login('Test Student'))
        assert response.status_code == 403
        assert 'Account locked' in response.json()['message']

        await db_session.execute(
            update(Student)
            .where(Student.id == student_id)
            .values(lockout_until=datetime.utcnow() - timedelta(seconds=1))
        )
        await db_session.commit()

        response = await client.post(LOGIN_URL, json=student_login('Test Student'))
        assert response.status_code == 200
        assert response.json()['user']['name'] == 'Test Student'

    @pytest.mark.asyncio
    async def test_invalid_student_id_format(self, client: AsyncClient):
        response = await client.post(LOGIN_URL, json=student_login('x', username='invalid_format!'))

        assert response.status_code == 400
        assert response.json()['message'] == 'Invalid student ID format'


class TestLoginValidation:

    @pytest.mark.asyncio
    async def test_missing_fields(self, client: AsyncClient):
        response = await client.post(LOGIN_URL, json={'username': 'TEST-001'})

        assert response.status_code == 400
        assert response.json()['message'] == 'Username, password, and role are required'

    @pytest.mark.asyncio
    async def test_non_json_body(self, client: AsyncClient):
        response = await client.post(LOGIN_URL, content=b'not json', headers={'Content-Type': 'application/json'})

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_invalid_role(self, client: AsyncClient):
        response = await client.post(LOGIN_URL, json={'username': 'a', 'password': 'b', 'role': 'faculty'})

        assert response.status_code == 400
        assert response.json()['message'] == 'Invalid role'

    @pytest.mark.asyncio
    async def test_maintenance_mode(self, client: AsyncClient, legacy_student: Student, monkeypatch):
        monkeypatch.setattr(settings, 'MAINTENANCE_MODE', True)

        response = await client.post(LOGIN_URL, json=student_login('Test Student'))

        assert response.status_code == 503
        assert 'maintenance' in response.json()['message'].lower()


class TestAdminLogin:

    @pytest.mark.asyncio
    async def test_admin_login(self, client: AsyncClient, admin_user: Admin):
        response = await client.post(LOGIN_URL, json={
            'username': admin_user.name,
            'password': 'adminpassword123',
            'role': 'admin',
        })

        assert response.status_code == 200
        user = response.json()['user']
        assert user['role'] == 'admin'
        assert user['adminRole'] == 'super_admin'

    @pytest.mark.asyncio
    async def test_admin_wrong_password(self, client: AsyncClient, admin_user: Admin):
        response = await client.post(LOGIN_URL, json={
            'username': admin_user.name,
            'password': 'nope',
            'role': 'admin',
        })

        assert response.status_code == 401
        assert response.json()['message'] == 'Invalid password'

    @pytest.mark.asyncio
    async def test_unknown_admin(self, client: AsyncClient, db_session: AsyncSession):
        response = await client.post(LOGIN_URL, json={
            'username': 'ghost',
            'password': 'nope',
            'role': 'admin',
        })

        assert response.status_code == 401
        assert response.json()['message'] == 'Invalid admin username'


class TestCurrentUser:

    @pytest.mark.asyncio
    async def test_me_as_student(self, client: AsyncClient, student: Student, student_auth_headers: dict):
        response = await client.get('/api/v1/auth/me', headers=student_auth_headers)

        assert response.status_code == 200
        assert response.json()['user']['rollNo'] == student.roll_no

    @pytest.mark.asyncio
    async def test_me_without_token(self, client: AsyncClient):
        response = await client.get('/api/v1/auth/me')

        assert response.status_code == 401
        assert response.json()['message'] == 'Not authenticated'

    @pytest.mark.asyncio
    async def test_me_with_garbage_token(self, client: AsyncClient):
        response = await client.get('/api/v1/auth/me', headers={'Authorization': 'Bearer not-a-jwt'})

        assert response.status_code == 401
