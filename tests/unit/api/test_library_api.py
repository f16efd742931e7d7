"""
Unit Tests for Library API Endpoints
"""
import pytest
from httpx import AsyncClient

from campusdesk.models import Branch, Student


async def add_book(client: AsyncClient, headers: dict, branch_id: int, copies: int = 1) -> dict:
    response = await client.post('/api/v1/library/books', headers=headers, json={
        'title': 'Operating System Concepts',
        'author': 'Silberschatz',
        'totalCopies': copies,
        'branchId': branch_id,
    })
    assert response.status_code == 201
    return response.json()


def issue_body(student_id: int, book_id: int) -> dict:
    return {
        'studentId': student_id,
        'bookId': book_id,
        'issueDate': '2024-03-01',
        'dueDate': '2024-03-15',
    }


class TestBooks:

    @pytest.mark.asyncio
    async def test_add_book(self, client: AsyncClient, admin_auth_headers: dict, branch: Branch):
        book = await add_book(client, admin_auth_headers, branch.id, copies=3)

        assert book['copiesAvailable'] == 3
        assert book['totalCopies'] == 3

    @pytest.mark.asyncio
    async def test_add_book_requires_admin(self, client: AsyncClient, student_auth_headers: dict, branch: Branch):
        response = await client.post('/api/v1/library/books', headers=student_auth_headers, json={
            'title': 'x', 'totalCopies': 1, 'branchId': branch.id,
        })

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_negative_copies_rejected(self, client: AsyncClient, admin_auth_headers: dict, branch: Branch):
        response = await client.post('/api/v1/library/books', headers=admin_auth_headers, json={
            'title': 'x', 'totalCopies': -1, 'branchId': branch.id,
        })

        assert response.status_code == 400
        assert response.json()['success'] is False


class TestIssueAndReturn:

    @pytest.mark.asyncio
    async def test_issue_then_unavailable(self, client: AsyncClient, admin_auth_headers: dict,
                                          branch: Branch, student: Student):
        book = await add_book(client, admin_auth_headers, branch.id, copies=1)

        response = await client.post('/api/v1/library/issues', headers=admin_auth_headers,
                                     json=issue_body(student.id, book['id']))
        assert response.status_code == 201
        assert response.json()['status'] == 'issued'

        response = await client.post('/api/v1/library/issues', headers=admin_auth_headers,
                                     json=issue_body(student.id, book['id']))
        assert response.status_code == 409
        assert response.json()['error']['code'] == 'BOOK_UNAVAILABLE'

    @pytest.mark.asyncio
    async def test_issue_unknown_book(self, client: AsyncClient, admin_auth_headers: dict, student: Student):
        response = await client.post('/api/v1/library/issues', headers=admin_auth_headers,
                                     json=issue_body(student.id, 9999))

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_due_date_before_issue_date(self, client: AsyncClient, admin_auth_headers: dict, student: Student):
        body = issue_body(student.id, 1)
        body['dueDate'] = '2024-02-01'

        response = await client.post('/api/v1/library/issues', headers=admin_auth_headers, json=body)

        assert response.status_code == 400
        assert response.json()['message'] == 'Due date cannot be before issue date'

    @pytest.mark.asyncio
    async def test_return_twice(self, client: AsyncClient, admin_auth_headers: dict,
                                branch: Branch, student: Student):
        book = await add_book(client, admin_auth_headers, branch.id, copies=1)
        issue = (await client.post('/api/v1/library/issues', headers=admin_auth_headers,
                                   json=issue_body(student.id, book['id']))).json()
        url = f"/api/v1/library/issues/{issue['id']}/return"

        response = await client.put(url, headers=admin_auth_headers, json={'returnDate': '2024-03-10'})
        assert response.status_code == 200
        assert response.json()['status'] == 'returned'
        assert response.json()['returnDate'] == '2024-03-10'

        response = await client.put(url, headers=admin_auth_headers, json={'returnDate': '2024-03-11'})
        assert response.status_code == 409
        assert response.json()['error']['code'] == 'ALREADY_RETURNED'

        # Copy is back on the shelf
        response = await client.post('/api/v1/library/issues', headers=admin_auth_headers,
                                     json=issue_body(student.id, book['id']))
        assert response.status_code == 201


class TestListings:

    @pytest.mark.asyncio
    async def test_books_for_branch(self, client: AsyncClient, admin_auth_headers: dict,
                                    student_auth_headers: dict, branch: Branch):
        book = await add_book(client, admin_auth_headers, branch.id, copies=2)

        response = await client.get(f'/api/v1/library/books?branchId={branch.id}', headers=student_auth_headers)

        assert response.status_code == 200
        assert [b['id'] for b in response.json()] == [book['id']]

        response = await client.get('/api/v1/library/books?branchId=9999', headers=student_auth_headers)
        assert response.json() == []

    @pytest.mark.asyncio
    async def test_admin_lists_issues(self, client: AsyncClient, admin_auth_headers: dict,
                                      branch: Branch, student: Student):
        book = await add_book(client, admin_auth_headers, branch.id, copies=2)
        await client.post('/api/v1/library/issues', headers=admin_auth_headers,
                          json=issue_body(student.id, book['id']))

        response = await client.get(f'/api/v1/library/issues?studentId={student.id}', headers=admin_auth_headers)

        assert response.status_code == 200
        assert [i['bookId'] for i in response.json()] == [book['id']]

    @pytest.mark.asyncio
    async def test_students_see_only_their_issues(self, client: AsyncClient, admin_auth_headers: dict,
                                                  student_auth_headers: dict, branch: Branch, student: Student):
        book = await add_book(client, admin_auth_headers, branch.id, copies=2)
        await client.post('/api/v1/library/issues', headers=admin_auth_headers,
                          json=issue_body(student.id, book['id']))

        response = await client.get('/api/v1/library/issues', headers=student_auth_headers)
        assert response.status_code == 403

        response = await client.get('/api/v1/library/issues/mine', headers=student_auth_headers)
        assert response.status_code == 200
        assert [i['studentId'] for i in response.json()] == [student.id]

    @pytest.mark.asyncio
    async def test_admin_has_no_own_issues(self, client: AsyncClient, admin_auth_headers: dict):
        response = await client.get('/api/v1/library/issues/mine', headers=admin_auth_headers)

        assert response.status_code == 403
        assert response.json()['message'] == 'Student access required'
