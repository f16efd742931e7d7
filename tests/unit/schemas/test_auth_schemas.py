"""
Unit Tests for Auth Schemas
Tests for: login request parsing, camelCase output
"""
import pytest

from campusdesk.core.exceptions import ValidationError
from campusdesk.schemas.auth import LoginResponse, LoginRole, LoginUser, parse_login_request


class TestParseLoginRequest:
    """Test boundary parsing of the login body"""

    def test_valid_student(self):
        request = parse_login_request({"username": "21CS-001", "password": "Test Student", "role": "student"})

        assert request.username == "21CS-001"
        assert request.password == "Test Student"
        assert request.role == LoginRole.STUDENT

    def test_roll_number_with_dots_and_slashes(self):
        request = parse_login_request({"username": "TEST/2021.01", "password": "x", "role": "student"})
        assert request.username == "TEST/2021.01"

    def test_username_is_trimmed(self):
        request = parse_login_request({"username": "  TEST-001 ", "password": "x", "role": "student"})
        assert request.username == "TEST-001"

    def test_admin_names_are_not_pattern_checked(self):
        request = parse_login_request({"username": "head_admin", "password": "x", "role": "admin"})
        assert request.role == LoginRole.ADMIN

    @pytest.mark.parametrize("payload", [
        {"password": "x", "role": "student"},
        {"username": "TEST-001", "role": "student"},
        {"username": "TEST-001", "password": "x"},
        {"username": "", "password": "x", "role": "student"},
        {"username": "TEST-001", "password": 123, "role": "student"},
        None,
        ["TEST-001", "x", "student"],
    ])
    def test_missing_fields(self, payload):
        with pytest.raises(ValidationError) as exc_info:
            parse_login_request(payload)

        assert exc_info.value.status_code == 400
        assert exc_info.value.message == "Username, password, and role are required"

    def test_invalid_role(self):
        with pytest.raises(ValidationError) as exc_info:
            parse_login_request({"username": "TEST-001", "password": "x", "role": "faculty"})

        assert exc_info.value.message == "Invalid role"

    @pytest.mark.parametrize("username", ["invalid_format!", "TEST 001", "21CS#1"])
    def test_invalid_student_id_format(self, username):
        with pytest.raises(ValidationError) as exc_info:
            parse_login_request({"username": username, "password": "any", "role": "student"})

        assert exc_info.value.status_code == 400
        assert "Invalid student ID format" in exc_info.value.message


class TestLoginResponse:

    def test_serialises_camel_case(self):
        response = LoginResponse(
            access_token="token",
            user=LoginUser(id=1, name="Test Student", role=LoginRole.STUDENT, roll_no="TEST-001", branch_id=2),
        )

        data = response.model_dump(by_alias=True)

        assert data["accessToken"] == "token"
        assert data["tokenType"] == "bearer"
        assert data["success"] is True
        assert data["user"]["rollNo"] == "TEST-001"
        assert data["user"]["branchId"] == 2
