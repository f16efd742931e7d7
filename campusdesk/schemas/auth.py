import enum
import re
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ValidationError as PydanticValidationError, field_validator, model_validator

from campusdesk.core.exceptions import ValidationError
from campusdesk.schemas.base import CamelModel


STUDENT_ID_PATTERN = re.compile(r"^[A-Za-z0-9\-./]+$")

REQUIRED_FIELDS_MESSAGE = "Username, password, and role are required"


class LoginRole(str, enum.Enum):
    ADMIN = "admin"
    STUDENT = "student"


class LoginRequest(BaseModel):
    username: str
    password: str
    role: LoginRole

    @field_validator("role", mode="before")
    @classmethod
    def validate_role(cls, value: Any) -> Any:
        if value not in {r.value for r in LoginRole}:
            raise ValueError("Invalid role")
        return value

    @model_validator(mode="after")
    def validate_student_id(self):
        """Roll numbers are letters, digits and - . / only"""
        if self.role == LoginRole.STUDENT and not STUDENT_ID_PATTERN.match(self.username):
            raise ValueError("Invalid student ID format")
        return self


def parse_login_request(payload: Any) -> LoginRequest:
    """
    Parse a raw login body into a LoginRequest.

    Raises campusdesk ValidationError (400) with the first problem found:
    missing fields, unknown role, or a malformed roll number.
    """
    if not isinstance(payload, dict):
        raise ValidationError(REQUIRED_FIELDS_MESSAGE)

    username = payload.get("username")
    password = payload.get("password")
    role = payload.get("role")

    for name, value in (("username", username), ("password", password), ("role", role)):
        if not isinstance(value, str) or not value:
            raise ValidationError(REQUIRED_FIELDS_MESSAGE, field=name)

    try:
        return LoginRequest(username=username.strip(), password=password, role=role)
    except PydanticValidationError as e:
        error = e.errors()[0]
        field = ".".join(str(part) for part in error.get("loc", ())) or None
        cause = error.get("ctx", {}).get("error")
        message = str(cause) if cause else error.get("msg", "Invalid login request")
        raise ValidationError(message, field=field)


class LoginUser(CamelModel):
    id: int
    name: str
    role: LoginRole
    roll_no: Optional[str] = None
    admin_role: Optional[str] = None
    branch_id: Optional[int] = None


class LoginResponse(CamelModel):
    success: bool = True
    access_token: str
    token_type: str = "bearer"
    user: LoginUser


class CurrentPrincipal(CamelModel):
    """Claims carried by the session token"""
    id: int
    role: LoginRole
    username: str
    admin_role: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == LoginRole.ADMIN

    @property
    def is_super_admin(self) -> bool:
        return self.is_admin and self.admin_role == "super_admin"


class MeResponse(CamelModel):
    user: LoginUser
    last_login: Optional[datetime] = None
