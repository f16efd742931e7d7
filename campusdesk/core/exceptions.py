"""
Custom Exceptions for CampusDesk
================================

Services raise these instead of HTTPException so they stay usable outside
a request. The API layer turns them into responses using ``status_code``.

Usage:
    from campusdesk.core.exceptions import BookNotFoundError, UnavailableError

    if not book:
        raise BookNotFoundError(book_id)

    try:
        await library.issue_book(...)
    except UnavailableError as e:
        logger.info(f"Issue refused: {e}")
        raise
"""

from typing import Optional, Any, Dict


class CampusDeskError(Exception):
    """Base exception for all CampusDesk errors"""

    status_code: int = 500

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details
        }


# ============================================
# Validation Errors (400-type)
# ============================================

class ValidationError(CampusDeskError):
    """Input validation failed"""

    status_code = 400

    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else {}
        super().__init__(message, code="VALIDATION_ERROR", details=details)


# ============================================
# Authentication & Authorization Errors
# ============================================

class AuthenticationError(CampusDeskError):
    """Principal authentication failed"""

    status_code = 401

    def __init__(self, message: str = "Authentication failed"):
        super().__init__(message, code="AUTH_FAILED")


class InvalidTokenError(AuthenticationError):
    """JWT token is invalid or expired"""

    def __init__(self):
        super().__init__("Could not validate credentials")
        self.code = "INVALID_TOKEN"


class UnknownPrincipalError(AuthenticationError):
    """Login identifier did not match any account"""

    def __init__(self, message: str):
        super().__init__(message)
        self.code = "UNKNOWN_PRINCIPAL"


class InvalidCredentialError(AuthenticationError):
    """Password did not match"""

    def __init__(self, attempts_remaining: Optional[int] = None):
        message = "Invalid password"
        if attempts_remaining is not None:
            message = f"Invalid password. {attempts_remaining} attempt(s) remaining."
        super().__init__(message)
        self.code = "INVALID_CREDENTIAL"
        if attempts_remaining is not None:
            self.details["attempts_remaining"] = attempts_remaining


class AuthorizationError(CampusDeskError):
    """Principal not authorized for this action"""

    status_code = 403

    def __init__(self, message: str = "Not authorized"):
        super().__init__(message, code="NOT_AUTHORIZED")


class AccountLockedError(CampusDeskError):
    """Too many failed attempts; login refused until the lockout passes"""

    status_code = 403

    def __init__(self, minutes_remaining: int):
        super().__init__(
            f"Account locked due to too many failed attempts. "
            f"Try again in {minutes_remaining} minute(s).",
            code="ACCOUNT_LOCKED",
            details={"minutes_remaining": minutes_remaining}
        )


class AccountInactiveError(CampusDeskError):
    """Admin account is not active"""

    status_code = 403

    def __init__(self):
        super().__init__("Account is inactive", code="ACCOUNT_INACTIVE")


class MaintenanceModeError(CampusDeskError):
    """System is under maintenance"""

    status_code = 503

    def __init__(self):
        super().__init__(
            "System is under maintenance. Please try again later.",
            code="MAINTENANCE_MODE"
        )


# ============================================
# Resource Errors (404-type)
# ============================================

class ResourceNotFoundError(CampusDeskError):
    """Base class for not found errors"""

    status_code = 404

    def __init__(self, resource_type: str, resource_id: Any):
        super().__init__(
            f"{resource_type} with ID '{resource_id}' not found",
            code=f"{resource_type.upper().replace(' ', '_')}_NOT_FOUND",
            details={"resource_type": resource_type, "resource_id": resource_id}
        )


class StudentNotFoundError(ResourceNotFoundError):
    def __init__(self, student_id: Any):
        super().__init__("Student", student_id)


class BatchNotFoundError(ResourceNotFoundError):
    def __init__(self, batch_id: Any):
        super().__init__("Batch", batch_id)


class BranchNotFoundError(ResourceNotFoundError):
    def __init__(self, branch_id: Any):
        super().__init__("Branch", branch_id)


class SubjectNotFoundError(ResourceNotFoundError):
    def __init__(self, subject_id: Any):
        super().__init__("Subject", subject_id)


class ExamNotFoundError(ResourceNotFoundError):
    def __init__(self, exam_id: Any):
        super().__init__("Exam", exam_id)


class BookNotFoundError(ResourceNotFoundError):
    def __init__(self, book_id: Any):
        super().__init__("Book", book_id)


class BookIssueNotFoundError(ResourceNotFoundError):
    def __init__(self, issue_id: Any):
        super().__init__("Book issue", issue_id)


# ============================================
# State Errors (409-type)
# ============================================

class ConflictError(CampusDeskError):
    """Unique key already taken"""

    status_code = 409

    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else {}
        super().__init__(message, code="CONFLICT", details=details)


class UnavailableError(CampusDeskError):
    """No copies of the book left to issue"""

    status_code = 409

    def __init__(self, book_id: Any):
        super().__init__(
            "Book is not available",
            code="BOOK_UNAVAILABLE",
            details={"book_id": book_id}
        )


class AlreadyReturnedError(CampusDeskError):
    """Book issue was already closed"""

    status_code = 409

    def __init__(self, issue_id: Any):
        super().__init__(
            "Book has already been returned",
            code="ALREADY_RETURNED",
            details={"issue_id": issue_id}
        )


# ============================================
# Helper function for API responses
# ============================================

def error_response(error: CampusDeskError) -> Dict[str, Any]:
    """Convert exception to API error response format"""
    return {
        "success": False,
        "message": error.message,
        "error": error.to_dict()
    }
