# Re-export all models for convenient imports
from campusdesk.models.principal import Admin, AdminRole, AdminStatus, Student
from campusdesk.models.college import Batch, Branch, Subject
from campusdesk.models.attendance import DailyAttendance, AttendanceStatus
from campusdesk.models.exam import Exam, ExamMark
from campusdesk.models.library import LibraryBook, BookIssue, IssueStatus
from campusdesk.models.notice import Notice, NoticePriority
from campusdesk.models.audit_log import AuditLog

__all__ = [
    # Principals
    "Admin",
    "AdminRole",
    "AdminStatus",
    "Student",
    # College structure
    "Batch",
    "Branch",
    "Subject",
    # Records
    "DailyAttendance",
    "AttendanceStatus",
    "Exam",
    "ExamMark",
    # Library
    "LibraryBook",
    "BookIssue",
    "IssueStatus",
    # Notices
    "Notice",
    "NoticePriority",
    # Admin
    "AuditLog",
]
