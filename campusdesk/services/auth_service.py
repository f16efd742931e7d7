"""
Login Service
Admin and student login, student lockout tracking, session token issue
"""

import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from campusdesk.core.config import settings
from campusdesk.core.exceptions import (
    AccountInactiveError,
    AccountLockedError,
    InvalidCredentialError,
    MaintenanceModeError,
    ResourceNotFoundError,
    UnknownPrincipalError,
)
from campusdesk.core.logging_config import logger, set_user_id
from campusdesk.core.security import create_access_token, verify_legacy_password, verify_password
from campusdesk.models.audit_log import AuditLog
from campusdesk.models.principal import Admin, AdminStatus, Student
from campusdesk.schemas.auth import CurrentPrincipal, LoginRequest, LoginRole, LoginUser


class LockoutPolicy:
    """
    Failed-attempt counting and timed lockout for student accounts.

    Unlocked while lockout_until is NULL or in the past. The attempt that
    brings the counter to max_attempts sets lockout_until = now + lockout.
    Expiry is only noticed at the next attempt, which starts a fresh window.
    """

    def __init__(self, max_attempts: int, lockout_minutes: int):
        self.max_attempts = max_attempts
        self.lockout = timedelta(minutes=lockout_minutes)

    @classmethod
    def from_settings(cls) -> "LockoutPolicy":
        return cls(settings.LOGIN_MAX_ATTEMPTS, settings.LOGIN_LOCKOUT_MINUTES)

    def is_locked(self, student: Student, now: datetime) -> bool:
        return student.lockout_until is not None and student.lockout_until > now

    def minutes_remaining(self, student: Student, now: datetime) -> int:
        """Whole minutes left on the lockout, rounded up"""
        if not self.is_locked(student, now):
            return 0
        return math.ceil((student.lockout_until - now).total_seconds() / 60)

    def clear_expired(self, student: Student, now: datetime) -> bool:
        """Reset the counter once a past lockout is observed. Returns True if it did."""
        if student.lockout_until is not None and student.lockout_until <= now:
            student.failed_login_attempts = 0
            student.lockout_until = None
            return True
        return False

    def record_failure(self, student: Student, now: datetime) -> bool:
        """Count a failed attempt. Returns True when this attempt locks the account."""
        student.failed_login_attempts = (student.failed_login_attempts or 0) + 1
        if student.failed_login_attempts >= self.max_attempts:
            student.lockout_until = now + self.lockout
            return True
        return False

    def record_success(self, student: Student) -> None:
        student.failed_login_attempts = 0
        student.lockout_until = None

    def attempts_remaining(self, student: Student) -> int:
        return max(self.max_attempts - (student.failed_login_attempts or 0), 0)


@dataclass
class LoginResult:
    user: LoginUser
    access_token: str


class AuthService:
    """Service for login and session lookups"""

    def __init__(
        self,
        db: AsyncSession,
        maintenance_mode: bool = False,
        lockout: Optional[LockoutPolicy] = None,
        now: Callable[[], datetime] = datetime.utcnow,
    ):
        self.db = db
        self.maintenance_mode = maintenance_mode
        self.lockout = lockout or LockoutPolicy.from_settings()
        self.now = now

    async def login(self, request: LoginRequest, client_ip: Optional[str] = None) -> LoginResult:
        """Authenticate a principal and issue a session token"""
        if self.maintenance_mode:
            logger.log_auth_event(
                event="login",
                success=False,
                username=request.username,
                reason="Maintenance mode",
                client_ip=client_ip,
            )
            raise MaintenanceModeError()

        if request.role == LoginRole.ADMIN:
            user = await self._login_admin(request, client_ip)
        else:
            user = await self._login_student(request, client_ip)

        set_user_id(f"{user.role.value}:{user.id}")

        access_token = create_access_token({
            "sub": str(user.id),
            "role": user.role.value,
            "admin_role": user.admin_role,
            "username": user.roll_no or user.name,
        })

        logger.log_auth_event(
            event="login",
            success=True,
            username=request.username,
            client_ip=client_ip,
            user_role=user.role.value,
        )
        return LoginResult(user=user, access_token=access_token)

    # =====================================================
    # ADMIN
    # =====================================================

    async def _login_admin(self, request: LoginRequest, client_ip: Optional[str]) -> LoginUser:
        result = await self.db.execute(
            select(Admin).where(Admin.name == request.username)
        )
        admin = result.scalar_one_or_none()

        if not admin:
            logger.log_auth_event(
                event="login", success=False, username=request.username,
                reason="Unknown admin", client_ip=client_ip,
            )
            raise UnknownPrincipalError("Invalid admin username")

        if not verify_password(request.password, admin.password_hash):
            logger.log_auth_event(
                event="login", success=False, username=request.username,
                reason="Invalid password", client_ip=client_ip,
            )
            raise InvalidCredentialError()

        if admin.status != AdminStatus.ACTIVE:
            logger.log_auth_event(
                event="login", success=False, username=request.username,
                reason="Account inactive", client_ip=client_ip,
            )
            raise AccountInactiveError()

        admin.last_login = self.now()
        self.db.add(AuditLog(
            admin_id=admin.id,
            action="LOGIN",
            target_type="admin",
            target_id=admin.id,
            details={"role": admin.role.value},
            ip_address=client_ip,
        ))
        await self.db.commit()

        return LoginUser(
            id=admin.id,
            name=admin.name,
            role=LoginRole.ADMIN,
            admin_role=admin.role.value,
        )

    # =====================================================
    # STUDENT
    # =====================================================

    async def _login_student(self, request: LoginRequest, client_ip: Optional[str]) -> LoginUser:
        # Row lock serialises concurrent attempts on the same account
        result = await self.db.execute(
            select(Student)
            .where(Student.roll_no == request.username)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        student = result.scalar_one_or_none()

        if not student:
            await self.db.rollback()
            logger.log_auth_event(
                event="login", success=False, username=request.username,
                reason="Unknown roll number", client_ip=client_ip,
            )
            raise UnknownPrincipalError("Invalid roll number")

        now = self.now()

        if self.lockout.is_locked(student, now):
            minutes = self.lockout.minutes_remaining(student, now)
            await self.db.rollback()
            logger.log_auth_event(
                event="login", success=False, username=request.username,
                reason="Account locked", client_ip=client_ip, minutes_remaining=minutes,
            )
            raise AccountLockedError(minutes)

        self.lockout.clear_expired(student, now)

        if not self._verify_student_password(request.password, student):
            locked = self.lockout.record_failure(student, now)
            attempts = student.failed_login_attempts
            remaining = self.lockout.attempts_remaining(student)
            await self.db.commit()

            if locked:
                logger.log_auth_event(
                    event="lockout", success=False, username=request.username,
                    reason="Too many failed attempts", client_ip=client_ip,
                    failed_attempts=attempts,
                )
                raise AccountLockedError(self.lockout.minutes_remaining(student, now))

            logger.log_auth_event(
                event="login", success=False, username=request.username,
                reason="Invalid password", client_ip=client_ip,
                failed_attempts=attempts,
            )
            raise InvalidCredentialError(remaining)

        self.lockout.record_success(student)
        await self.db.commit()

        return LoginUser(
            id=student.id,
            name=student.name,
            role=LoginRole.STUDENT,
            roll_no=student.roll_no,
            branch_id=student.branch_id,
        )

    @staticmethod
    def _verify_student_password(raw: str, student: Student) -> bool:
        """Hash first; plaintext only for rows that predate hashing"""
        if verify_password(raw, student.password_hash):
            return True
        return verify_legacy_password(raw, student.password)

    # =====================================================
    # SESSION
    # =====================================================

    async def get_profile(self, principal: CurrentPrincipal) -> LoginUser:
        """Current account details for a session"""
        if principal.role == LoginRole.ADMIN:
            admin = await self.db.get(Admin, principal.id)
            if not admin:
                raise ResourceNotFoundError("Admin", principal.id)
            return LoginUser(
                id=admin.id, name=admin.name, role=LoginRole.ADMIN,
                admin_role=admin.role.value,
            )

        student = await self.db.get(Student, principal.id)
        if not student:
            raise ResourceNotFoundError("Student", principal.id)
        return LoginUser(
            id=student.id, name=student.name, role=LoginRole.STUDENT,
            roll_no=student.roll_no, branch_id=student.branch_id,
        )
