from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from campusdesk.core.config import settings
from campusdesk.core.database import get_db
from campusdesk.core.exceptions import AuthenticationError, AuthorizationError, InvalidTokenError
from campusdesk.core.logging_config import set_user_id
from campusdesk.core.security import decode_token
from campusdesk.schemas.auth import CurrentPrincipal, LoginRole
from campusdesk.services.auth_service import AuthService

security = HTTPBearer(auto_error=False)


async def get_auth_service(db: AsyncSession = Depends(get_db)) -> AuthService:
    """AuthService with the maintenance switch read at request time"""
    return AuthService(db, maintenance_mode=settings.MAINTENANCE_MODE)


async def get_current_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> CurrentPrincipal:
    """Principal from the bearer token"""
    if not credentials:
        raise AuthenticationError("Not authenticated")

    payload = decode_token(credentials.credentials)

    if payload.get("type") != "access":
        raise InvalidTokenError()

    sub = payload.get("sub")
    role = payload.get("role")
    if not sub or role not in {r.value for r in LoginRole}:
        raise InvalidTokenError()

    try:
        principal_id = int(sub)
    except ValueError:
        raise InvalidTokenError()

    set_user_id(f"{role}:{principal_id}")
    return CurrentPrincipal(
        id=principal_id,
        role=role,
        username=payload.get("username") or sub,
        admin_role=payload.get("admin_role"),
    )


async def require_admin(
    principal: CurrentPrincipal = Depends(get_current_principal)
) -> CurrentPrincipal:
    """Admin or super admin"""
    if not principal.is_admin:
        raise AuthorizationError("Admin access required")
    return principal


async def require_super_admin(
    principal: CurrentPrincipal = Depends(require_admin)
) -> CurrentPrincipal:
    if not principal.is_super_admin:
        raise AuthorizationError("Super admin access required")
    return principal


async def require_student(
    principal: CurrentPrincipal = Depends(get_current_principal)
) -> CurrentPrincipal:
    if principal.role != LoginRole.STUDENT:
        raise AuthorizationError("Student access required")
    return principal


def ensure_self_or_admin(principal: CurrentPrincipal, student_id: int) -> None:
    """Students may only read their own records"""
    if principal.is_admin:
        return
    if principal.id != student_id:
        raise AuthorizationError("You can only view your own records")
