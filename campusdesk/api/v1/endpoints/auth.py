from fastapi import APIRouter, Depends, Request

from campusdesk.core.rate_limiter import auth_rate_limit
from campusdesk.modules.auth.dependencies import get_auth_service, get_current_principal
from campusdesk.schemas.auth import CurrentPrincipal, LoginResponse, MeResponse, parse_login_request
from campusdesk.services.auth_service import AuthService

router = APIRouter()


@router.post("/login", response_model=LoginResponse)
@auth_rate_limit()
async def login(
    request: Request,
    auth_service: AuthService = Depends(get_auth_service),
):
    """Admin or student login (rate limited)"""
    try:
        payload = await request.json()
    except ValueError:
        payload = None

    login_request = parse_login_request(payload)
    client_ip = request.client.host if request.client else "unknown"

    result = await auth_service.login(login_request, client_ip=client_ip)
    return LoginResponse(access_token=result.access_token, user=result.user)


@router.get("/me", response_model=MeResponse)
async def me(
    principal: CurrentPrincipal = Depends(get_current_principal),
    auth_service: AuthService = Depends(get_auth_service),
):
    """Current session's account"""
    user = await auth_service.get_profile(principal)
    return MeResponse(user=user)
