from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from onboard.core.database import get_db
from onboard.core.dependencies import get_identity
from onboard.core.errors import AuthError
from onboard.core.security import REFRESH_COOKIE, Identity, clear_auth_cookies, set_auth_cookies
from onboard.schemas.auth import AdminLoginRequest, AuthResponse, MessageResponse, SigninRequest
from onboard.schemas.user import UserPublic
from onboard.services.auth import AuthService

router = APIRouter()


@router.post("/signin", response_model=AuthResponse)
async def signin(payload: SigninRequest, response: Response, db: AsyncSession = Depends(get_db)):
    """Вход по email и паролю; токены выставляются в cookies."""
    user, tokens = await AuthService(db).signin(payload.email, payload.password)
    set_auth_cookies(response, tokens)
    return AuthResponse(user=UserPublic.model_validate(user))


@router.post("/admin/login", response_model=AuthResponse)
async def admin_login(payload: AdminLoginRequest, response: Response, db: AsyncSession = Depends(get_db)):
    """Вход администратора по общему паролю."""
    admin, tokens = await AuthService(db).admin_login(payload.password)
    set_auth_cookies(response, tokens)
    return AuthResponse(user=UserPublic.model_validate(admin))


@router.post("/refresh", response_model=MessageResponse)
async def refresh(request: Request, response: Response, db: AsyncSession = Depends(get_db)):
    refresh_token = request.cookies.get(REFRESH_COOKIE)
    if not refresh_token:
        raise AuthError("Refresh token not found")
    tokens = await AuthService(db).refresh(refresh_token)
    set_auth_cookies(response, tokens)
    return MessageResponse(message="Tokens refreshed successfully")


@router.post("/logout", response_model=MessageResponse)
async def logout(response: Response):
    clear_auth_cookies(response)
    return MessageResponse(message="Logged out successfully")


@router.get("/me", response_model=AuthResponse)
async def me(identity: Identity = Depends(get_identity), db: AsyncSession = Depends(get_db)):
    user = await AuthService(db).get_current_user(identity.user_id)
    return AuthResponse(user=UserPublic.model_validate(user))
