from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from onboard.core.database import get_session_factory
from onboard.core.errors import AuthError, AuthorizationError
from onboard.core.security import ACCESS_COOKIE, Identity, decode_access_token
from onboard.services.notifications import NotificationDispatcher
from onboard.services.webpush import WebPushSender

# Bearer-заголовок принимается как запасной вариант для скриптов
security = HTTPBearer(auto_error=False)


def extract_access_token(
    cookies: dict, credentials: Optional[HTTPAuthorizationCredentials] = None
) -> Optional[str]:
    token = cookies.get(ACCESS_COOKIE)
    if token:
        return token
    if credentials is not None:
        return credentials.credentials
    return None


async def get_identity(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Identity:
    """
    Определяет пользователя по access-токену из cookie.
    Без токена или с просроченным токеном бросает AuthError (401).
    """
    token = extract_access_token(request.cookies, credentials)
    if not token:
        raise AuthError("Authentication required")
    return decode_access_token(token)


async def require_user(identity: Identity = Depends(get_identity)) -> Identity:
    if identity.is_admin:
        raise AuthorizationError("Admins should use admin chat endpoints")
    return identity


async def require_admin(identity: Identity = Depends(get_identity)) -> Identity:
    if not identity.is_admin:
        raise AuthorizationError("Admin access required")
    return identity


def get_dispatcher() -> NotificationDispatcher:
    """Диспетчер push со своей фабрикой сессий; в тестах подменяется."""
    return NotificationDispatcher(get_session_factory(), WebPushSender())
