from typing import Optional, NamedTuple
from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from lupora.utils.cache import TTLCache
from lupora.utils.errors import AuthError, ForbiddenError
from lupora.utils.notifications import NotificationDispatcher
from lupora.utils.security import decode_token
from lupora.utils.validation import is_valid_id

bearer_scheme = HTTPBearer(auto_error=False)


class CurrentUser(NamedTuple):
    """Identity claims carried by the session token"""
    id: str
    name: str
    email: str


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> CurrentUser:
    """
    Authenticate the request from its bearer token.

    Missing or malformed Authorization header -> 401. A token that does not
    verify, has expired, or names a malformed user id -> 403.
    """
    if credentials is None or not credentials.credentials:
        raise AuthError("Access denied. No token provided.")

    payload = decode_token(credentials.credentials)
    if payload is None:
        raise ForbiddenError("Invalid or expired token")

    user_id = payload.get("sub")
    if not is_valid_id(user_id):
        raise ForbiddenError("Invalid token payload")

    return CurrentUser(
        id=user_id,
        name=payload.get("name", ""),
        email=payload.get("email", ""),
    )


def get_catalog_cache(request: Request) -> TTLCache:
    return request.app.state.catalog_cache


def get_dispatcher(request: Request) -> NotificationDispatcher:
    return request.app.state.notification_dispatcher
