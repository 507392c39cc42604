from __future__ import annotations

import logging
from typing import Any, Optional
from uuid import UUID

from fastapi import Depends, Request, Response
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from slowapi import Limiter
from slowapi.util import get_remote_address
from sqlalchemy.ext.asyncio import AsyncSession

from .auth.jwt_handler import decode_access_token
from .config import get_settings
from .database import get_db
from .exceptions import UnauthorizedError
from .models.user import User
from .repositories import ResumeRepository, UserRepository
from .services.resume_service import ResumeService
from .services.token_service import TokenPair, TokenService
from .services.user_service import UserService
from .storage import ObjectStore, get_object_store
from .utils.time import refresh_token_lifetime

logger = logging.getLogger(__name__)

REFRESH_COOKIE_NAME = "refreshToken"
ACCESS_TOKEN_HEADER = "Authorization"
REFRESHED_TOKENS_STATE = "refreshed_tokens"


def _get_user_id_from_request(request: Request) -> str:
    """Extract user_id from JWT for rate limiting, fallback to IP."""
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        payload = decode_access_token(auth_header.split(" ", 1)[1])
        if payload:
            return f"user:{payload['sub']}"
    return f"ip:{get_remote_address(request)}"


limiter = Limiter(key_func=_get_user_id_from_request, enabled=get_settings().rate_limit_enabled)

security = HTTPBearer(auto_error=False)


# --- Service composition ---

def get_user_repository(db: AsyncSession = Depends(get_db)) -> UserRepository:
    return UserRepository(db)


def get_token_service(users: UserRepository = Depends(get_user_repository)) -> TokenService:
    return TokenService(users, get_settings())


def get_resume_service(
    db: AsyncSession = Depends(get_db),
    object_store: ObjectStore = Depends(get_object_store),
) -> ResumeService:
    return ResumeService(ResumeRepository(db), object_store, get_settings())


def get_user_service(
    users: UserRepository = Depends(get_user_repository),
    resumes: ResumeService = Depends(get_resume_service),
    tokens: TokenService = Depends(get_token_service),
) -> UserService:
    return UserService(users, resumes, tokens)


# --- Refresh cookie ---

def set_refresh_cookie(response: Response, refresh_token: str) -> None:
    response.set_cookie(
        key=REFRESH_COOKIE_NAME,
        value=refresh_token,
        max_age=refresh_token_lifetime(get_settings().jwt_refresh_expires_in),
        path="/",
        httponly=True,
        secure=get_settings().is_production,
        samesite="strict",
    )


def clear_refresh_cookie(response: Response) -> None:
    response.delete_cookie(
        key=REFRESH_COOKIE_NAME,
        path="/",
        httponly=True,
        secure=get_settings().is_production,
        samesite="strict",
    )


# --- Auth guard ---

def authenticate(credentials: Optional[HTTPAuthorizationCredentials]) -> dict[str, Any]:
    """Verify the bearer access token and return its claims.

    Raises UnauthorizedError for a missing, malformed, expired or wrong-type token.
    """
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise UnauthorizedError("Missing authentication")
    payload = decode_access_token(credentials.credentials)
    if payload is None:
        raise UnauthorizedError("Invalid token")
    return payload


async def maybe_refresh(
    token_service: TokenService,
    user_id: UUID,
    access_claims: dict[str, Any],
    refresh_cookie: Optional[str],
) -> Optional[TokenPair]:
    """Silently renew credentials when the access token is close to expiry.

    Best-effort: any failure is logged and reported as no refresh, never as
    an authentication error.
    """
    if not refresh_cookie or not token_service.should_refresh_access(access_claims.get("exp")):
        return None
    try:
        return await token_service.validate_and_refresh(user_id, refresh_cookie)
    except Exception as e:
        logger.warning("Silent token refresh failed for user %s: %s", user_id, e)
        return None


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    users: UserRepository = Depends(get_user_repository),
    token_service: TokenService = Depends(get_token_service),
) -> User:
    payload = authenticate(credentials)
    try:
        user_id = UUID(payload["sub"])
    except ValueError:
        raise UnauthorizedError("Invalid token payload")

    user = await users.get_by_id(user_id)
    if user is None:
        raise UnauthorizedError("User not found")

    pair = await maybe_refresh(token_service, user_id, payload, request.cookies.get(REFRESH_COOKIE_NAME))
    if pair is not None:
        # Written onto the response by apply_refreshed_tokens in the request middleware.
        setattr(request.state, REFRESHED_TOKENS_STATE, pair)

    return user


def apply_refreshed_tokens(request: Request, response: Response) -> None:
    """Write a pair renewed by the guard onto the outgoing response.

    Runs for every response, including exception-handler and streaming ones.
    An endpoint that set or cleared the refresh cookie itself (login, refresh,
    logout, withdraw) keeps its own cookie.
    """
    pair: Optional[TokenPair] = getattr(request.state, REFRESHED_TOKENS_STATE, None)
    if pair is None:
        return
    cookie_prefix = f"{REFRESH_COOKIE_NAME}="
    if any(v.startswith(cookie_prefix) for v in response.headers.getlist("set-cookie")):
        return
    set_refresh_cookie(response, pair.refresh_token)
    response.headers[ACCESS_TOKEN_HEADER] = f"Bearer {pair.access_token}"
