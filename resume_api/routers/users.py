from typing import Optional

from fastapi import APIRouter, Cookie, Depends, Request, Response, status

from resume_api.dependencies import (
    REFRESH_COOKIE_NAME,
    clear_refresh_cookie,
    get_current_user,
    get_user_service,
    limiter,
    set_refresh_cookie,
)
from resume_api.exceptions import UnauthorizedError
from resume_api.models.user import User
from resume_api.schemas.auth import (
    ChangePasswordRequest,
    LoginRequest,
    RegisterRequest,
    TokenResponse,
    UserOut,
)
from resume_api.schemas.base import MessageResponse
from resume_api.services.user_service import UserService


router = APIRouter()


@router.post("/register", response_model=UserOut, status_code=status.HTTP_201_CREATED)
@limiter.limit("5/hour")
async def register_user(
    request: Request,
    payload: RegisterRequest,
    service: UserService = Depends(get_user_service),
) -> UserOut:
    """
    Register a new user account.

    **Request:** RegisterRequest (email, name, password)
    **Response:** UserOut (user details without password)
    **Errors:** 409 (email already registered), 422 (invalid fields)
    """
    user = await service.register(payload.email, payload.password, payload.name)
    return UserOut.model_validate(user)


@router.post("/login", response_model=TokenResponse, status_code=status.HTTP_200_OK)
@limiter.limit("10/minute")
async def login(
    request: Request,
    response: Response,
    payload: LoginRequest,
    service: UserService = Depends(get_user_service),
) -> TokenResponse:
    """
    Authenticate and receive an access token.

    The refresh token is set as an HttpOnly `refreshToken` cookie and never
    returned in the body.
    **Response:** TokenResponse (accessToken, tokenType)
    **Errors:** 401 (invalid credentials)
    """
    pair = await service.login(payload.email, payload.password)
    set_refresh_cookie(response, pair.refresh_token)
    return TokenResponse(access_token=pair.access_token)


@router.post("/refresh", response_model=TokenResponse, status_code=status.HTTP_200_OK)
async def refresh_tokens(
    response: Response,
    refresh_token: Optional[str] = Cookie(None, alias=REFRESH_COOKIE_NAME),
    service: UserService = Depends(get_user_service),
) -> TokenResponse:
    """
    Exchange the refresh-token cookie for a new access token.

    The refresh token is rotated once half its lifetime has passed.
    **Errors:** 401 (missing, invalid, expired or superseded refresh token)
    """
    if not refresh_token:
        raise UnauthorizedError("Missing refresh token")
    pair = await service.refresh(refresh_token)
    set_refresh_cookie(response, pair.refresh_token)
    return TokenResponse(access_token=pair.access_token)


@router.post("/logout", response_model=MessageResponse, status_code=status.HTTP_200_OK)
async def logout(
    response: Response,
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
) -> MessageResponse:
    """Revoke the stored refresh token and clear the cookie."""
    result = await service.logout(current_user.id)
    clear_refresh_cookie(response)
    return MessageResponse(**result)


@router.get("/me", response_model=UserOut, status_code=status.HTTP_200_OK)
async def get_me(current_user: User = Depends(get_current_user)) -> UserOut:
    return UserOut.model_validate(current_user)


@router.put("/password", response_model=MessageResponse, status_code=status.HTTP_200_OK)
async def change_password(
    payload: ChangePasswordRequest,
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
) -> MessageResponse:
    """
    Change the password. The refresh token is revoked, so other sessions must log in again.

    **Errors:** 401 (current password incorrect)
    """
    result = await service.change_password(current_user.id, payload.current_password, payload.new_password)
    return MessageResponse(**result)


@router.delete("/me", response_model=MessageResponse, status_code=status.HTTP_200_OK)
async def withdraw(
    response: Response,
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
) -> MessageResponse:
    """Delete the account together with every résumé and stored portfolio file."""
    result = await service.withdraw(current_user.id)
    clear_refresh_cookie(response)
    return MessageResponse(**result)
