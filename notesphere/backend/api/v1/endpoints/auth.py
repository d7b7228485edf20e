"""
Auth API Endpoints.

Registration, login and the current user's profile.
"""

from fastapi import APIRouter

from notesphere.backend.core.dependencies import CurrentUserId, DbSession
from notesphere.backend.schemas.auth import (
    LoginRequest,
    RegisterRequest,
    TokenResponse,
    UserResponse,
)
from notesphere.backend.schemas.base import ApiResponse
from notesphere.backend.services.auth import AuthService, IssuedToken

router = APIRouter()


def _token_response(issued: IssuedToken) -> ApiResponse[TokenResponse]:
    return ApiResponse(
        data=TokenResponse(
            access_token=issued.access_token,
            expires_in=issued.expires_in,
            user=UserResponse.model_validate(issued.user),
        )
    )


@router.post(
    "/register",
    response_model=ApiResponse[TokenResponse],
    status_code=201,
    summary="Register a new account",
)
async def register(data: RegisterRequest, db: DbSession) -> ApiResponse[TokenResponse]:
    issued = await AuthService(db).register(data.email, data.password, data.display_name)
    return _token_response(issued)


@router.post(
    "/login",
    response_model=ApiResponse[TokenResponse],
    summary="Log in with e-mail and password",
)
async def login(data: LoginRequest, db: DbSession) -> ApiResponse[TokenResponse]:
    issued = await AuthService(db).login(data.email, data.password)
    return _token_response(issued)


@router.get(
    "/me",
    response_model=ApiResponse[UserResponse],
    summary="Current user profile",
)
async def me(user_id: CurrentUserId, db: DbSession) -> ApiResponse[UserResponse]:
    user = await AuthService(db).get_profile(user_id)
    return ApiResponse(data=UserResponse.model_validate(user))
