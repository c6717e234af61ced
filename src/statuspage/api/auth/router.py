"""Authentication router for FastAPI."""

from fastapi import APIRouter, Depends, Response, status

from statuspage.api.auth.dependencies import get_auth_service, get_current_principal
from statuspage.api.auth.models import Principal
from statuspage.api.auth.schemas import (
    LoginRequest,
    LoginResponse,
    RefreshTokenRequest,
    RegisterRequest,
    TokenResponse,
    UserResponse,
)
from statuspage.api.auth.service import AuthService
from statuspage.api.schemas import DataResponse

router = APIRouter(tags=["auth"])
me_router = APIRouter(tags=["auth"])


@router.post(
    "/register",
    response_model=DataResponse[UserResponse],
    status_code=status.HTTP_201_CREATED,
)
async def register(
    user_data: RegisterRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> DataResponse[UserResponse]:
    """Register a new user with the ``user`` role."""
    user = await auth_service.register(
        email=user_data.email,
        password=user_data.password,
        first_name=user_data.first_name,
        last_name=user_data.last_name,
    )
    return DataResponse(data=UserResponse.from_user(user))


@router.post("/login", response_model=DataResponse[LoginResponse])
async def login(
    login_data: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> DataResponse[LoginResponse]:
    """Login and get an access/refresh token pair."""
    user, tokens = await auth_service.login(login_data.email, login_data.password)
    return DataResponse(
        data=LoginResponse(
            user=UserResponse.from_user(user),
            tokens=TokenResponse.from_pair(tokens),
        )
    )


@router.post("/refresh", response_model=DataResponse[TokenResponse])
async def refresh_token(
    refresh_data: RefreshTokenRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> DataResponse[TokenResponse]:
    """Exchange a refresh token for a new pair; the old token stops working."""
    tokens = await auth_service.refresh_tokens(refresh_data.refresh_token)
    return DataResponse(data=TokenResponse.from_pair(tokens))


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(
    refresh_data: RefreshTokenRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> Response:
    """Revoke a refresh token. Succeeds whether or not the token exists."""
    await auth_service.logout(refresh_data.refresh_token)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@me_router.get("/me", response_model=DataResponse[UserResponse])
async def get_me(
    principal: Principal = Depends(get_current_principal),
    auth_service: AuthService = Depends(get_auth_service),
) -> DataResponse[UserResponse]:
    """Get the profile of the authenticated caller."""
    user = await auth_service.get_user(principal.user_id)
    return DataResponse(data=UserResponse.from_user(user))
