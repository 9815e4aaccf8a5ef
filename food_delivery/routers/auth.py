"""
Authentication Endpoints

    - POST /auth/register: Create a customer or restaurant-owner account
    - POST /auth/login: Exchange credentials for a bearer token
    - GET /auth/profile: Current user
    - PUT /auth/profile: Update name/phone/address
    - PUT /auth/change-password: Change password
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from food_delivery.core.config import Settings
from food_delivery.core.security import Identity, create_access_token
from food_delivery.database import get_db
from food_delivery.deps import get_app_settings, get_current_user, get_identity
from food_delivery.models import User
from food_delivery.schemas import (
    AuthResponse,
    ErrorResponse,
    LoginRequest,
    MessageResponse,
    PasswordChange,
    ProfileUpdate,
    RegisterRequest,
    UserEnvelope,
    UserResponse,
)
from food_delivery.services import AccountService

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=201,
    responses={400: {"model": ErrorResponse}},
    summary="Register",
)
async def register(
    data: RegisterRequest,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> AuthResponse:
    user = await AccountService(db, settings).register(data)
    return AuthResponse(
        message="User registered successfully",
        token=create_access_token(settings, user.id, user.email, user.role),
        user=UserResponse.model_validate(user),
    )


@router.post(
    "/login",
    response_model=AuthResponse,
    responses={401: {"model": ErrorResponse}},
    summary="Login",
)
async def login(
    data: LoginRequest,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> AuthResponse:
    user = await AccountService(db, settings).authenticate(data.email, data.password)
    return AuthResponse(
        message="Login successful",
        token=create_access_token(settings, user.id, user.email, user.role),
        user=UserResponse.model_validate(user),
    )


@router.get("/profile", response_model=UserEnvelope)
async def get_profile(user: User = Depends(get_current_user)) -> UserEnvelope:
    return UserEnvelope(user=UserResponse.model_validate(user))


@router.put("/profile", response_model=UserEnvelope)
async def update_profile(
    data: ProfileUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> UserEnvelope:
    user = await AccountService(db, settings).update_profile(user, data)
    return UserEnvelope(user=UserResponse.model_validate(user))


@router.put("/change-password", response_model=MessageResponse)
async def change_password(
    data: PasswordChange,
    identity: Identity = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> MessageResponse:
    await AccountService(db, settings).change_password(identity.id, data)
    return MessageResponse(message="Password changed successfully")
