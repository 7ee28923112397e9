"""
Authentication API routes.
"""
from typing import Optional

from fastapi import APIRouter, Depends

from ...container import ServiceContainer
from ...models import User
from ...models.schemas import ApiResponse, LoginRequest, ProfileUpdateRequest, RegisterRequest
from ...services import get_current_user, require_user
from ..dependencies import get_services

router = APIRouter()


@router.post("/register", response_model=ApiResponse, status_code=201)
async def register(
    request: RegisterRequest,
    actor: Optional[User] = Depends(get_current_user),
    services: ServiceContainer = Depends(get_services),
):
    """
    Create an account and return an access token.

    Admin and support agent accounts require an admin bearer token.
    """
    user, token = await services.users.register(
        request.name,
        request.email,
        request.password,
        role=request.role,
        actor=actor,
    )
    return ApiResponse(
        message="User registered successfully",
        data={"user": user.to_public_dict(), "token": token},
    )


@router.post("/login", response_model=ApiResponse)
async def login(
    request: LoginRequest,
    services: ServiceContainer = Depends(get_services),
):
    user, token = await services.users.login(request.email, request.password)
    return ApiResponse(
        message="Login successful",
        data={"user": user.to_public_dict(), "token": token},
    )


@router.post("/logout", response_model=ApiResponse)
async def logout():
    """Tokens are stateless; clients discard theirs."""
    return ApiResponse(message="Logged out successfully")


@router.get("/profile", response_model=ApiResponse)
async def get_profile(user: User = Depends(require_user)):
    return ApiResponse(data={"user": user.to_public_dict()})


@router.put("/profile", response_model=ApiResponse)
async def update_profile(
    request: ProfileUpdateRequest,
    user: User = Depends(require_user),
    services: ServiceContainer = Depends(get_services),
):
    updated = await services.users.update_profile(
        user,
        name=request.name,
        password=request.password,
    )
    return ApiResponse(message="Profile updated", data={"user": updated.to_public_dict()})
