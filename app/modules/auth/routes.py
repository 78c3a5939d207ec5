from fastapi import APIRouter, Depends
from app.modules.auth.schemas import (
    LoginRequest, RegisterRequest, TokenResponse, RegisterResponse,
    CurrentUserResponse
)
from app.modules.auth.service import AuthService
from app.core.dependencies import get_auth_service, get_current_token, get_current_user
from app.config.rbac_config import get_role_permissions
from typing import Dict

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=RegisterResponse, status_code=201)
async def register(
    register_data: RegisterRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Register a new user"""
    return service.register(register_data)


@router.post("/login", response_model=TokenResponse)
async def login(
    login_data: LoginRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Login and get access token"""
    return service.login(login_data)


@router.post("/logout", status_code=200)
async def logout(
    token: str = Depends(get_current_token),
    service: AuthService = Depends(get_auth_service)
):
    service.logout(token)
    return {"message": "Logged out successfully"}


@router.get("/me", response_model=CurrentUserResponse)
async def get_me(current_user: Dict = Depends(get_current_user)):
    """Current user with the permission names their role grants (for frontend UI)."""
    return {**current_user, "permissions": get_role_permissions(current_user["role"])}
