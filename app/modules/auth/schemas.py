from pydantic import BaseModel, EmailStr, Field
from typing import List, Optional

from app.config.rbac_config import Role


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user_id: str
    email: str
    role: Optional[Role] = None


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=8)
    name: str = Field(..., min_length=1, max_length=100)
    # any role is accepted here; AuthService.register enforces settings.self_register_roles
    role: Role = Role.INSPECTOR


class RegisterResponse(BaseModel):
    user_id: str
    email: str
    role: Role
    message: str


class CurrentUserResponse(BaseModel):
    id: str
    email: str
    name: Optional[str] = None
    role: Role
    is_active: bool = True
    permissions: List[str] = []
