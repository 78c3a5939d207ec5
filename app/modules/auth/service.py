from supabase import Client
from fastapi import HTTPException
from typing import Dict, Any
import logging

from app.config import settings
from app.core.errors import validation_error
from app.database.repository import SupabaseDatabase
from app.modules.auth.schemas import LoginRequest, RegisterRequest, TokenResponse, RegisterResponse

logger = logging.getLogger(__name__)


class AuthService:
    def __init__(self, supabase: Client):
        self.supabase = supabase
        self.db = SupabaseDatabase(supabase)

    def register(self, register_data: RegisterRequest) -> RegisterResponse:
        """Register a new user with Supabase Auth and create their profile"""
        if register_data.role.value not in settings.get_self_register_roles_list():
            raise validation_error("role", f"Self-registration is not open to the {register_data.role.value} role")
        try:
            auth_response = self.supabase.auth.sign_up({
                "email": register_data.email,
                "password": register_data.password,
                "options": {
                    "data": {"name": register_data.name}
                }
            })
        except Exception as e:
            error_message = str(e)
            if "already registered" in error_message.lower() or "already exists" in error_message.lower():
                raise HTTPException(status_code=400, detail="User already exists")
            logger.error(f"Registration failed: {error_message}")
            raise HTTPException(status_code=500, detail="Registration failed")

        if not auth_response.user:
            raise HTTPException(status_code=400, detail="Failed to register user")

        user = auth_response.user
        profile = self.db.create_profile({
            "id": user.id,
            "email": user.email or register_data.email,
            "name": register_data.name,
            "role": register_data.role.value,
            "is_active": True,
        })
        if profile.error:
            logger.error(f"Profile creation failed for {user.id}: {profile.error.message}")
            raise HTTPException(status_code=500, detail="Registration failed")

        return RegisterResponse(
            user_id=user.id,
            email=user.email or register_data.email,
            role=register_data.role,
            message="User registered successfully"
        )

    def login(self, login_data: LoginRequest) -> TokenResponse:
        """Authenticate user using Supabase Auth"""
        try:
            auth_response = self.supabase.auth.sign_in_with_password({
                "email": login_data.email,
                "password": login_data.password
            })
        except Exception as e:
            error_message = str(e)
            if "invalid" in error_message.lower() or "credentials" in error_message.lower():
                raise HTTPException(status_code=401, detail="Invalid email or password")
            logger.error(f"Login failed: {error_message}")
            raise HTTPException(status_code=500, detail="Login failed")

        if not auth_response.user or not auth_response.session:
            raise HTTPException(status_code=401, detail="Invalid credentials")

        profile = self.db.get_profile(auth_response.user.id)
        return TokenResponse(
            access_token=auth_response.session.access_token,
            token_type="bearer",
            user_id=auth_response.user.id,
            email=auth_response.user.email or login_data.email,
            role=profile.data["role"] if profile.ok else None
        )

    def get_current_user(self, token: str) -> Dict[str, Any]:
        """Resolve the Supabase Auth user behind an access token"""
        try:
            user_response = self.supabase.auth.get_user(jwt=token)
        except Exception as e:
            error_msg = str(e)
            if "JWT" in error_msg or "expired" in error_msg.lower() or "invalid" in error_msg.lower():
                raise HTTPException(status_code=401, detail="Invalid or expired token")
            raise HTTPException(status_code=401, detail="Authentication failed")

        if not user_response or not user_response.user:
            raise HTTPException(status_code=401, detail="Invalid or expired token")
        user = user_response.user
        return {
            "id": user.id,
            "email": user.email,
            "user_metadata": user.user_metadata or {},
        }

    def logout(self, token: str) -> bool:
        """Logout user using Supabase Auth"""
        try:
            # Tokens are stateless JWTs; this only ends the server-side session
            self.supabase.auth.sign_out()
            return True
        except Exception as e:
            logger.warning(f"Sign out failed: {e}")
            return False
