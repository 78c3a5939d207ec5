"""
Core dependencies for route protection and permission checking
"""

from fastapi import Depends, HTTPException, Security, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from app.config.rbac_config import Role, has_role, has_any_role
from app.database.supabase_client import get_supabase
from app.database.repository import SupabaseDatabase, get_database
from app.modules.auth.service import AuthService
from supabase import Client
from typing import Any, Dict, Optional
import logging

logger = logging.getLogger(__name__)

# auto_error=False so a missing header is a 401, not FastAPI's default 403
security = HTTPBearer(auto_error=False)

EDITABLE_BY_ASSIGNEE = ("DRAFT", "PENDING", "REJECTED")


def get_auth_service(supabase: Client = Depends(get_supabase)) -> AuthService:
    return AuthService(supabase)


def get_current_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security)
) -> str:
    """Extract JWT token from Authorization header"""
    if credentials is None or not credentials.credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required"
        )
    return credentials.credentials


def get_current_user(
    token: str = Depends(get_current_token),
    auth_service: AuthService = Depends(get_auth_service),
    db: SupabaseDatabase = Depends(get_database)
) -> Dict[str, Any]:
    """Resolve the caller: valid token, existing profile, active account."""
    auth_user = auth_service.get_current_user(token)
    profile = db.get_profile(auth_user["id"])
    if profile.error:
        if not profile.error.is_not_found:
            logger.error(f"Profile lookup failed for {auth_user['id']}: {profile.error.message}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User profile not found"
        )
    if not profile.data.get("is_active", True):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is deactivated"
        )
    return {
        "id": profile.data["id"],
        "email": profile.data.get("email") or auth_user.get("email"),
        "name": profile.data.get("name"),
        "role": profile.data["role"],
        "is_active": profile.data.get("is_active", True),
    }


def require_role(*roles: Role):
    """Factory function to create a role check dependency.

    The caller passes when the roles their own role covers (see ROLE_HIERARCHY)
    intersect `roles`.
    """
    required = [r.value if isinstance(r, Role) else r for r in roles]

    def check_role(user_data: dict = Depends(get_current_user)) -> dict:
        if not has_any_role(user_data["role"], required):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions"
            )
        return user_data
    return check_role


def is_manager(user_data: dict) -> bool:
    return has_role(user_data["role"], Role.PROJECT_MANAGER.value)


def is_executive(user_data: dict) -> bool:
    return has_role(user_data["role"], Role.EXECUTIVE.value)


def can_view_inspection(user_data: dict, inspection: dict) -> bool:
    if is_manager(user_data) or is_executive(user_data):
        return True
    return inspection.get("assigned_to") == user_data["id"]


def can_edit_inspection(user_data: dict, inspection: dict) -> bool:
    if is_manager(user_data):
        return True
    return (
        inspection.get("assigned_to") == user_data["id"]
        and inspection.get("status") in EDITABLE_BY_ASSIGNEE
    )


def can_upload_evidence(user_data: dict, inspection: dict) -> bool:
    return is_manager(user_data) or inspection.get("assigned_to") == user_data["id"]


def can_verify_evidence(user_data: dict) -> bool:
    return is_manager(user_data)


def can_delete_evidence(user_data: dict, evidence: dict) -> bool:
    return is_manager(user_data) or evidence.get("uploaded_by") == user_data["id"]


def can_generate_reports(user_data: dict) -> bool:
    return is_manager(user_data) or is_executive(user_data)


def check_inspection_access(inspection: dict, user_data: dict) -> dict:
    """Raise 403 unless the caller may view the inspection"""
    if not can_view_inspection(user_data, inspection):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You do not have access to this inspection"
        )
    return user_data
