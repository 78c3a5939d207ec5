from fastapi import APIRouter, BackgroundTasks, Depends, Request
from app.core.dependencies import get_current_user
from app.database.repository import SupabaseDatabase, get_database
from app.modules.audit.routes import get_audit_service
from app.modules.audit.service import AuditService, request_metadata
from app.modules.users.schemas import ProfileUpdate, ProfileResponse, ProfileSearchResponse
from app.modules.users.service import UserService
from typing import Dict, Optional

router = APIRouter(prefix="/users", tags=["users"])


def get_user_service(db: SupabaseDatabase = Depends(get_database)) -> UserService:
    return UserService(db)


@router.get("/me", response_model=ProfileResponse)
async def get_me(
    user_data: Dict = Depends(get_current_user),
    service: UserService = Depends(get_user_service)
):
    return service.get_profile(user_data["id"])


@router.put("/me", response_model=ProfileResponse)
async def update_me(
    profile_data: ProfileUpdate,
    request: Request,
    background_tasks: BackgroundTasks,
    user_data: Dict = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
    audit: AuditService = Depends(get_audit_service)
):
    profile = service.update_profile(user_data["id"], profile_data)
    background_tasks.add_task(
        audit.log_event, "PROFILE", user_data["id"], "UPDATED", user_data["id"],
        {**request_metadata(request), "changes": profile_data.model_dump(exclude_none=True)}
    )
    return profile


@router.get("/search", response_model=ProfileSearchResponse)
async def search_users(
    q: str = "",
    exclude_project: Optional[str] = None,
    user_data: Dict = Depends(get_current_user),
    service: UserService = Depends(get_user_service)
):
    """Search users by name or email (at least 2 characters)"""
    return {"data": service.search(q, exclude_project)}
