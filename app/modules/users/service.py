from typing import Any, Dict, List, Optional
from fastapi import HTTPException
import logging

from app.core.errors import raise_for_result
from app.database.repository import SupabaseDatabase
from app.modules.users.schemas import ProfileUpdate

logger = logging.getLogger(__name__)

MIN_SEARCH_LENGTH = 2


class UserService:
    def __init__(self, db: SupabaseDatabase):
        self.db = db

    def get_profile(self, user_id: str) -> Dict[str, Any]:
        return raise_for_result(self.db.get_profile(user_id), not_found="User profile not found")

    def update_profile(self, user_id: str, profile_data: ProfileUpdate) -> Dict[str, Any]:
        """Update the caller's own name/avatar"""
        updates = profile_data.model_dump(exclude_none=True)
        if not updates:
            raise HTTPException(status_code=400, detail="No fields to update")
        return raise_for_result(
            self.db.update_profile(user_id, updates),
            not_found="User profile not found",
            failure="Failed to update user profile"
        )

    def search(self, term: str, exclude_project: Optional[str] = None) -> List[Dict[str, Any]]:
        """Search active profiles by name or email. Short terms return nothing."""
        term = (term or "").strip()
        if len(term) < MIN_SEARCH_LENGTH:
            return []
        profiles = raise_for_result(self.db.search_profiles(term), failure="Failed to search users")
        if exclude_project:
            members = raise_for_result(
                self.db.list_project_members(exclude_project),
                failure="Failed to search users"
            )
            member_ids = {m["user_id"] for m in members}
            profiles = [p for p in profiles if p["id"] not in member_ids]
        return profiles
