"""
User administration endpoints for API v1.

Administrators can list, edit and delete user accounts.  Deleting a
user who owns stores or has rated stores is refused with 400.
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query

from store_ratings_api.app.core.db import Database, get_db
from store_ratings_api.app.core.permissions import Action
from store_ratings_api.app.core.security import require_action
from store_ratings_api.app.schemas import MessageResponse
from store_ratings_api.app.schemas.user import UserListItem, UserUpdate, UserUpdateResponse
from store_ratings_api.app.services.user_service import UserService


router = APIRouter()


@router.get("/admin/users", response_model=List[UserListItem])
async def list_users(
    search: Optional[str] = Query(None, description="Case-insensitive match on the name"),
    role: Optional[str] = Query(None, description="USER, OWNER or ADMIN"),
    db: Database = Depends(get_db),
    current_user: Dict[str, Any] = Depends(require_action(Action.MANAGE_USERS)),
) -> List[UserListItem]:
    return await UserService.list_users(db, search=search, role=role)


@router.put("/admin/users/{user_id}", response_model=UserUpdateResponse)
async def update_user(
    user_id: int,
    data: UserUpdate,
    db: Database = Depends(get_db),
    current_user: Dict[str, Any] = Depends(require_action(Action.MANAGE_USERS)),
) -> UserUpdateResponse:
    """Replace a user's name, email and role."""
    user = await UserService.update_user(db, user_id, data)
    return UserUpdateResponse(message="User updated", user=user)


@router.delete("/admin/users/{user_id}", response_model=MessageResponse)
async def delete_user(
    user_id: int,
    db: Database = Depends(get_db),
    current_user: Dict[str, Any] = Depends(require_action(Action.MANAGE_USERS)),
) -> MessageResponse:
    """Delete a user without stores or ratings.

    Administrators cannot delete their own account.
    """
    await UserService.delete_user(db, user_id, acting_user_id=current_user["id"])
    return MessageResponse(message="User deleted successfully")
