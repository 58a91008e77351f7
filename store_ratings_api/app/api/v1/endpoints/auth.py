"""
Account endpoints: admin‑issued signup, login and password change.

There is no public registration; ``/signup`` requires an
administrator token.  ``/login`` returns a bearer token valid for
24 hours by default.
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends, status

from store_ratings_api.app.core.config import Settings
from store_ratings_api.app.core.db import Database, get_db
from store_ratings_api.app.core.permissions import Action
from store_ratings_api.app.core.security import get_app_settings, issue_token_for, require_action
from store_ratings_api.app.schemas import MessageResponse
from store_ratings_api.app.schemas.user import (
    LoginResponse,
    PasswordUpdate,
    SignupResponse,
    UserCreate,
    UserLogin,
)
from store_ratings_api.app.services.user_service import UserService


router = APIRouter()


@router.post("/signup", response_model=SignupResponse, status_code=status.HTTP_201_CREATED)
async def signup(
    data: UserCreate,
    db: Database = Depends(get_db),
    current_user: Dict[str, Any] = Depends(require_action(Action.CREATE_USER)),
) -> SignupResponse:
    """Create a user account of any role.  Administrators only."""
    user = await UserService.create_user(db, data)
    return SignupResponse(message="User created", user=user)


@router.post("/login", response_model=LoginResponse)
async def login(
    data: UserLogin,
    db: Database = Depends(get_db),
    cfg: Settings = Depends(get_app_settings),
) -> LoginResponse:
    """Check email and password and return a token with the user record."""
    user = await UserService.authenticate(db, data.email, data.password)
    token = issue_token_for(user.model_dump(), cfg)
    return LoginResponse(token=token, user=user)


@router.put("/users/password", response_model=MessageResponse)
async def update_password(
    data: PasswordUpdate,
    db: Database = Depends(get_db),
    current_user: Dict[str, Any] = Depends(require_action(Action.UPDATE_OWN_PASSWORD)),
) -> MessageResponse:
    """Change the caller's own password."""
    await UserService.change_password(db, current_user["id"], data.current_password, data.new_password)
    return MessageResponse(message="Password updated successfully")
