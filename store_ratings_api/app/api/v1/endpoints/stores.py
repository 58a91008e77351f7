"""
Store endpoints for API v1.

The public listing (``GET /stores``) needs no token.  Creating,
editing and deleting stores is reserved for administrators, and only
normal users may rate a store.  Paths are declared in full here
because the router mixes the public ``/stores`` prefix with the
``/admin/stores`` management routes.
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query, status

from store_ratings_api.app.core.db import Database, get_db
from store_ratings_api.app.core.permissions import Action
from store_ratings_api.app.core.security import require_action
from store_ratings_api.app.schemas import MessageResponse
from store_ratings_api.app.schemas.rating import RatingCreate, RatingRead
from store_ratings_api.app.schemas.store import (
    StoreCreate,
    StoreListItem,
    StoreUpdate,
    StoreUpdateResponse,
    StoreWithOwner,
)
from store_ratings_api.app.services.rating_service import RatingService
from store_ratings_api.app.services.store_service import StoreService


router = APIRouter()


@router.get("/stores", response_model=List[StoreListItem])
async def list_stores(
    search: Optional[str] = Query(None, description="Matches store name or address"),
    db: Database = Depends(get_db),
) -> List[StoreListItem]:
    """List all stores with their average rating.  Public."""
    return await StoreService.list_stores(db, search=search)


@router.post("/stores", response_model=StoreWithOwner, status_code=status.HTTP_201_CREATED)
async def create_store(
    data: StoreCreate,
    db: Database = Depends(get_db),
    current_user: Dict[str, Any] = Depends(require_action(Action.MANAGE_STORES)),
) -> StoreWithOwner:
    """Create a store for an existing ``OWNER`` user."""
    return await StoreService.create_store(db, data)


@router.post("/stores/{store_id}/rate", response_model=RatingRead)
async def rate_store(
    store_id: int,
    data: RatingCreate,
    db: Database = Depends(get_db),
    current_user: Dict[str, Any] = Depends(require_action(Action.RATE_STORE)),
) -> RatingRead:
    """Submit or replace the caller's rating for a store."""
    return await RatingService.submit_rating(db, store_id, current_user["id"], data.rating)


@router.get("/admin/stores", response_model=List[StoreListItem])
async def admin_list_stores(
    search: Optional[str] = Query(None, description="Matches store name or address"),
    db: Database = Depends(get_db),
    current_user: Dict[str, Any] = Depends(require_action(Action.MANAGE_STORES)),
) -> List[StoreListItem]:
    return await StoreService.list_stores(db, search=search)


@router.put("/admin/stores/{store_id}", response_model=StoreUpdateResponse)
async def update_store(
    store_id: int,
    data: StoreUpdate,
    db: Database = Depends(get_db),
    current_user: Dict[str, Any] = Depends(require_action(Action.MANAGE_STORES)),
) -> StoreUpdateResponse:
    store = await StoreService.update_store(db, store_id, data)
    return StoreUpdateResponse(message="Store updated", store=store)


@router.delete("/admin/stores/{store_id}", response_model=MessageResponse)
async def delete_store(
    store_id: int,
    db: Database = Depends(get_db),
    current_user: Dict[str, Any] = Depends(require_action(Action.MANAGE_STORES)),
) -> MessageResponse:
    """Delete a store and every rating it received."""
    await StoreService.delete_store(db, store_id)
    return MessageResponse(message="Store deleted successfully")
