"""
Store owner endpoints.

Owners see their own stores together with who rated them.
"""

from typing import Any, Dict, List

from fastapi import APIRouter, Depends

from store_ratings_api.app.core.db import Database, get_db
from store_ratings_api.app.core.permissions import Action
from store_ratings_api.app.core.security import require_action
from store_ratings_api.app.schemas.store import OwnerStoreItem
from store_ratings_api.app.services.store_service import StoreService


router = APIRouter()


@router.get("/owner/stores", response_model=List[OwnerStoreItem])
async def list_own_stores(
    db: Database = Depends(get_db),
    current_user: Dict[str, Any] = Depends(require_action(Action.LIST_OWN_STORES)),
) -> List[OwnerStoreItem]:
    return await StoreService.list_owner_stores(db, current_user["id"])
