"""
Administrator dashboard endpoint.
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends

from store_ratings_api.app.core.db import Database, get_db
from store_ratings_api.app.core.permissions import Action
from store_ratings_api.app.core.security import require_action
from store_ratings_api.app.schemas.dashboard import DashboardRead
from store_ratings_api.app.services.statistics_service import StatisticsService


router = APIRouter()


@router.get("/admin/dashboard", response_model=DashboardRead)
async def dashboard(
    db: Database = Depends(get_db),
    current_user: Dict[str, Any] = Depends(require_action(Action.VIEW_DASHBOARD)),
) -> DashboardRead:
    """Return user/store/rating totals, users per role and the five most rated stores."""
    return await StatisticsService.dashboard(db)
