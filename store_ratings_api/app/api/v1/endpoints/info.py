"""
Service information endpoints.

``/health`` reports whether the database handle is open, for load
balancers and deployment checks.  No authentication is required.
"""

from typing import Dict

from fastapi import APIRouter, Depends, HTTPException, Request, status

from store_ratings_api.app.core.db import Database, get_db

router = APIRouter()


@router.get("/health", response_model=Dict[str, str])
async def health(request: Request, db: Database = Depends(get_db)) -> Dict[str, str]:
    if not db.is_open:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Database unavailable")
    return {"status": "ok", "version": request.app.state.settings.api_version}
