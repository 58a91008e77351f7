"""
Top‑level router for version 1 of the API.

The endpoint modules declare their full paths (``/signup``,
``/admin/users``, ``/stores/{id}/rate`` ...) so they are included
here without prefixes.
"""

from fastapi import APIRouter

from .endpoints import auth, info, owner, statistics, stores, users

router = APIRouter()

router.include_router(auth.router, tags=["auth"])
router.include_router(users.router, tags=["users"])
router.include_router(stores.router, tags=["stores"])
router.include_router(owner.router, tags=["owner"])
router.include_router(statistics.router, tags=["statistics"])
router.include_router(info.router, tags=["info"])
