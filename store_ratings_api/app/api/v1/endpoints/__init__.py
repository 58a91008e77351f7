"""
Endpoint subpackage for API v1.

Each module defines an APIRouter for one domain (accounts, users,
stores, owner views, statistics).  The routers are aggregated in
``router.py`` at the package level.
"""
