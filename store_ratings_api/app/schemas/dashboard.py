from typing import Dict, List

from . import CamelModel


class TopStore(CamelModel):
    id: int
    name: str
    average_rating: float
    total_ratings: int
    owner: str


class DashboardRead(CamelModel):
    """Admin dashboard counters."""

    total_users: int
    total_stores: int
    total_ratings: int
    users_by_role: Dict[str, int]
    top_stores: List[TopStore]
