"""
Pydantic models for stores.

Listings embed the owner, the individual ratings and the aggregate
(``averageRating``/``totalRatings``) computed at read time.
"""

from typing import List, Optional

from pydantic import Field, field_validator

from ..core.validation import validate_address, validate_name
from . import CamelModel
from .rating import RatingRead


class StoreCreate(CamelModel):
    name: str = Field(..., examples=["Downtown Fresh Grocery Market"])
    address: str = Field(..., examples=["42 Market Street, Springfield"])
    owner_id: int = Field(..., examples=[2])

    @field_validator("name")
    @classmethod
    def check_name(cls, v: str) -> str:
        return validate_name(v)

    @field_validator("address")
    @classmethod
    def check_address(cls, v: str) -> str:
        return validate_address(v)


class StoreUpdate(StoreCreate):
    """All fields are replaced on update."""


class OwnerSummary(CamelModel):
    id: int
    name: str
    email: str


class RaterSummary(CamelModel):
    id: int
    name: str


class RaterDetail(RaterSummary):
    email: str


class StoreRatingRead(RatingRead):
    user: RaterSummary


class OwnerStoreRatingRead(RatingRead):
    user: RaterDetail


class StoreRead(CamelModel):
    id: int
    name: str
    address: str
    owner_id: int
    created_at: Optional[str] = None


class StoreWithOwner(StoreRead):
    owner: OwnerSummary


class StoreListItem(StoreWithOwner):
    ratings: List[StoreRatingRead] = []
    average_rating: float = 0.0
    total_ratings: int = 0


class OwnerStoreItem(StoreRead):
    ratings: List[OwnerStoreRatingRead] = []
    average_rating: float = 0.0
    total_ratings: int = 0


class StoreUpdateResponse(CamelModel):
    message: str
    store: StoreWithOwner
