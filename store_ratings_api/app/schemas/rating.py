"""
Pydantic schemas for store ratings.

A user holds at most one rating per store; resubmitting replaces the
value of the existing record, so ``RatingRead.id`` is stable across
submissions.
"""

from typing import Optional

from pydantic import field_validator

from ..core.validation import validate_rating
from . import CamelModel


class RatingCreate(CamelModel):
    """Body of ``POST /stores/{id}/rate``."""

    rating: int

    @field_validator("rating", mode="before")
    @classmethod
    def check_rating(cls, v) -> int:
        return validate_rating(v)


class RatingRead(CamelModel):
    id: int
    rating: int
    store_id: int
    user_id: int
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class RatingAggregate(CamelModel):
    """Count and one‑decimal average of a store's ratings."""

    count: int
    average: float
