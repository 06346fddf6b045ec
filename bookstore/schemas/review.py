"""
Review Schemas
"""
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from bookstore.models.review import MAX_RATING, MIN_RATING


class ReviewCreate(BaseModel):
    model_config = ConfigDict(strict=True)

    rating: int = Field(..., ge=MIN_RATING, le=MAX_RATING)
    comment: Optional[str] = None


class ReviewUpdate(BaseModel):
    model_config = ConfigDict(strict=True, extra="forbid")

    rating: Optional[int] = Field(None, ge=MIN_RATING, le=MAX_RATING)
    comment: Optional[str] = None
