from pydantic import Field, StrictInt
from typing import List, Optional
from datetime import datetime
from lupora.schemas.common import CamelModel, SanitizedStr


class ReviewCreate(CamelModel):
    rating: StrictInt = Field(..., ge=1, le=5)
    comment: Optional[SanitizedStr] = Field(default=None, max_length=1000)


class ReviewResponse(CamelModel):
    id: str
    user_name: str
    rating: int
    comment: Optional[str] = None
    created_at: datetime


class ReviewListResponse(CamelModel):
    reviews: List[ReviewResponse]
    average_rating: float
    count: int
