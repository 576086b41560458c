from pydantic import BaseModel, Field
from uuid import UUID
from datetime import date, datetime
from typing import Optional

from matrimony.models.connection import ConnectionState

class ScoreDetail(BaseModel):
    score: int = Field(ge=1, le=100)
    reasons: list[str] = []

class CloserPhoto(BaseModel):
    url: Optional[str] = None

class ListingProfile(BaseModel):
    user_id: UUID
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    age: Optional[int] = None
    status: ConnectionState = ConnectionState.NONE
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None
    religion: Optional[str] = None
    sub_caste: Optional[str] = None
    profession: Optional[str] = None
    is_favorite: bool = False
    closer_photo: CloserPhoto = CloserPhoto()
    created_at: Optional[datetime] = None

class MatchResult(BaseModel):
    user: ListingProfile
    score_detail: ScoreDetail

class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int
    has_next: bool

class MatchPage(BaseModel):
    results: list[MatchResult]
    pagination: Pagination

class WeeklyViewCount(BaseModel):
    week_start_date: date
    week_number: int
    count: int
