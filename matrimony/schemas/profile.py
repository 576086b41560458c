from pydantic import BaseModel
from uuid import UUID
from datetime import date, datetime
from typing import Optional, Any

from matrimony.models.connection import ConnectionState
from matrimony.schemas.match import ScoreDetail

class PhotoView(BaseModel):
    url: Optional[str] = None
    title: Optional[str] = None
    is_blurred: bool = False

class PhotoSet(BaseModel):
    closer_photo: Optional[PhotoView] = None
    personal_photos: list[PhotoView] = []
    family_photo: Optional[PhotoView] = None
    other_photos: list[PhotoView] = []
    government_id_image: Optional[PhotoView] = None  # admin viewers only

class DetailedProfile(BaseModel):
    user_id: UUID
    first_name: Optional[str] = None
    middle_name: Optional[str] = None
    last_name: Optional[str] = None
    gender: Optional[str] = None
    age: Optional[int] = None
    date_of_birth: Optional[date] = None
    custom_id: Optional[str] = None
    email: str
    phone_number: str
    is_favorite: bool = False
    status: ConnectionState = ConnectionState.NONE
    score_detail: Optional[ScoreDetail] = None
    created_at: Optional[datetime] = None
    personal: dict[str, Any] = {}
    family: dict[str, Any] = {}
    education: dict[str, Any] = {}
    professional: dict[str, Any] = {}
    health_and_lifestyle: dict[str, Any] = {}
    photos: PhotoSet = PhotoSet()
