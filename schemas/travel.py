# schemas/travel.py
from typing import Optional, List, Literal
from datetime import date, datetime

from pydantic import BaseModel, Field

TravelStateName = Literal["upcoming", "visible", "active", "expired"]


class TravelScheduleForm(BaseModel):
    """
    Create/update payload. Every field is optional at the schema level so the
    service can answer with its own validation message instead of a 422.
    """
    start_date: Optional[date] = Field(None, description="First day of the trip (YYYY-MM-DD)")
    end_date: Optional[date] = Field(None, description="Last day of the trip (YYYY-MM-DD)")
    city: Optional[str] = Field(None, max_length=100, description="Destination city")
    country: Optional[str] = Field(None, max_length=100, description="Destination country")


class TravelScheduleRead(BaseModel):
    id: int
    profile_id: str
    start_date: date
    end_date: date
    city: str
    country: str
    state: TravelStateName
    state_label: str
    created_at: datetime
    updated_at: datetime


class CreatorWithTravel(BaseModel):
    id: str
    username: str
    first_name: str
    last_name: str
    profile_photo_url: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    bio: Optional[str] = None
    instagram_url: Optional[str] = None
    youtube_url: Optional[str] = None
    tiktok_url: Optional[str] = None
    is_collaborated: bool
    is_public: bool
    user_type: str
    is_traveling: bool = False
    travel_city: Optional[str] = None
    travel_country: Optional[str] = None
    travel_start_date: Optional[date] = None
    travel_end_date: Optional[date] = None
    travel_state: Optional[TravelStateName] = None


class CreatorDirectory(BaseModel):
    total: int = Field(..., description="All public creators")
    count: int = Field(..., description="Creators left after filters")
    creators: List[CreatorWithTravel]


class SweepRequest(BaseModel):
    password: str


class SweepResponse(BaseModel):
    deleted: int
