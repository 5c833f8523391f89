# schemas/profile.py
from typing import Optional, Literal
from datetime import datetime

from pydantic import BaseModel, Field

UserType = Literal["content_creator", "business_owner"]


class ProfileRead(BaseModel):
    id: str = Field(..., description="Identity id shared with the auth provider")
    username: str
    first_name: str
    last_name: str
    email: Optional[str] = None
    phone_number: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    user_type: UserType
    bio: Optional[str] = None
    youtube_url: Optional[str] = None
    instagram_url: Optional[str] = None
    tiktok_url: Optional[str] = None
    is_public: bool
    is_collaborated: bool
    profile_photo_url: Optional[str] = None
    is_profile_completed: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ProfileBasicUpdate(BaseModel):
    first_name: Optional[str] = Field(None, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    phone_number: Optional[str] = Field(None, max_length=32)
    city: Optional[str] = Field(None, max_length=100)
    country: Optional[str] = Field(None, max_length=100)
    bio: Optional[str] = Field(None, description="Only stored for content creators")


class SocialLinksUpdate(BaseModel):
    youtube_url: Optional[str] = None
    instagram_url: Optional[str] = None
    tiktok_url: Optional[str] = None


class VisibilityUpdate(BaseModel):
    is_public: bool
    is_collaborated: bool


class UsernameAvailability(BaseModel):
    username: str
    valid: bool
    available: bool


class PhotoUploadResponse(BaseModel):
    url: str


class StatusResponse(BaseModel):
    success: bool = True
