# schemas/job.py
from typing import Optional, List
from datetime import date, time, datetime

from pydantic import BaseModel, Field


class JobPostingForm(BaseModel):
    title: str = Field("", max_length=200)
    description: str = ""
    has_deadline: bool = False
    deadline_date: Optional[date] = None
    deadline_time: Optional[time] = None


class JobPostingRead(BaseModel):
    id: int
    slug: str
    title: str
    description: str
    has_deadline: bool
    deadline_date: Optional[date] = None
    deadline_time: Optional[time] = None
    profile_id: str
    owner_username: str
    owner_first_name: str
    owner_last_name: str
    owner_city: Optional[str] = None
    owner_country: Optional[str] = None
    owner_profile_photo_url: Optional[str] = None
    created_at: datetime
    is_saved: bool = False
    deadline_passed: bool = False

    class Config:
        from_attributes = True


class Applicant(BaseModel):
    id: str
    username: str
    first_name: str
    last_name: str
    profile_photo_url: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    created_at: datetime = Field(..., description="When the application was made")


class JobPostingDetail(JobPostingRead):
    is_applied: bool = False
    is_owner: bool = False
    applicants: List[Applicant] = []


class SaveJobResponse(BaseModel):
    saved: bool


class ApplyJobResponse(BaseModel):
    applied: bool
