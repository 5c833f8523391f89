# models/profile.py
from sqlalchemy import Column, String, Text, Boolean, DateTime, Enum
from sqlalchemy.sql import func

from .base import Base

USER_TYPES = ("content_creator", "business_owner")


class Profile(Base):
    __tablename__ = "profiles"

    # identity id issued by the auth provider
    id = Column(String(64), primary_key=True)
    username = Column(String(64), unique=True, index=True, nullable=False)
    first_name = Column(String(100), nullable=False, default="")
    last_name = Column(String(100), nullable=False, default="")
    email = Column(String(255), nullable=True)
    phone_number = Column(String(32), nullable=True)
    city = Column(String(100), nullable=True)
    country = Column(String(100), nullable=True)
    user_type = Column(
        Enum(*USER_TYPES, name="user_type"),
        nullable=False,
        default="content_creator",
    )

    # content_creator only
    bio = Column(Text, nullable=True)
    youtube_url = Column(String(255), nullable=True)
    instagram_url = Column(String(255), nullable=True)
    tiktok_url = Column(String(255), nullable=True)
    is_public = Column(Boolean, default=False, nullable=False)
    is_collaborated = Column(Boolean, default=False, nullable=False)

    profile_photo_url = Column(String(512), nullable=True)
    is_profile_completed = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    @property
    def is_creator(self) -> bool:
        return self.user_type == "content_creator"

    @property
    def is_business(self) -> bool:
        return self.user_type == "business_owner"

    def __repr__(self):
        return f"<Profile id={self.id} username={self.username} type={self.user_type}>"
