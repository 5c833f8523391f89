# models/job_posting.py
from sqlalchemy import Column, BigInteger, String, Text, Boolean, Date, Time, DateTime, ForeignKey
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from .base import Base


class JobPosting(Base):
    __tablename__ = "job_postings"

    id = Column(BigInteger, primary_key=True, index=True)
    profile_id = Column(
        String(64),
        ForeignKey("profiles.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=False)
    has_deadline = Column(Boolean, default=False, nullable=False)
    deadline_date = Column(Date, nullable=True)
    deadline_time = Column(Time, nullable=True)
    slug = Column(String(255), unique=True, index=True, nullable=False)

    # Owner snapshot, refreshed when the owner's profile changes
    owner_username = Column(String(64), nullable=False)
    owner_first_name = Column(String(100), nullable=False, default="")
    owner_last_name = Column(String(100), nullable=False, default="")
    owner_city = Column(String(100), nullable=True)
    owner_country = Column(String(100), nullable=True)
    owner_profile_photo_url = Column(String(512), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    owner = relationship("Profile", foreign_keys=[profile_id])

    def __repr__(self) -> str:
        return f"<JobPosting slug={self.slug} owner={self.profile_id}>"
