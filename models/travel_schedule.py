# models/travel_schedule.py
from sqlalchemy import Column, BigInteger, String, Date, DateTime, ForeignKey
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from .base import Base


class TravelSchedule(Base):
    __tablename__ = "travel_schedules"

    id = Column(BigInteger, primary_key=True, index=True)
    profile_id = Column(
        String(64),
        ForeignKey("profiles.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False, index=True)
    city = Column(String(100), nullable=False)
    country = Column(String(100), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    profile = relationship("Profile", foreign_keys=[profile_id])

    def __repr__(self) -> str:
        return f"<TravelSchedule {self.profile_id} {self.city}, {self.country} {self.start_date}..{self.end_date}>"
