# models/job_application.py
from sqlalchemy import Column, BigInteger, String, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from .base import Base


class JobApplication(Base):
    __tablename__ = "job_applications"

    id = Column(BigInteger, primary_key=True, index=True)
    profile_id = Column(
        String(64),
        ForeignKey("profiles.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    job_posting_id = Column(
        BigInteger,
        ForeignKey("job_postings.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        UniqueConstraint("profile_id", "job_posting_id", name="uq_job_applications_profile_job"),
    )

    applicant = relationship("Profile", foreign_keys=[profile_id])

    def __repr__(self) -> str:
        return f"<JobApplication {self.profile_id}→{self.job_posting_id}>"
