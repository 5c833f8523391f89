# models/credential.py
from sqlalchemy import Column, String, Integer, DateTime
from sqlalchemy.sql import func

from .base import Base


class PasswordCredential(Base):
    __tablename__ = "password_credentials"

    # identity id, shared with the profile row
    id = Column(String(64), primary_key=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    # bumped on every reset, older reset links stop working
    password_version = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    def __repr__(self):
        return f"<PasswordCredential id={self.id} email={self.email}>"
