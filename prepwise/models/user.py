from sqlalchemy import Column, String, DateTime
from sqlalchemy.orm import relationship
from datetime import datetime
from prepwise.database import Base


class User(Base):
    __tablename__ = "users"

    # Same id as the identity provider's subject claim
    id = Column(String(128), primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), index=True, nullable=True)

    # Media stored by the external providers
    profile_url = Column(String(500), nullable=True)
    resume_url = Column(String(500), nullable=True)
    vapi_file_id = Column(String(255), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    interviews = relationship("Interview", back_populates="user", cascade="all, delete-orphan")
