from sqlalchemy import Column, String, DateTime, Boolean, ForeignKey, JSON
from sqlalchemy.orm import relationship
from datetime import datetime
from prepwise.database import Base


class Interview(Base):
    __tablename__ = "interviews"

    id = Column(String(64), primary_key=True, index=True)
    user_id = Column(String(128), ForeignKey("users.id"), nullable=False, index=True)

    role = Column(String(255), nullable=False)
    type = Column(String(50), nullable=False)  # technical, behavioral, mixed
    level = Column(String(50), nullable=True)
    techstack = Column(JSON, nullable=False, default=list)
    questions = Column(JSON, nullable=False, default=list)

    status = Column(String(20), default="pending", nullable=False)
    finalized = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)

    user = relationship("User", back_populates="interviews")
