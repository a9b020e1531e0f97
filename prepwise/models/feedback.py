from sqlalchemy import Column, String, DateTime, Float, Text, ForeignKey, JSON
from datetime import datetime
from prepwise.database import Base


class Feedback(Base):
    __tablename__ = "feedback"

    id = Column(String(64), primary_key=True, index=True)
    interview_id = Column(String(64), ForeignKey("interviews.id"), nullable=False, index=True)
    user_id = Column(String(128), ForeignKey("users.id"), nullable=False, index=True)

    total_score = Column(Float, nullable=False)
    category_scores = Column(JSON, nullable=False)  # {category name: score}
    strengths = Column(JSON, nullable=False, default=list)
    areas_for_improvement = Column(JSON, nullable=False, default=list)
    final_assessment = Column(Text, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)
