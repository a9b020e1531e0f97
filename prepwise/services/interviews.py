"""Interview records: creation and the listing queries the dashboard uses."""

import uuid
from typing import List, Optional
from sqlalchemy.orm import Session
from prepwise.models.interview import Interview
from prepwise.models.user import User


def create_interview(
    db: Session,
    user: User,
    role: str,
    type: str,
    questions: List[str],
    techstack: Optional[List[str]] = None,
    level: Optional[str] = None,
) -> Interview:
    """Create a new interview record."""
    interview = Interview(
        id=uuid.uuid4().hex,
        user_id=user.id,
        role=role.strip(),
        type=type,
        level=level,
        techstack=[t.strip() for t in (techstack or []) if t.strip()],
        questions=[q.strip() for q in questions if q.strip()],
        status="pending",
        finalized=True,
    )
    db.add(interview)
    db.commit()
    db.refresh(interview)
    return interview


def get_interview(db: Session, interview_id: str) -> Optional[Interview]:
    return db.get(Interview, interview_id)


def get_interviews_by_user(db: Session, user_id: str) -> List[Interview]:
    return (
        db.query(Interview)
        .filter(Interview.user_id == user_id)
        .order_by(Interview.created_at.desc())
        .all()
    )


def get_latest_interviews(db: Session, user_id: str, limit: int = 20) -> List[Interview]:
    """Finalized interviews created by other users, newest first."""
    return (
        db.query(Interview)
        .filter(Interview.finalized.is_(True), Interview.user_id != user_id)
        .order_by(Interview.created_at.desc())
        .limit(limit)
        .all()
    )
