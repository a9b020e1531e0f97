from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session
from typing import List
from prepwise.database import get_db
from prepwise.models.user import User
from prepwise.schemas.interview import InterviewCreate, InterviewResponse
from prepwise.schemas.feedback import FeedbackResponse
from prepwise.dependencies import get_current_user
from prepwise.services.interviews import (
    create_interview,
    get_interview,
    get_interviews_by_user,
    get_latest_interviews,
)
from prepwise.services.feedback import get_feedback_by_interview_id

router = APIRouter(prefix="/api/interviews", tags=["interviews"])


@router.post("", response_model=InterviewResponse, status_code=status.HTTP_201_CREATED)
async def create(
    data: InterviewCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Create an interview with its prepared questions."""
    if not any(q.strip() for q in data.questions):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="At least one question is required",
        )
    return create_interview(
        db,
        current_user,
        role=data.role,
        type=data.type,
        questions=data.questions,
        techstack=data.techstack,
        level=data.level,
    )


@router.get("", response_model=List[InterviewResponse])
async def list_mine(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Interviews created by the current user, newest first."""
    return get_interviews_by_user(db, current_user.id)


@router.get("/latest", response_model=List[InterviewResponse])
async def list_latest(
    limit: int = Query(20, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Latest finalized interviews from other users."""
    return get_latest_interviews(db, current_user.id, limit=limit)


@router.get("/{interview_id}", response_model=InterviewResponse)
async def get_one(
    interview_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    interview = get_interview(db, interview_id)
    if not interview:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Interview not found")
    return interview


@router.get("/{interview_id}/feedback", response_model=FeedbackResponse)
async def get_interview_feedback(
    interview_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """The current user's feedback for an interview."""
    feedback = get_feedback_by_interview_id(db, interview_id, current_user.id)
    if not feedback:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Feedback not found")
    return feedback
