from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from prepwise.database import get_db
from prepwise.models.user import User
from prepwise.schemas.feedback import FeedbackRequest, FeedbackResult, FeedbackResponse
from prepwise.dependencies import get_current_user, get_feedback_service
from prepwise.services.feedback import FeedbackService, get_feedback

router = APIRouter(prefix="/api/feedback", tags=["feedback"])


@router.post("", response_model=FeedbackResult, response_model_exclude_none=True)
async def create_feedback(
    request: FeedbackRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    service: FeedbackService = Depends(get_feedback_service),
):
    """Score a finished interview transcript and store the report."""
    existing = get_feedback(db, request.feedback_id) if request.feedback_id else None
    if request.user_id != current_user.id or (existing and existing.user_id != current_user.id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Cannot create feedback for another user",
        )
    return await service.generate_feedback(request)


@router.get("/{feedback_id}", response_model=FeedbackResponse)
async def get_one(
    feedback_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    feedback = get_feedback(db, feedback_id)
    if not feedback:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Feedback not found")
    if feedback.user_id != current_user.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not your feedback")
    return feedback
