"""Feedback pipeline: transcript -> language model assessment -> stored report."""

import logging
import uuid
from datetime import datetime
from typing import Callable, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from prepwise.constants import FEEDBACK_SYSTEM_INSTRUCTION, RUBRIC_DESCRIPTIONS
from prepwise.database import SessionLocal
from prepwise.errors import FeedbackGenerationError, FeedbackOwnershipError
from prepwise.models.feedback import Feedback
from prepwise.models.user import User
from prepwise.schemas.feedback import (
    FeedbackReport,
    FeedbackRequest,
    FeedbackResult,
    TranscriptEntry,
)

logger = logging.getLogger("prepwise.feedback")


def format_transcript(transcript: List[TranscriptEntry]) -> str:
    """One line per entry, in call order, prefixed by the speaker role."""
    return "".join(f"- {entry.role}: {entry.content}\n" for entry in transcript)


def build_feedback_prompt(formatted_transcript: str, resume_text: Optional[str] = None) -> str:
    rubric = "\n".join(
        f"- **{category.value}**: {description}"
        for category, description in RUBRIC_DESCRIPTIONS.items()
    )
    prompt = f"""You are an AI interviewer analyzing a mock interview. Your task is to evaluate the candidate based on structured categories. Be thorough and detailed in your analysis. Don't be lenient with the candidate. If there are mistakes or areas for improvement, point them out.
Transcript:
{formatted_transcript}
Please score the candidate from 0 to 100 in the following areas. Do not add categories other than the ones provided:
{rubric}
"""
    if resume_text:
        prompt += f"\nCandidate resume (context only, do not score it):\n{resume_text[:4000]}\n"
    return prompt


def save_feedback(db: Session, report: FeedbackReport, feedback_id: Optional[str] = None) -> str:
    """Overwrite the record at feedback_id if given, otherwise create a new one.

    Raises:
        FeedbackOwnershipError: If feedback_id names another user's or another interview's record
    """
    feedback = db.get(Feedback, feedback_id) if feedback_id else None
    if feedback is not None and (feedback.user_id != report.user_id or feedback.interview_id != report.interview_id):
        raise FeedbackOwnershipError(f"feedback {feedback_id} belongs to another user or interview")
    if feedback is None:
        feedback = Feedback(id=feedback_id or uuid.uuid4().hex)
        db.add(feedback)

    for field, value in report.model_dump().items():
        setattr(feedback, field, value)

    db.commit()
    db.refresh(feedback)
    return feedback.id


def get_feedback(db: Session, feedback_id: str) -> Optional[Feedback]:
    return db.get(Feedback, feedback_id)


def get_feedback_by_interview_id(db: Session, interview_id: str, user_id: str) -> Optional[Feedback]:
    """Latest feedback a user received for an interview."""
    return (
        db.query(Feedback)
        .filter(Feedback.interview_id == interview_id, Feedback.user_id == user_id)
        .order_by(Feedback.created_at.desc())
        .first()
    )


class FeedbackService:
    """Runs the feedback pipeline and reports only success or failure."""

    def __init__(self, model, session_factory: Callable[[], Session] = SessionLocal,
                 resume_client=None, clock: Callable[[], datetime] = datetime.utcnow):
        self.model = model
        self.session_factory = session_factory
        self.resume_client = resume_client
        self.clock = clock

    async def generate_feedback(self, request: FeedbackRequest) -> FeedbackResult:
        try:
            feedback_id = await self._generate(request)
        except FeedbackGenerationError as e:
            logger.error("[Feedback] %s failure for interview %s: %s", e.stage, request.interview_id, e)
            return FeedbackResult(success=False)

        logger.info("[Feedback] Saved feedback %s for interview %s", feedback_id, request.interview_id)
        return FeedbackResult(success=True, feedback_id=feedback_id)

    async def _generate(self, request: FeedbackRequest) -> str:
        try:
            db = self.session_factory()
        except SQLAlchemyError as e:
            raise FeedbackGenerationError(str(e), stage="persistence") from e

        try:
            resume_text = await self._resume_text(db, request.user_id)
            prompt = build_feedback_prompt(format_transcript(request.transcript), resume_text)

            try:
                assessment = await self.model.assess(FEEDBACK_SYSTEM_INSTRUCTION, prompt)
                report = FeedbackReport.from_assessment(
                    assessment,
                    interview_id=request.interview_id,
                    user_id=request.user_id,
                    created_at=self.clock(),
                )
            except Exception as e:
                raise FeedbackGenerationError(str(e), stage="model") from e

            try:
                return save_feedback(db, report, request.feedback_id)
            except (SQLAlchemyError, FeedbackOwnershipError) as e:
                db.rollback()
                raise FeedbackGenerationError(str(e), stage="persistence") from e
        finally:
            db.close()

    async def _resume_text(self, db: Session, user_id: str) -> Optional[str]:
        if self.resume_client is None:
            return None
        try:
            user = db.get(User, user_id)
        except SQLAlchemyError as e:
            # Resume context is optional
            logger.warning("[Feedback] Could not load user %s for resume context: %s", user_id, e)
            db.rollback()
            return None
        if user is None or not user.vapi_file_id:
            return None
        return await self.resume_client.get_file_text(user.vapi_file_id)
