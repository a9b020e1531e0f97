from prepwise.schemas.user import UserResponse
from prepwise.schemas.interview import InterviewCreate, InterviewResponse
from prepwise.schemas.feedback import (
    RUBRIC_CATEGORIES,
    RubricCategory,
    TranscriptEntry,
    FeedbackRequest,
    FeedbackResult,
    CategoryScore,
    FeedbackAssessment,
    FeedbackReport,
    FeedbackResponse,
)

__all__ = [
    "UserResponse",
    "InterviewCreate",
    "InterviewResponse",
    "RUBRIC_CATEGORIES",
    "RubricCategory",
    "TranscriptEntry",
    "FeedbackRequest",
    "FeedbackResult",
    "CategoryScore",
    "FeedbackAssessment",
    "FeedbackReport",
    "FeedbackResponse",
]
