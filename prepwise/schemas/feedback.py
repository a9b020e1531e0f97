from enum import Enum
from pydantic import BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel
from typing import Dict, List, Literal, Optional
from datetime import datetime


class RubricCategory(str, Enum):
    """The fixed evaluation dimensions, each scored 0-100."""
    COMMUNICATION_SKILLS = "Communication Skills"
    TECHNICAL_KNOWLEDGE = "Technical Knowledge"
    PROBLEM_SOLVING = "Problem-Solving"
    CULTURAL_ROLE_FIT = "Cultural & Role Fit"
    CONFIDENCE_CLARITY = "Confidence & Clarity"


RUBRIC_CATEGORIES = [category.value for category in RubricCategory]


class TranscriptEntry(BaseModel):
    """One finalized utterance. Immutable once appended."""
    role: Literal["user", "system", "assistant"]
    content: str

    class Config:
        frozen = True


class FeedbackRequest(BaseModel):
    interview_id: str = Field(min_length=1)
    user_id: str = Field(min_length=1)
    transcript: List[TranscriptEntry]
    feedback_id: Optional[str] = None

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class FeedbackResult(BaseModel):
    success: bool
    feedback_id: Optional[str] = None

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class CategoryScore(BaseModel):
    name: RubricCategory
    score: float = Field(ge=0, le=100)
    comment: str = ""


class FeedbackAssessment(BaseModel):
    """Shape the language model must answer with."""
    total_score: float = Field(ge=0, le=100)
    category_scores: List[CategoryScore] = Field(min_length=5, max_length=5)
    strengths: List[str]
    areas_for_improvement: List[str]
    final_assessment: str

    @field_validator("category_scores")
    @classmethod
    def _exactly_the_rubric(cls, value: List[CategoryScore]) -> List[CategoryScore]:
        names = [item.name for item in value]
        if len(set(names)) != len(names) or set(names) != set(RubricCategory):
            raise ValueError(
                f"category_scores must cover exactly {RUBRIC_CATEGORIES}, got {[n.value for n in names]}"
            )
        return value

    def scores_by_category(self) -> Dict[str, float]:
        return {item.name.value: item.score for item in self.category_scores}


class FeedbackReport(BaseModel):
    """A stamped assessment, ready to persist."""
    interview_id: str
    user_id: str
    total_score: float = Field(ge=0, le=100)
    category_scores: Dict[str, float]
    strengths: List[str]
    areas_for_improvement: List[str]
    final_assessment: str
    created_at: datetime

    @field_validator("category_scores")
    @classmethod
    def _scores_in_range(cls, value: Dict[str, float]) -> Dict[str, float]:
        if set(value) != set(RUBRIC_CATEGORIES):
            raise ValueError(f"category_scores keys must be exactly {RUBRIC_CATEGORIES}")
        for name, score in value.items():
            if not 0 <= score <= 100:
                raise ValueError(f"{name} score {score} outside 0-100")
        return value

    @classmethod
    def from_assessment(cls, assessment: FeedbackAssessment, interview_id: str,
                        user_id: str, created_at: datetime) -> "FeedbackReport":
        return cls(
            interview_id=interview_id,
            user_id=user_id,
            total_score=assessment.total_score,
            category_scores=assessment.scores_by_category(),
            strengths=assessment.strengths,
            areas_for_improvement=assessment.areas_for_improvement,
            final_assessment=assessment.final_assessment,
            created_at=created_at,
        )


class FeedbackResponse(BaseModel):
    id: str
    interview_id: str
    user_id: str
    total_score: float
    category_scores: Dict[str, float]
    strengths: List[str]
    areas_for_improvement: List[str]
    final_assessment: str
    created_at: datetime

    class Config:
        from_attributes = True
        alias_generator = to_camel
        populate_by_name = True
