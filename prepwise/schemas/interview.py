from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel
from typing import List, Optional
from datetime import datetime


class InterviewCreate(BaseModel):
    role: str = Field(min_length=1)
    type: str = "technical"
    level: Optional[str] = None
    techstack: List[str] = Field(default_factory=list)
    questions: List[str] = Field(default_factory=list)

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class InterviewResponse(BaseModel):
    id: str
    user_id: str
    role: str
    type: str
    level: Optional[str]
    techstack: List[str]
    questions: List[str]
    status: str
    finalized: bool
    created_at: datetime

    class Config:
        from_attributes = True
        alias_generator = to_camel
        populate_by_name = True
