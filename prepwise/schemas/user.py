from pydantic import BaseModel
from pydantic.alias_generators import to_camel
from typing import Optional
from datetime import datetime


class UserResponse(BaseModel):
    id: str
    name: str
    email: Optional[str]
    profile_url: Optional[str]
    resume_url: Optional[str]
    created_at: datetime

    class Config:
        from_attributes = True
        alias_generator = to_camel
        populate_by_name = True
