# exam_portal/schemas/handout_schemas.py
from typing import Optional

from pydantic import BaseModel

from .exam_schemas import InstructorInfo, UserProfile


class HandoutContext(BaseModel):
    course: str
    week: int
    title: str
    class_id: Optional[int] = None
    user_role: str
    user: UserProfile
    instructor: InstructorInfo
