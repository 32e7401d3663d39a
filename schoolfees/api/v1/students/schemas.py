from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class StudentCreate(BaseModel):
    first_name: str = Field(..., min_length=1, max_length=100)
    surname: str = Field(..., min_length=1, max_length=100)
    class_id: str = Field(..., min_length=1)
    class_name: Optional[str] = None


class StudentProfileResponse(BaseModel):
    id: str
    first_name: str
    surname: str
    class_id: str
    class_name: Optional[str] = None
    is_active: bool = True
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.surname}".strip()
