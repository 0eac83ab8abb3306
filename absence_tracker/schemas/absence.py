from pydantic import BaseModel, ConfigDict
from datetime import date, datetime
from typing import List, Optional

class AbsenceFileResponse(BaseModel):
    id: int
    absence_id: int
    original_name: str
    mime_type: Optional[str] = None
    size: int
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

class AbsenceUser(BaseModel):
    id: int
    email: str
    full_name: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)

class AbsenceResponse(BaseModel):
    id: int
    user_id: int
    type: str
    start_date: date
    end_date: date
    status: str
    has_certificate: bool
    files: List[AbsenceFileResponse] = []
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

class AbsenceWithUserResponse(AbsenceResponse):
    user: Optional[AbsenceUser] = None

class PendingAbsenceResponse(AbsenceWithUserResponse):
    is_backdated: bool = False
