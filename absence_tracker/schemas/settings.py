from pydantic import BaseModel, ConfigDict, Field, StrictInt
from datetime import datetime
from typing import Optional

class PolicySettingsBase(BaseModel):
    vacation_future_accrue_days: float = Field(ge=0)
    sick_leave_without_certificate_limit: StrictInt = Field(ge=0)
    sick_leave_with_certificate_limit: StrictInt = Field(ge=0)
    vacation_carryover_limit: StrictInt = Field(ge=0)

class PolicySettingsUpdate(PolicySettingsBase):
    pass

class PolicySettingsResponse(PolicySettingsBase):
    id: str
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

class ChangeLogAdmin(BaseModel):
    id: int
    email: str
    full_name: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)

class SettingsChangeLogResponse(BaseModel):
    id: int
    settings_id: str
    admin_id: int
    admin: Optional[ChangeLogAdmin] = None
    previous_vacation_future_accrue: float
    new_vacation_future_accrue: float
    previous_sick_leave_without_certificate_limit: int
    new_sick_leave_without_certificate_limit: int
    previous_sick_leave_with_certificate_limit: int
    new_sick_leave_with_certificate_limit: int
    previous_vacation_carryover_limit: int
    new_vacation_carryover_limit: int
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
