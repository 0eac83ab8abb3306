from pydantic import BaseModel
from typing import List, Literal, Optional, Union

from absence_tracker.schemas.absence import AbsenceResponse

UNLIMITED = "Unlimited"

class EntitlementBreakdown(BaseModel):
    currently_allowed: float
    future_accrue: float
    pending_for_approval: float
    approved: float

class VacationEntitlement(EntitlementBreakdown):
    type: Literal["vacation"] = "vacation"
    next_accrue_date: Optional[str] = None
    next_accrue_amount: float = 0

class SickLeaveEntitlement(EntitlementBreakdown):
    type: Literal["sick_leave"] = "sick_leave"
    remaining_with_certificate: float
    remaining_without_certificate: float

class DayOffEntitlement(BaseModel):
    type: Literal["day_off"] = "day_off"
    currently_allowed: str = UNLIMITED

class WorkFromHomeEntitlement(BaseModel):
    type: Literal["work_from_home"] = "work_from_home"
    currently_allowed: str = UNLIMITED

EntitlementDetails = Union[VacationEntitlement, SickLeaveEntitlement, DayOffEntitlement, WorkFromHomeEntitlement]

class EntitlementsResponse(BaseModel):
    entitlements: List[EntitlementDetails]
    history: List[AbsenceResponse]
