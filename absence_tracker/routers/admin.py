from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from absence_tracker.database import get_db
from absence_tracker.models.absence import AbsenceStatus
from absence_tracker.models.user import User
from absence_tracker.routers.auth_deps import require_admin
from absence_tracker.schemas.absence import AbsenceWithUserResponse, PendingAbsenceResponse
from absence_tracker.schemas.settings import (
    PolicySettingsResponse,
    PolicySettingsUpdate,
    SettingsChangeLogResponse,
)
from absence_tracker.services.approval import ApprovalService
from absence_tracker.services.policy_store import PolicyStore

router = APIRouter(
    prefix="/admin",
    tags=["admin"],
    dependencies=[Depends(require_admin)]
)


# --- Policy settings ---

@router.get("/settings", response_model=PolicySettingsResponse)
def get_settings(db: Session = Depends(get_db)):
    return PolicyStore(db).get_settings()


@router.put("/settings", response_model=PolicySettingsResponse)
def update_settings(
    data: PolicySettingsUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    return PolicyStore(db).update_settings(data, current_user)


@router.get("/settings/logs", response_model=List[SettingsChangeLogResponse])
def get_settings_logs(db: Session = Depends(get_db)):
    return PolicyStore(db).list_change_logs()


# --- Approval workflow ---

@router.get("/pending-requests-count")
def pending_requests_count(db: Session = Depends(get_db)):
    return {"count": ApprovalService(db).count_pending()}


@router.get("/pending-requests", response_model=List[PendingAbsenceResponse])
def pending_requests(db: Session = Depends(get_db)):
    """Pending absences, newest request first, flagged when they started before today."""
    return [
        PendingAbsenceResponse.model_validate(absence).model_copy(update={"is_backdated": is_backdated})
        for absence, is_backdated in ApprovalService(db).pending_requests()
    ]


@router.patch("/requests/{absence_id}/approve", response_model=AbsenceWithUserResponse)
def approve_request(absence_id: int, db: Session = Depends(get_db)):
    return ApprovalService(db).set_status(absence_id, AbsenceStatus.APPROVED)


@router.patch("/requests/{absence_id}/reject", response_model=AbsenceWithUserResponse)
def reject_request(absence_id: int, db: Session = Depends(get_db)):
    return ApprovalService(db).set_status(absence_id, AbsenceStatus.REJECTED)
