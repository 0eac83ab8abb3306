from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from absence_tracker.database import get_db
from absence_tracker.models.user import User
from absence_tracker.routers.auth_deps import get_current_user
from absence_tracker.schemas.entitlement import EntitlementsResponse
from absence_tracker.services.entitlement_service import EntitlementService

router = APIRouter(prefix="/entitlements", tags=["entitlements"])


@router.get("/me", response_model=EntitlementsResponse)
def my_entitlements(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Entitlement breakdown per absence type plus the full absence history."""
    entitlements, history = EntitlementService(db).get_all_entitlements(current_user.id)
    return EntitlementsResponse(entitlements=entitlements, history=history)
