from datetime import date
from typing import List, Optional, Tuple

from absence_tracker.core.exceptions import NotFoundError
from absence_tracker.models.absence import Absence, AbsenceStatus
from absence_tracker.services.base import BaseService
from absence_tracker.services.repositories import AbsenceRepository


class ApprovalService(BaseService):
    """Admin review of absence requests."""

    def __init__(self, db):
        super().__init__(db)
        self.absences = AbsenceRepository(db)

    def pending_requests(self, today: Optional[date] = None) -> List[Tuple[Absence, bool]]:
        """Each pending absence paired with whether it started before today."""
        today = today or date.today()
        return [(absence, absence.start_date < today) for absence in self.absences.list_pending()]

    def count_pending(self) -> int:
        return self.absences.count_pending()

    def set_status(self, absence_id: int, new_status: AbsenceStatus) -> Absence:
        absence = self.absences.update_status(absence_id, new_status)
        if absence is None:
            raise NotFoundError("Absence", absence_id)
        self.commit()
        self.db.refresh(absence)
        self.log_info(f"Absence {absence_id} {AbsenceStatus(new_status).value}")
        return absence
