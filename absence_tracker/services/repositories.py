"""
Data access for users, absences and certificate metadata.

Services never build queries themselves; every lookup the accrual,
admission and approval services need lives here, mostly as a filter on `find`.
"""
from datetime import date
from typing import Iterable, List, Optional, Sequence, Tuple

from sqlalchemy import or_
from sqlalchemy.orm import Session, selectinload

from absence_tracker.models.absence import Absence, AbsenceFile, AbsenceStatus, AbsenceType
from absence_tracker.models.user import User

DateRange = Tuple[date, date]


class UserRepository:
    def __init__(self, db: Session):
        self.db = db

    def get(self, user_id: int) -> Optional[User]:
        return self.db.get(User, user_id)


class AbsenceRepository:
    def __init__(self, db: Session):
        self.db = db

    def get(self, absence_id: int) -> Optional[Absence]:
        return self.db.get(Absence, absence_id)

    def find(
        self,
        user_id: Optional[int] = None,
        absence_type: Optional[AbsenceType] = None,
        statuses: Optional[Sequence[AbsenceStatus]] = None,
        exclude_status: Optional[AbsenceStatus] = None,
        overlapping: Optional[DateRange] = None,
        overlapping_any: Optional[Iterable[DateRange]] = None,
        starting_between: Optional[DateRange] = None,
        with_certificate: Optional[bool] = None,
        user_ids: Optional[Sequence[int]] = None,
        newest_first: bool = False,
    ) -> List[Absence]:
        """
        Filter absences. Ranges are inclusive; an absence overlaps [a, b]
        when start_date <= b and end_date >= a.
        """
        query = self.db.query(Absence).options(selectinload(Absence.files))

        if user_id is not None:
            query = query.filter(Absence.user_id == user_id)
        if user_ids:
            query = query.filter(Absence.user_id.in_(list(user_ids)))
        if absence_type is not None:
            query = query.filter(Absence.type == AbsenceType(absence_type).value)
        if statuses:
            query = query.filter(Absence.status.in_([AbsenceStatus(s).value for s in statuses]))
        if exclude_status is not None:
            query = query.filter(Absence.status != AbsenceStatus(exclude_status).value)
        if overlapping is not None:
            range_start, range_end = overlapping
            query = query.filter(Absence.start_date <= range_end, Absence.end_date >= range_start)
        if overlapping_any:
            query = query.filter(or_(*[
                (Absence.start_date <= range_end) & (Absence.end_date >= range_start)
                for range_start, range_end in overlapping_any
            ]))
        if starting_between is not None:
            range_start, range_end = starting_between
            query = query.filter(Absence.start_date >= range_start, Absence.start_date <= range_end)
        if with_certificate is True:
            query = query.filter(Absence.files.any())
        elif with_certificate is False:
            query = query.filter(~Absence.files.any())

        if newest_first:
            query = query.order_by(Absence.start_date.desc(), Absence.id.desc())
        else:
            query = query.order_by(Absence.start_date.asc(), Absence.id.asc())
        return query.all()

    def list_pending(self) -> List[Absence]:
        """Pending absences with their requester, most recently requested first."""
        return (
            self.db.query(Absence)
            .options(selectinload(Absence.files), selectinload(Absence.user))
            .filter(Absence.status == AbsenceStatus.PENDING.value)
            .order_by(Absence.created_at.desc(), Absence.id.desc())
            .all()
        )

    def count_pending(self) -> int:
        return self.db.query(Absence).filter(Absence.status == AbsenceStatus.PENDING.value).count()

    def create(self, user_id: int, absence_type: AbsenceType, start_date: date, end_date: date) -> Absence:
        absence = Absence(
            user_id=user_id,
            type=AbsenceType(absence_type).value,
            start_date=start_date,
            end_date=end_date,
            status=AbsenceStatus.PENDING.value,
        )
        self.db.add(absence)
        self.db.flush()
        return absence

    def update_status(self, absence_id: int, status: AbsenceStatus) -> Optional[Absence]:
        absence = self.get(absence_id)
        if absence is None:
            return None
        absence.status = AbsenceStatus(status).value
        self.db.flush()
        return absence

    def delete(self, absence: Absence):
        self.db.delete(absence)
        self.db.flush()

    # --- Certificate metadata ---

    def add_file(
        self,
        absence: Absence,
        file_name: str,
        original_name: str,
        mime_type: Optional[str],
        size: int,
        storage_path: str,
    ) -> AbsenceFile:
        row = AbsenceFile(
            file_name=file_name,
            original_name=original_name,
            mime_type=mime_type,
            size=size,
            storage_path=storage_path,
        )
        absence.files.append(row)
        self.db.flush()
        return row

    def get_file(self, file_id: int) -> Optional[AbsenceFile]:
        return (
            self.db.query(AbsenceFile)
            .options(selectinload(AbsenceFile.absence))
            .filter(AbsenceFile.id == file_id)
            .first()
        )

    def delete_file_row(self, row: AbsenceFile):
        absence = row.absence
        if absence is not None and row in absence.files:
            absence.files.remove(row)
        else:
            self.db.delete(row)
        self.db.flush()
