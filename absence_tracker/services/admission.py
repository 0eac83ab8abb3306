"""
Admission Service

Decides whether a new absence request may be created and manages the
certificates attached to sick-leave absences afterwards.

Gates run in a fixed order and the first failure aborts the request with
a PolicyRejection; nothing is written until every gate has passed.
Certificate files are stored only after the absence row exists, and a
failure while storing them removes the row again.
"""
from datetime import date, timedelta
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from absence_tracker.core.config import AdmissionRules, settings as app_settings
from absence_tracker.core.dates import (
    add_working_days,
    count_calendar_days,
    count_working_days,
    count_working_days_within_range,
    has_completed_trial_period,
    year_bounds,
)
from absence_tracker.core.exceptions import (
    AccessDeniedError,
    NotFoundError,
    PolicyRejection,
    StorageFailure,
    ValidationError,
)
from absence_tracker.models.absence import Absence, AbsenceFile, AbsenceStatus, AbsenceType
from absence_tracker.models.policy_settings import PolicySettings
from absence_tracker.models.user import User
from absence_tracker.services.base import BaseService
from absence_tracker.services.policy_store import PolicyStore
from absence_tracker.services.repositories import AbsenceRepository, UserRepository
from absence_tracker.services.storage import LocalStorageService, StoredFile, UploadedFile


class AdmissionService(BaseService):
    def __init__(
        self,
        db: Session,
        storage: Optional[LocalStorageService] = None,
        rules: Optional[AdmissionRules] = None,
    ):
        super().__init__(db)
        self.storage = storage or LocalStorageService()
        self.rules = rules or app_settings.rules
        self.users = UserRepository(db)
        self.absences = AbsenceRepository(db)

    def _reject(self, message: str, rule: str):
        self.log_info(f"Absence request rejected: {message}", rule=rule)
        raise PolicyRejection(message, rule=rule)

    # --- Admission ---

    def admit(
        self,
        user_id: int,
        absence_type: str,
        start_date: Optional[date],
        end_date: Optional[date],
        files: Optional[Sequence[UploadedFile]] = None,
        today: Optional[date] = None,
        policy: Optional[PolicySettings] = None,
    ) -> Absence:
        """Run every gate and, if all pass, persist the absence as pending."""
        today = today or date.today()
        files = list(files or [])
        absence_type = self._validate_request(absence_type, start_date, end_date)

        user = self.users.get(user_id)
        if user is None:
            raise NotFoundError("User", user_id)

        self._check_backdating(start_date, today)

        if absence_type != AbsenceType.SICK_LEAVE and files:
            self._reject("Files can only be uploaded for Sick Leave absences.", "file_type")

        if absence_type == AbsenceType.VACATION:
            self._check_vacation(user, start_date, today)

        if absence_type == AbsenceType.SICK_LEAVE:
            policy = policy or PolicyStore(self.db).get_settings()
            self._check_sick_leave(user, start_date, end_date, has_files=bool(files), policy=policy)

        absence = self.absences.create(user.id, absence_type, start_date, end_date)
        self.commit()
        self.log_info(
            f"Admitted {absence_type.value} absence {absence.id} for user {user.id}",
            start_date=start_date.isoformat(),
            end_date=end_date.isoformat(),
        )

        if absence_type == AbsenceType.SICK_LEAVE and files:
            # No pending absence may survive without the certificates it was admitted with
            try:
                self._store_certificates(absence, files)
            except Exception:
                self.db.rollback()
                self._discard_absence(absence)
                raise

        self.db.refresh(absence)
        return absence

    def _validate_request(
        self,
        absence_type: str,
        start_date: Optional[date],
        end_date: Optional[date],
    ) -> AbsenceType:
        try:
            absence_type = AbsenceType(absence_type)
        except ValueError:
            allowed = ", ".join(t.value for t in AbsenceType)
            raise ValidationError(f"type: must be one of {allowed}")

        if start_date is None:
            raise ValidationError("from: Start date is required and must be a valid date")
        if end_date is None:
            raise ValidationError("to: End date is required and must be a valid date")
        if end_date < start_date:
            raise ValidationError("to: End date must be equal to or after start date")
        if count_calendar_days(start_date, end_date) > self.rules.max_span_days:
            raise ValidationError(
                f"to: The maximum range between start date and end date is {self.rules.max_span_days} days"
            )
        return absence_type

    def _check_backdating(self, start_date: date, today: date):
        if not self.rules.restrict_backdating:
            return
        backdated_days = (today - start_date).days
        if backdated_days > self.rules.max_backdated_days:
            self._reject(
                f"Backdated absences can only be created up to {self.rules.max_backdated_days} days in the past.",
                "backdating",
            )

    def _check_vacation(self, user: User, start_date: date, today: date):
        if not has_completed_trial_period(user.hire_date, today, self.rules.trial_period_months):
            self._reject(
                f"Vacation requests are only available after completing the trial period "
                f"({self.rules.trial_period_months} months). Please contact admin to set your hire date.",
                "trial_period",
            )

        # Backdated vacations are never subject to the notice period
        if self.rules.enforce_vacation_notice and start_date >= today:
            required_date = add_working_days(today, self.rules.vacation_notice_working_days)
            if start_date < required_date:
                working_days_until_start = count_working_days(today, start_date)
                self._reject(
                    f"Vacation request must be created at least {self.rules.vacation_notice_working_days} "
                    f"working days before the start date. You have {working_days_until_start} working days "
                    f"until {start_date.isoformat()}",
                    "notice_period",
                )

    def _check_sick_leave(
        self,
        user: User,
        start_date: date,
        end_date: date,
        has_files: bool,
        policy: PolicySettings,
    ):
        # Calendar days: a Friday-to-Monday request is multi-day even with a weekend inside
        is_single_day = count_calendar_days(start_date, end_date) == 1

        if not is_single_day and not has_files:
            self._reject("Sick Leave for 2 or more consecutive days requires a certificate.", "multi_day_certificate")

        if is_single_day and not has_files:
            day_before = start_date - timedelta(days=1)
            day_after = end_date + timedelta(days=1)
            adjacent = self.absences.find(
                user_id=user.id,
                absence_type=AbsenceType.SICK_LEAVE,
                exclude_status=AbsenceStatus.REJECTED,
                overlapping_any=[(day_before, day_before), (day_after, day_after)],
            )
            if adjacent and not any(a.has_certificate for a in adjacent):
                self._reject(
                    "Consecutive Sick Leave days require a certificate. Please attach a file.",
                    "adjacent_certificate",
                )

            year_start, year_end = year_bounds(start_date.year)
            uncertified = self.absences.find(
                user_id=user.id,
                absence_type=AbsenceType.SICK_LEAVE,
                exclude_status=AbsenceStatus.REJECTED,
                overlapping=(year_start, year_end),
                with_certificate=False,
            )
            if uncertified:
                self._reject(
                    "You already have Sick Leave days without a certificate. Please attach a file.",
                    "outstanding_uncertified",
                )

        for year in sorted({start_date.year, end_date.year}):
            self._check_annual_quota(user, start_date, end_date, year, has_files, policy)

    def annual_sick_leave_usage(self, user_id: int, year: int) -> Tuple[int, int]:
        """(with certificate, without certificate) working days used in the year, non-rejected only."""
        range_start, range_end = year_bounds(year)
        absences = self.absences.find(
            user_id=user_id,
            absence_type=AbsenceType.SICK_LEAVE,
            exclude_status=AbsenceStatus.REJECTED,
            overlapping=(range_start, range_end),
        )
        used_with = used_without = 0
        for absence in absences:
            days = count_working_days_within_range(absence.start_date, absence.end_date, range_start, range_end)
            if absence.has_certificate:
                used_with += days
            else:
                used_without += days
        return used_with, used_without

    def _check_annual_quota(
        self,
        user: User,
        start_date: date,
        end_date: date,
        year: int,
        has_files: bool,
        policy: PolicySettings,
    ):
        range_start, range_end = year_bounds(year)
        new_days = count_working_days_within_range(start_date, end_date, range_start, range_end)
        if new_days == 0:
            return

        used_with, used_without = self.annual_sick_leave_usage(user.id, year)
        if not has_files:
            limit = policy.sick_leave_without_certificate_limit
            if used_without + new_days > limit:
                self._reject(
                    f"Sick Leave without certificate exceeds the annual limit of {limit} days.",
                    "quota_without_certificate",
                )
        else:
            limit = policy.sick_leave_with_certificate_limit
            if used_with + new_days > limit:
                self._reject(
                    f"Sick Leave with certificate exceeds the annual limit of {limit} days.",
                    "quota_with_certificate",
                )

    # --- Certificates ---

    def _store_certificates(self, absence: Absence, files: Sequence[UploadedFile]) -> List[AbsenceFile]:
        """
        Store files and record their metadata in one commit. On failure every
        file written by this call is removed again and StorageFailure raised.
        """
        stored: List[StoredFile] = []
        sub_dir = f"{absence.user_id}/{absence.id}"
        try:
            rows = []
            for file in files:
                saved = self.storage.save_file(file, sub_dir)
                stored.append(saved)
                rows.append(self.absences.add_file(
                    absence,
                    file_name=saved.file_name,
                    original_name=file.original_name,
                    mime_type=file.mime_type,
                    size=file.size,
                    storage_path=saved.storage_path,
                ))
            self.db.commit()
            return rows
        except (OSError, ValueError, SQLAlchemyError) as e:
            self._logger.error(f"Certificate storage failed for absence {absence.id}: {e}", exc_info=True)
            self.db.rollback()
            for saved in stored:
                try:
                    self.storage.delete_file(saved.storage_path)
                except OSError:
                    self._logger.error(f"Could not remove orphaned certificate {saved.storage_path}", exc_info=True)
            raise StorageFailure() from e

    def _discard_absence(self, absence: Absence):
        """Compensating delete of an absence whose certificates could not be stored."""
        absence_id = absence.id
        self.absences.delete(absence)
        self.commit()
        self.log_warning(f"Rolled back absence {absence_id} after certificate storage failure")

    def _check_owner_or_admin(self, absence: Absence, actor: User):
        if absence.user_id != actor.id and not actor.is_admin:
            raise AccessDeniedError("You can only manage certificates of your own absences")

    def attach_files(
        self,
        absence_id: int,
        files: Sequence[UploadedFile],
        actor: User,
        today: Optional[date] = None,
    ) -> Absence:
        """
        Attach certificates to an existing sick-leave absence. A past absence
        that had already been decided goes back to pending for another review.
        """
        today = today or date.today()
        absence = self.absences.get(absence_id)
        if absence is None:
            raise NotFoundError("Absence", absence_id)
        self._check_owner_or_admin(absence, actor)

        if absence.type != AbsenceType.SICK_LEAVE.value:
            self._reject("Files can only be uploaded for Sick Leave absences.", "file_type")
        files = list(files or [])
        if not files:
            raise ValidationError("files: At least one file is required")

        if absence.end_date < today and absence.status != AbsenceStatus.PENDING.value:
            absence.status = AbsenceStatus.PENDING.value
            self.log_info(f"Absence {absence.id} reopened for review after new certificates")

        self._store_certificates(absence, files)
        self.db.refresh(absence)
        return absence

    def delete_file(self, file_id: int, actor: User, today: Optional[date] = None):
        """Only certificates of non-approved absences that have not started yet can be deleted."""
        today = today or date.today()
        row = self.absences.get_file(file_id)
        if row is None:
            raise NotFoundError("File", file_id)
        absence = row.absence
        self._check_owner_or_admin(absence, actor)

        if absence.status == AbsenceStatus.APPROVED.value:
            self._reject("Certificates of approved absences cannot be deleted.", "delete_approved")
        if absence.start_date < today:
            self._reject(
                "Certificates can only be deleted for absences starting today or later.",
                "delete_past",
            )

        # Metadata first; an orphaned file on disk is tolerated, a row without its file is not
        storage_path = row.storage_path
        absence_id = absence.id
        self.absences.delete_file_row(row)
        self.commit()
        self.log_info(f"Deleted certificate {file_id} of absence {absence_id}")

        try:
            self.storage.delete_file(storage_path)
        except OSError:
            self._logger.error(f"Certificate {storage_path} left orphaned in storage", exc_info=True)

    def get_file(self, file_id: int, actor: User) -> Tuple[AbsenceFile, Path]:
        row = self.absences.get_file(file_id)
        if row is None:
            raise NotFoundError("File", file_id)
        self._check_owner_or_admin(row.absence, actor)

        if not self.storage.exists(row.storage_path):
            raise NotFoundError("Stored file", file_id)
        return row, self.storage.resolve(row.storage_path)
