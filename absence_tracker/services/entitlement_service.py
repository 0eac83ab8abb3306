"""
Entitlement (Accrual) Service

Computes how many vacation and sick-leave days a user holds as of a
reference date.

Vacation policy:
- Accrues monthly on the 1st at the configured rate (default 1.5 days)
- Nothing is available until the 3-month trial period is over
- A month started after its 1st does not accrue
- Unused days of the previous year carry over up to the configured cap

Sick leave policy:
- 10 days per year, accrued monthly from the start of the year
- Used days are bucketed by certificate presence against the annual caps

Only working days are counted against balances.
"""
from datetime import date
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from absence_tracker.core.config import settings as app_settings
from absence_tracker.core.dates import (
    count_working_days,
    count_working_days_within_range,
    has_completed_trial_period,
    year_bounds,
)
from absence_tracker.core.exceptions import NotFoundError
from absence_tracker.models.absence import Absence, AbsenceStatus, AbsenceType
from absence_tracker.models.policy_settings import PolicySettings
from absence_tracker.models.user import User
from absence_tracker.schemas.entitlement import (
    DayOffEntitlement,
    EntitlementDetails,
    SickLeaveEntitlement,
    VacationEntitlement,
    WorkFromHomeEntitlement,
)
from absence_tracker.services.base import BaseService
from absence_tracker.services.policy_store import PolicyStore
from absence_tracker.services.repositories import AbsenceRepository, UserRepository

SICK_LEAVE_DAYS_PER_YEAR = 10
SICK_LEAVE_DAYS_PER_MONTH = SICK_LEAVE_DAYS_PER_YEAR / 12

COUNTED_STATUSES = (AbsenceStatus.APPROVED, AbsenceStatus.PENDING)


def _round(value: float) -> float:
    return round(value, 2)


def vacation_months_accrued(hire_date: date, today: date) -> int:
    """Months accrued in today's calendar year, January counting as 1."""
    year_start, _ = year_bounds(today.year)
    if hire_date < year_start:
        return today.month

    if today.month < hire_date.month:
        return 0
    months = today.month - hire_date.month + 1
    if hire_date.day > 1:
        months -= 1
    return max(0, months)


def sick_leave_months_accrued(hire_date: date, today: date) -> int:
    year_start, _ = year_bounds(today.year)
    if hire_date < year_start:
        return today.month
    if hire_date > today:
        return 0
    return today.month - hire_date.month + 1


def next_vacation_accrual_date(today: date, hire_date: date) -> date:
    """The 1st of next month, unless the hire date pushes the first accrual later."""
    if today.month == 12:
        next_month = date(today.year + 1, 1, 1)
    else:
        next_month = date(today.year, today.month + 1, 1)

    hire_month_index = hire_date.month - 1 + (1 if hire_date.day > 1 else 0)
    hire_accrual_start = date(hire_date.year + hire_month_index // 12, hire_month_index % 12 + 1, 1)

    return max(next_month, hire_accrual_start)


def remaining_accrual_months(today: date, next_accrual: Optional[date]) -> int:
    if next_accrual is None or next_accrual.year != today.year:
        return 0
    return 12 - (next_accrual.month - 1)


def split_working_days(absences: List[Absence]) -> Tuple[int, int]:
    """(approved, pending) working days, each absence counted in full."""
    approved = pending = 0
    for absence in absences:
        days = count_working_days(absence.start_date, absence.end_date)
        if absence.status == AbsenceStatus.APPROVED.value:
            approved += days
        elif absence.status == AbsenceStatus.PENDING.value:
            pending += days
    return approved, pending


class EntitlementService(BaseService):
    def __init__(self, db: Session, trial_period_months: Optional[int] = None):
        super().__init__(db)
        self.users = UserRepository(db)
        self.absences = AbsenceRepository(db)
        if trial_period_months is None:
            trial_period_months = app_settings.rules.trial_period_months
        self.trial_period_months = trial_period_months

    # --- Vacation ---

    def calculate_vacation_entitlement(
        self,
        user: Optional[User],
        policy: PolicySettings,
        today: Optional[date] = None,
    ) -> VacationEntitlement:
        today = today or date.today()
        monthly_rate = policy.vacation_future_accrue_days

        if (
            user is None
            or user.hire_date is None
            or not has_completed_trial_period(user.hire_date, today, self.trial_period_months)
        ):
            return VacationEntitlement(
                currently_allowed=0,
                future_accrue=monthly_rate,
                pending_for_approval=0,
                approved=0,
                next_accrue_date=None,
                next_accrue_amount=0,
            )

        months_accrued = vacation_months_accrued(user.hire_date, today)
        accrued_this_year = months_accrued * monthly_rate
        carried_over = self.previous_year_carryover(user, policy, today)

        year_start, year_end = year_bounds(today.year)
        vacations = self.absences.find(
            user_id=user.id,
            absence_type=AbsenceType.VACATION,
            statuses=COUNTED_STATUSES,
            starting_between=(year_start, year_end),
        )
        approved_days, pending_days = split_working_days(vacations)

        # Not floored: over-commitment shows up as a negative balance
        currently_allowed = accrued_this_year + carried_over - approved_days - pending_days

        next_accrual = next_vacation_accrual_date(today, user.hire_date)
        future_accrue = remaining_accrual_months(today, next_accrual) * monthly_rate

        return VacationEntitlement(
            currently_allowed=_round(currently_allowed),
            future_accrue=_round(future_accrue),
            pending_for_approval=_round(pending_days),
            approved=_round(approved_days),
            next_accrue_date=next_accrual.isoformat(),
            next_accrue_amount=_round(monthly_rate),
        )

    def previous_year_carryover(self, user: User, policy: PolicySettings, today: date) -> float:
        """Unused vacation of last year, capped by the carryover limit."""
        if user.hire_date is None:
            return 0

        previous_start, previous_end = year_bounds(today.year - 1)
        hire_date = user.hire_date
        if hire_date > previous_end:
            return 0

        if hire_date <= previous_start:
            months_accrued = 12
        else:
            months_accrued = max(0, 12 - (hire_date.month - 1) - (1 if hire_date.day > 1 else 0))
        accrued_previous_year = months_accrued * policy.vacation_future_accrue_days

        vacations = self.absences.find(
            user_id=user.id,
            absence_type=AbsenceType.VACATION,
            statuses=COUNTED_STATUSES,
            overlapping=(previous_start, previous_end),
        )
        used = sum(
            count_working_days_within_range(a.start_date, a.end_date, previous_start, previous_end)
            for a in vacations
        )

        unused = accrued_previous_year - used
        if unused <= 0:
            return 0
        return min(unused, policy.vacation_carryover_limit)

    # --- Sick leave ---

    def calculate_sick_leave_entitlement(
        self,
        user: Optional[User],
        policy: PolicySettings,
        today: Optional[date] = None,
    ) -> SickLeaveEntitlement:
        today = today or date.today()

        if user is None or user.hire_date is None:
            return SickLeaveEntitlement(
                currently_allowed=0,
                future_accrue=0,
                pending_for_approval=0,
                approved=0,
                remaining_with_certificate=policy.sick_leave_with_certificate_limit,
                remaining_without_certificate=policy.sick_leave_without_certificate_limit,
            )

        accrued_this_year = sick_leave_months_accrued(user.hire_date, today) * SICK_LEAVE_DAYS_PER_MONTH

        year_start, year_end = year_bounds(today.year)
        sick_leaves = self.absences.find(
            user_id=user.id,
            absence_type=AbsenceType.SICK_LEAVE,
            statuses=COUNTED_STATUSES,
            starting_between=(year_start, year_end),
        )

        approved_days = pending_days = 0
        used_with_certificate = used_without_certificate = 0
        for absence in sick_leaves:
            days = count_working_days(absence.start_date, absence.end_date)
            if absence.status == AbsenceStatus.APPROVED.value:
                approved_days += days
            else:
                pending_days += days

            if absence.has_certificate:
                used_with_certificate += days
            else:
                used_without_certificate += days

        currently_allowed = max(0, accrued_this_year - approved_days - pending_days)
        remaining_with = max(0, policy.sick_leave_with_certificate_limit - used_with_certificate)
        remaining_without = max(0, policy.sick_leave_without_certificate_limit - used_without_certificate)

        return SickLeaveEntitlement(
            currently_allowed=_round(currently_allowed),
            future_accrue=0,
            pending_for_approval=_round(pending_days),
            approved=_round(approved_days),
            remaining_with_certificate=_round(remaining_with),
            remaining_without_certificate=_round(remaining_without),
        )

    # --- All ---

    def get_all_entitlements(
        self,
        user_id: int,
        today: Optional[date] = None,
        policy: Optional[PolicySettings] = None,
    ) -> Tuple[List[EntitlementDetails], List[Absence]]:
        """Entitlement breakdown for every absence type plus the user's full absence history."""
        user = self.users.get(user_id)
        if user is None:
            raise NotFoundError("User", user_id)

        today = today or date.today()
        policy = policy or PolicyStore(self.db).get_settings()

        entitlements: List[EntitlementDetails] = [
            DayOffEntitlement(),
            WorkFromHomeEntitlement(),
            self.calculate_sick_leave_entitlement(user, policy, today),
            self.calculate_vacation_entitlement(user, policy, today),
        ]
        history = self.absences.find(user_id=user.id, newest_first=True)
        return entitlements, history
