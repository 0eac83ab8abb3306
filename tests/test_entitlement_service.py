from datetime import date

import pytest

from absence_tracker.core.exceptions import NotFoundError
from absence_tracker.models.absence import AbsenceStatus, AbsenceType
from absence_tracker.models.user import User, UserRole
from absence_tracker.services.entitlement_service import (
    EntitlementService,
    next_vacation_accrual_date,
    remaining_accrual_months,
)
from absence_tracker.services.policy_store import PolicyStore

TODAY = date(2024, 6, 15)


@pytest.fixture
def policy(db_session):
    return PolicyStore(db_session).get_settings()


@pytest.fixture
def service(db_session):
    return EntitlementService(db_session)


@pytest.fixture
def make_user(db_session):
    def _make_user(hire_date, email="new.hire@example.com"):
        user = User(email=email, role=UserRole.EMPLOYEE, hire_date=hire_date)
        db_session.add(user)
        db_session.commit()
        return user
    return _make_user


# --- Vacation ---

def test_vacation_full_year_employee(service, employee, policy):
    result = service.calculate_vacation_entitlement(employee, policy, TODAY)
    # January through June at 1.5 days
    assert result.currently_allowed == 9.0
    assert result.approved == 0
    assert result.pending_for_approval == 0
    assert result.future_accrue == 9.0
    assert result.next_accrue_date == "2024-07-01"
    assert result.next_accrue_amount == 1.5


def test_vacation_just_past_trial_period(service, make_user, policy):
    user = make_user(date(2024, 3, 14))
    result = service.calculate_vacation_entitlement(user, policy, TODAY)
    # April, May, June; March started mid-month and does not accrue
    assert result.currently_allowed == 3 * 1.5


def test_vacation_hired_on_first_of_month(service, make_user, policy):
    user = make_user(date(2024, 3, 1))
    result = service.calculate_vacation_entitlement(user, policy, TODAY)
    assert result.currently_allowed == 4 * 1.5


def test_vacation_during_trial_period_is_zero(service, make_user, policy):
    user = make_user(date(2024, 4, 1))
    result = service.calculate_vacation_entitlement(user, policy, TODAY)
    assert result.currently_allowed == 0
    assert result.future_accrue == 1.5
    assert result.next_accrue_date is None
    assert result.next_accrue_amount == 0


def test_vacation_without_hire_date_is_zero(service, make_user, policy):
    user = make_user(None)
    result = service.calculate_vacation_entitlement(user, policy, TODAY)
    assert result.currently_allowed == 0
    assert result.future_accrue == 1.5


def test_vacation_subtracts_approved_and_pending(service, employee, policy, make_absence):
    make_absence(employee, AbsenceType.VACATION, date(2024, 6, 10), date(2024, 6, 14), AbsenceStatus.APPROVED)
    make_absence(employee, AbsenceType.VACATION, date(2024, 6, 17), status=AbsenceStatus.PENDING)
    make_absence(employee, AbsenceType.VACATION, date(2024, 6, 18), status=AbsenceStatus.REJECTED)
    make_absence(employee, AbsenceType.DAY_OFF, date(2024, 6, 19), status=AbsenceStatus.APPROVED)

    result = service.calculate_vacation_entitlement(employee, policy, TODAY)
    assert result.approved == 5
    assert result.pending_for_approval == 1
    assert result.currently_allowed == 9.0 - 6


def test_vacation_balance_can_go_negative(service, employee, policy, make_absence):
    # May 2024 has 23 working days
    make_absence(employee, AbsenceType.VACATION, date(2024, 5, 1), date(2024, 5, 31), AbsenceStatus.APPROVED)
    result = service.calculate_vacation_entitlement(employee, policy, TODAY)
    assert result.currently_allowed == 9.0 - 23


def test_vacation_carryover_capped_by_limit(db_session, service, employee, admin_user, make_absence):
    policy = PolicyStore(db_session).update_settings({
        "vacation_future_accrue_days": 1.5,
        "sick_leave_without_certificate_limit": 5,
        "sick_leave_with_certificate_limit": 5,
        "vacation_carryover_limit": 10,
    }, admin_user)
    # 5 working days in 2023, 5 in 2024; attributed to 2023 for this-year totals
    make_absence(employee, AbsenceType.VACATION, date(2023, 12, 25), date(2024, 1, 5), AbsenceStatus.APPROVED)

    assert service.previous_year_carryover(employee, policy, TODAY) == 10
    result = service.calculate_vacation_entitlement(employee, policy, TODAY)
    assert result.currently_allowed == 9.0 + 10
    assert result.approved == 0


def test_vacation_carryover_uses_unused_days_below_limit(db_session, service, employee, admin_user, make_absence):
    policy = PolicyStore(db_session).update_settings({
        "vacation_future_accrue_days": 1.5,
        "sick_leave_without_certificate_limit": 5,
        "sick_leave_with_certificate_limit": 5,
        "vacation_carryover_limit": 10,
    }, admin_user)
    # 15 working days used out of 18 accrued in 2023
    make_absence(employee, AbsenceType.VACATION, date(2023, 7, 3), date(2023, 7, 21), AbsenceStatus.APPROVED)
    assert service.previous_year_carryover(employee, policy, TODAY) == 3


def test_no_carryover_when_hired_this_year(service, make_user, policy):
    user = make_user(date(2024, 1, 2))
    assert service.previous_year_carryover(user, policy, TODAY) == 0


def test_next_accrual_date_respects_hire_date():
    assert next_vacation_accrual_date(TODAY, date(2020, 5, 5)) == date(2024, 7, 1)
    assert next_vacation_accrual_date(TODAY, date(2024, 7, 15)) == date(2024, 8, 1)
    assert next_vacation_accrual_date(date(2024, 12, 15), date(2020, 1, 1)) == date(2025, 1, 1)


def test_no_remaining_accrual_after_year_end():
    assert remaining_accrual_months(date(2024, 12, 15), date(2025, 1, 1)) == 0
    assert remaining_accrual_months(TODAY, date(2024, 7, 1)) == 6
    assert remaining_accrual_months(TODAY, None) == 0


def test_trial_period_can_be_disabled(db_session, make_user, policy):
    user = make_user(date(2024, 6, 1))
    vacation = EntitlementService(db_session, trial_period_months=0).calculate_vacation_entitlement(user, policy, TODAY)
    assert vacation.currently_allowed == 1.5


# --- Sick leave ---

def test_sick_leave_full_year_employee(service, employee, policy):
    result = service.calculate_sick_leave_entitlement(employee, policy, TODAY)
    assert result.currently_allowed == 5.0
    assert result.future_accrue == 0
    assert result.remaining_with_certificate == 5
    assert result.remaining_without_certificate == 5


def test_sick_leave_accrues_during_trial(service, make_user, policy):
    user = make_user(date(2024, 3, 14))
    result = service.calculate_sick_leave_entitlement(user, policy, TODAY)
    # March through June, partial first month included
    assert result.currently_allowed == 3.33


def test_sick_leave_buckets_by_certificate(service, employee, policy, make_absence):
    make_absence(employee, AbsenceType.SICK_LEAVE, date(2024, 6, 10), date(2024, 6, 11), AbsenceStatus.APPROVED, files=1)
    make_absence(employee, AbsenceType.SICK_LEAVE, date(2024, 6, 14), status=AbsenceStatus.PENDING)
    make_absence(employee, AbsenceType.SICK_LEAVE, date(2024, 6, 12), status=AbsenceStatus.REJECTED)

    result = service.calculate_sick_leave_entitlement(employee, policy, TODAY)
    assert result.approved == 2
    assert result.pending_for_approval == 1
    assert result.currently_allowed == 2.0
    assert result.remaining_with_certificate == 3
    assert result.remaining_without_certificate == 4


def test_sick_leave_floors_at_zero(service, employee, policy, make_absence):
    make_absence(employee, AbsenceType.SICK_LEAVE, date(2024, 5, 1), date(2024, 5, 31), AbsenceStatus.APPROVED, files=1)
    result = service.calculate_sick_leave_entitlement(employee, policy, TODAY)
    assert result.currently_allowed == 0
    assert result.remaining_with_certificate == 0
    assert result.remaining_without_certificate == 5


def test_sick_leave_without_hire_date_reports_limits(service, make_user, policy):
    user = make_user(None)
    result = service.calculate_sick_leave_entitlement(user, policy, TODAY)
    assert result.currently_allowed == 0
    assert result.remaining_with_certificate == policy.sick_leave_with_certificate_limit
    assert result.remaining_without_certificate == policy.sick_leave_without_certificate_limit


# --- All entitlements ---

def test_all_entitlements_with_history(service, employee, make_absence):
    make_absence(employee, AbsenceType.DAY_OFF, date(2024, 2, 5), status=AbsenceStatus.REJECTED)
    make_absence(employee, AbsenceType.WORK_FROM_HOME, date(2024, 6, 3), status=AbsenceStatus.APPROVED)

    entitlements, history = service.get_all_entitlements(employee.id, today=TODAY)

    assert [e.type for e in entitlements] == ["day_off", "work_from_home", "sick_leave", "vacation"]
    assert entitlements[0].currently_allowed == "Unlimited"
    assert entitlements[1].currently_allowed == "Unlimited"
    assert entitlements[3].currently_allowed == 9.0
    assert [a.start_date for a in history] == [date(2024, 6, 3), date(2024, 2, 5)]


def test_all_entitlements_unknown_user(service):
    with pytest.raises(NotFoundError):
        service.get_all_entitlements(999, today=TODAY)
