from absence_tracker.models.policy_settings import SettingsChangeLog
from absence_tracker.services.policy_store import PolicyStore


def _values(**overrides):
    values = {
        "vacation_future_accrue_days": 1.5,
        "sick_leave_without_certificate_limit": 5,
        "sick_leave_with_certificate_limit": 5,
        "vacation_carryover_limit": 0,
    }
    values.update(overrides)
    return values


def test_settings_created_with_defaults(db_session):
    settings = PolicyStore(db_session).get_settings()
    assert settings.id == "global"
    assert settings.vacation_future_accrue_days == 1.5
    assert settings.sick_leave_without_certificate_limit == 5
    assert settings.sick_leave_with_certificate_limit == 5
    assert settings.vacation_carryover_limit == 0


def test_get_settings_is_idempotent(db_session):
    store = PolicyStore(db_session)
    first = store.get_settings()
    second = store.get_settings()
    assert first.id == second.id
    assert db_session.query(SettingsChangeLog).count() == 0


def test_update_with_changes_writes_one_log(db_session, admin_user):
    store = PolicyStore(db_session)
    settings = store.update_settings(_values(vacation_carryover_limit=10, vacation_future_accrue_days=2.0), admin_user)

    assert settings.vacation_carryover_limit == 10
    logs = store.list_change_logs()
    assert len(logs) == 1
    log = logs[0]
    assert log.admin_id == admin_user.id
    assert log.previous_vacation_carryover_limit == 0
    assert log.new_vacation_carryover_limit == 10
    assert log.previous_vacation_future_accrue == 1.5
    assert log.new_vacation_future_accrue == 2.0


def test_update_without_changes_writes_no_log(db_session, admin_user):
    store = PolicyStore(db_session)
    store.update_settings(_values(), admin_user)
    assert store.list_change_logs() == []


def test_logs_newest_first(db_session, admin_user):
    store = PolicyStore(db_session)
    store.update_settings(_values(sick_leave_with_certificate_limit=7), admin_user)
    store.update_settings(_values(sick_leave_with_certificate_limit=9), admin_user)
    logs = store.list_change_logs()
    assert [log.new_sick_leave_with_certificate_limit for log in logs] == [9, 7]
