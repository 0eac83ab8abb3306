"""
Policy Store

The single global settings row holding accrual rate, sick-leave caps and the
vacation carryover cap. Callers load it once per operation and pass the
object down to the entitlement and admission services.
"""
from typing import Any, Dict, List, Union

from absence_tracker.models.policy_settings import (
    SETTINGS_ID,
    DEFAULT_SICK_LEAVE_WITH_CERTIFICATE_LIMIT,
    DEFAULT_SICK_LEAVE_WITHOUT_CERTIFICATE_LIMIT,
    DEFAULT_VACATION_CARRYOVER_LIMIT,
    DEFAULT_VACATION_FUTURE_ACCRUE_DAYS,
    PolicySettings,
    SettingsChangeLog,
)
from absence_tracker.models.user import User
from absence_tracker.schemas.settings import PolicySettingsUpdate
from absence_tracker.services.base import BaseService

# Column name -> change-log column suffix
TRACKED_FIELDS = {
    "vacation_future_accrue_days": "vacation_future_accrue",
    "sick_leave_without_certificate_limit": "sick_leave_without_certificate_limit",
    "sick_leave_with_certificate_limit": "sick_leave_with_certificate_limit",
    "vacation_carryover_limit": "vacation_carryover_limit",
}


class PolicyStore(BaseService):
    def get_settings(self) -> PolicySettings:
        """Return the global settings, creating them with defaults on first read."""
        settings = self.db.get(PolicySettings, SETTINGS_ID)
        if settings is not None:
            return settings

        settings = PolicySettings(
            id=SETTINGS_ID,
            vacation_future_accrue_days=DEFAULT_VACATION_FUTURE_ACCRUE_DAYS,
            sick_leave_without_certificate_limit=DEFAULT_SICK_LEAVE_WITHOUT_CERTIFICATE_LIMIT,
            sick_leave_with_certificate_limit=DEFAULT_SICK_LEAVE_WITH_CERTIFICATE_LIMIT,
            vacation_carryover_limit=DEFAULT_VACATION_CARRYOVER_LIMIT,
        )
        self.db.add(settings)
        self.commit()
        self.db.refresh(settings)
        self.log_info("Created default policy settings")
        return settings

    def update_settings(
        self,
        new_values: Union[PolicySettingsUpdate, Dict[str, Any]],
        acting_admin: User,
    ) -> PolicySettings:
        """
        Persist new settings. Exactly one change-log row is appended when at
        least one value differs from the previous snapshot; none otherwise.
        """
        if not isinstance(new_values, PolicySettingsUpdate):
            new_values = PolicySettingsUpdate(**new_values)

        settings = self.get_settings()
        before = {field: getattr(settings, field) for field in TRACKED_FIELDS}
        after = new_values.model_dump()

        for field in TRACKED_FIELDS:
            setattr(settings, field, after[field])

        changed = any(before[field] != after[field] for field in TRACKED_FIELDS)
        if changed:
            log_values = {}
            for field, suffix in TRACKED_FIELDS.items():
                log_values[f"previous_{suffix}"] = before[field]
                log_values[f"new_{suffix}"] = after[field]
            self.db.add(SettingsChangeLog(settings_id=settings.id, admin_id=acting_admin.id, **log_values))

        self.commit()
        self.db.refresh(settings)

        if changed:
            self.log_info(
                f"Policy settings updated by admin {acting_admin.id}",
                before=before,
                after=after,
            )
        return settings

    def list_change_logs(self) -> List[SettingsChangeLog]:
        return (
            self.db.query(SettingsChangeLog)
            .order_by(SettingsChangeLog.created_at.desc(), SettingsChangeLog.id.desc())
            .all()
        )
