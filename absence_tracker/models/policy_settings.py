from sqlalchemy import Column, Integer, String, Float, DateTime, ForeignKey
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from absence_tracker.database import Base

SETTINGS_ID = "global"

DEFAULT_VACATION_FUTURE_ACCRUE_DAYS = 1.5
DEFAULT_SICK_LEAVE_WITHOUT_CERTIFICATE_LIMIT = 5
DEFAULT_SICK_LEAVE_WITH_CERTIFICATE_LIMIT = 5
DEFAULT_VACATION_CARRYOVER_LIMIT = 0

class PolicySettings(Base):
    __tablename__ = "settings"

    id = Column(String, primary_key=True, default=SETTINGS_ID)
    vacation_future_accrue_days = Column(Float, nullable=False, default=DEFAULT_VACATION_FUTURE_ACCRUE_DAYS) # monthly accrual rate
    sick_leave_without_certificate_limit = Column(Integer, nullable=False, default=DEFAULT_SICK_LEAVE_WITHOUT_CERTIFICATE_LIMIT)
    sick_leave_with_certificate_limit = Column(Integer, nullable=False, default=DEFAULT_SICK_LEAVE_WITH_CERTIFICATE_LIMIT)
    vacation_carryover_limit = Column(Integer, nullable=False, default=DEFAULT_VACATION_CARRYOVER_LIMIT)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    change_logs = relationship("SettingsChangeLog", back_populates="settings")

class SettingsChangeLog(Base):
    """Append-only audit row, one per settings update that changed something."""
    __tablename__ = "settings_change_logs"

    id = Column(Integer, primary_key=True, index=True)
    settings_id = Column(String, ForeignKey("settings.id"), nullable=False)
    admin_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    previous_vacation_future_accrue = Column(Float, nullable=False)
    new_vacation_future_accrue = Column(Float, nullable=False)
    previous_sick_leave_without_certificate_limit = Column(Integer, nullable=False)
    new_sick_leave_without_certificate_limit = Column(Integer, nullable=False)
    previous_sick_leave_with_certificate_limit = Column(Integer, nullable=False)
    new_sick_leave_with_certificate_limit = Column(Integer, nullable=False)
    previous_vacation_carryover_limit = Column(Integer, nullable=False)
    new_vacation_carryover_limit = Column(Integer, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    settings = relationship("PolicySettings", back_populates="change_logs")
    admin = relationship("User")
