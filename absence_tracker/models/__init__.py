# Models package
# Importing modules here ensures they are registered with SQLAlchemy Base
from . import user, absence, policy_settings

# Explicit class exports for cleaner imports
from .user import User, UserRole
from .absence import Absence, AbsenceFile, AbsenceStatus, AbsenceType
from .policy_settings import PolicySettings, SettingsChangeLog

__all__ = [
    "User",
    "UserRole",
    "Absence",
    "AbsenceFile",
    "AbsenceStatus",
    "AbsenceType",
    "PolicySettings",
    "SettingsChangeLog",
]
