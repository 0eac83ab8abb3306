import os
import logging
from typing import List
from pydantic import BaseModel, Field
from dotenv import load_dotenv

load_dotenv()


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() == "true"


class AdmissionRules(BaseModel):
    """Tunable admission rules. The dormant rules stay switched off unless enabled via env."""
    max_span_days: int = Field(default=int(os.getenv("MAX_ABSENCE_SPAN_DAYS", "30")))
    trial_period_months: int = Field(default=int(os.getenv("TRIAL_PERIOD_MONTHS", "3")))

    # Vacation must be booked this many working days ahead
    enforce_vacation_notice: bool = Field(default=_env_flag("ENFORCE_VACATION_NOTICE"))
    vacation_notice_working_days: int = Field(default=int(os.getenv("VACATION_NOTICE_WORKING_DAYS", "10")))

    # Absences may start at most this many calendar days in the past
    restrict_backdating: bool = Field(default=_env_flag("RESTRICT_BACKDATING"))
    max_backdated_days: int = Field(default=int(os.getenv("MAX_BACKDATED_DAYS", "14")))


class Config(BaseModel):
    app_name: str = "Absence Tracker"
    environment: str = os.getenv("APP_ENV", "development")
    api_prefix: str = "/api"
    version: str = "1.0.0"
    request_id_header: str = "X-Request-ID"

    # Browser frontend origins, comma-separated
    cors_origins: List[str] = Field(
        default_factory=lambda: [
            o.strip()
            for o in os.getenv("CORS_ORIGINS", "http://localhost:5173").split(",")
            if o.strip()
        ]
    )

    # Database
    database_url: str = os.getenv("DATABASE_URL", "sqlite:///./absences.db")

    # Certificate storage
    upload_dir: str = os.getenv("UPLOAD_DIR", os.path.join("uploads", "sick-leave"))

    # Identity header set by the authentication layer in front of this service
    user_id_header: str = os.getenv("USER_ID_HEADER", "X-User-ID")

    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    rules: AdmissionRules = AdmissionRules()


settings = Config()

_logger = logging.getLogger(__name__)
if settings.rules.enforce_vacation_notice:
    _logger.info(
        f"Vacation notice period enforced: {settings.rules.vacation_notice_working_days} working days"
    )
if settings.rules.restrict_backdating:
    _logger.info(f"Backdating restricted to {settings.rules.max_backdated_days} days")
