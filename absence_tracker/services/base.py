import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from absence_tracker.core.exceptions import PersistenceFailure


class BaseService:
    """Common plumbing for services working on a request-scoped session."""

    def __init__(self, db: Session):
        self.db = db
        self._logger = logging.getLogger(self.__class__.__module__)

    def log_info(self, message: str, **extra):
        self._logger.info(message, extra=extra or None)

    def log_warning(self, message: str, **extra):
        self._logger.warning(message, extra=extra or None)

    def commit(self):
        """Commit the unit of work; datastore errors surface as an opaque PersistenceFailure."""
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            self._logger.error(f"Commit failed: {e}", exc_info=True)
            raise PersistenceFailure() from e
