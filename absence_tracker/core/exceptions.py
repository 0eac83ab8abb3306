from typing import Any, Dict, Optional

class AppException(Exception):
    def __init__(
        self, 
        message: str, 
        status_code: int = 400, 
        error_code: str = "BUSINESS_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.details = details
        super().__init__(self.message)

class ValidationError(AppException):
    """Malformed input: missing dates, inverted or oversized ranges."""
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            status_code=400,
            error_code="VALIDATION_ERROR",
            details=details
        )

class PolicyRejection(AppException):
    """An admission gate refused the request. Expected and user-correctable."""
    def __init__(self, message: str, rule: Optional[str] = None):
        super().__init__(
            message=message,
            status_code=400,
            error_code="POLICY_REJECTED",
            details={"rule": rule} if rule else None
        )
        self.rule = rule

class NotFoundError(AppException):
    def __init__(self, entity: str, entity_id: Any = None):
        message = f"{entity} not found" if entity_id is None else f"{entity} {entity_id} not found"
        super().__init__(
            message=message,
            status_code=404,
            error_code="NOT_FOUND"
        )

class StorageFailure(AppException):
    """Certificate storage failed. Safe to retry."""
    def __init__(self, message: str = "Failed to store uploaded files. Please try again."):
        super().__init__(
            message=message,
            status_code=503,
            error_code="STORAGE_FAILURE"
        )

class PersistenceFailure(AppException):
    def __init__(self, message: str = "An internal error occurred while saving data."):
        super().__init__(
            message=message,
            status_code=500,
            error_code="PERSISTENCE_FAILURE"
        )

class AccessDeniedError(AppException):
    """The acting user may not manage another user's absence."""
    def __init__(self, message: str = "Insufficient permissions"):
        super().__init__(
            message=message,
            status_code=403,
            error_code="PERMISSION_DENIED"
        )
