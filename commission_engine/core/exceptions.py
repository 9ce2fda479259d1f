"""
Errors raised by the commission engine.

The exception handler in main.py turns these into HTTP responses. "No commission due" is not an
error and is returned as a value by the tier calculator instead.
"""
from typing import Any, Dict, Optional


class CommissionEngineError(Exception):
    status_code = 500

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class InvalidRequest(CommissionEngineError):
    status_code = 400


class InvalidStatusTransition(InvalidRequest):
    def __init__(self, entity: str, current: str, requested: str):
        super().__init__(
            f"Cannot move {entity} from '{current}' to '{requested}'",
            {"entity": entity, "current_status": current, "requested_status": requested},
        )


class NotFound(CommissionEngineError):
    status_code = 404


class OrganizationNotFound(NotFound):
    pass


class NoActiveRuleFound(NotFound):
    pass


class NoAssignmentFound(NotFound):
    pass


class CommissionRecordNotFound(NotFound):
    pass


class TrackingNotFound(NotFound):
    pass


class Conflict(CommissionEngineError):
    status_code = 409


class PersistenceFailure(CommissionEngineError):
    status_code = 500
