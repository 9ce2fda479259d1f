"""
Status state machine for a commission obligation.

The commission record owns the obligation status. Recurring tracking rows and
validation audit rows are projections of it, so every status change goes
through here and is committed together with its projection.
"""
from enum import Enum

from commission_engine.core.exceptions import InvalidStatusTransition


class CommissionStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    PAID = "paid"


class TrackingStatus(str, Enum):
    SCHEDULED = "scheduled"
    PENDING = "pending"
    EARNED = "earned"
    PAID = "paid"


class ValidationStatus(str, Enum):
    PASSED = "passed"
    WARNING = "warning"
    FAILED = "failed"
    OVERRIDE = "override"


# Re-approving an approved record overwrites the approval stamp.
_COMMISSION_TRANSITIONS = {
    CommissionStatus.PENDING: {CommissionStatus.APPROVED, CommissionStatus.PAID},
    CommissionStatus.APPROVED: {CommissionStatus.APPROVED, CommissionStatus.PAID},
    CommissionStatus.PAID: set(),
}

_TRACKING_ORDER = [TrackingStatus.SCHEDULED, TrackingStatus.PENDING, TrackingStatus.EARNED, TrackingStatus.PAID]

# Tracking status -> commission status it implies
TRACKING_TO_COMMISSION = {
    TrackingStatus.EARNED: CommissionStatus.APPROVED,
    TrackingStatus.PAID: CommissionStatus.PAID,
}


def check_commission_transition(current: str, requested: str) -> CommissionStatus:
    current_status = CommissionStatus(current)
    requested_status = CommissionStatus(requested)
    if requested_status not in _COMMISSION_TRANSITIONS[current_status]:
        raise InvalidStatusTransition("commission record", current_status.value, requested_status.value)
    return requested_status


def check_tracking_transition(current: str, requested: str) -> TrackingStatus:
    """Tracking only moves forward; skipping ahead (pending -> paid) is allowed."""
    current_status = TrackingStatus(current)
    requested_status = TrackingStatus(requested)
    if _TRACKING_ORDER.index(requested_status) <= _TRACKING_ORDER.index(current_status):
        raise InvalidStatusTransition("recurring tracking", current_status.value, requested_status.value)
    return requested_status
