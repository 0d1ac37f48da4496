"""Scheduling error kinds.

Validation problems raise ``SchedulingError`` and are turned into a failed
``OperationResult`` at the engine boundary. System problems raise
``SchedulingFault`` and propagate to the caller.
"""

from enum import Enum


class ErrorKind(str, Enum):
    MISSING_FIELD = "MissingField"
    NOT_FOUND = "NotFound"
    SERVICE_NOT_OFFERED = "ServiceNotOfferedByProvider"
    PAST_DATE_TIME = "PastDateTime"
    INVALID_DURATION = "InvalidDuration"
    INVALID_FORMAT = "InvalidFormat"
    SLOT_UNAVAILABLE = "SlotUnavailable"
    ILLEGAL_TRANSITION = "IllegalTransition"
    TOO_EARLY = "TooEarly"
    TOO_LATE = "TooLate"
    WITHIN_GRACE_PERIOD = "WithinGracePeriod"
    INVALID_AVAILABILITY_RULE = "InvalidAvailabilityRule"
    PROVIDER_NOT_FOUND = "ProviderNotFound"


class SchedulingError(Exception):
    """Expected validation failure; never leaves a partial mutation behind"""

    def __init__(self, kind: ErrorKind, message: str):
        super().__init__(message)
        self.kind = kind
        self.message = message

    def __repr__(self) -> str:
        return f"SchedulingError({self.kind.value}: {self.message})"


class SchedulingFault(Exception):
    """Unexpected condition whose outcome is unknown"""

    kind = "SystemFault"


class StorageUnavailable(SchedulingFault):
    kind = "StorageUnavailable"


class LockTimeout(SchedulingFault):
    kind = "LockTimeout"
