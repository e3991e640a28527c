"""Operation status enumeration.

Status codes used to classify the outcome of transport calls and delivery
attempts so the dispatcher can decide whether a failure is worth retrying.
"""

from enum import Enum


class OperationStatus(Enum):
    """Status codes for operation results.

    Attributes:
        SUCCESS: Operation completed successfully
        TRANSIENT_ERROR: Retryable error (transport down, timeout, rejected send)
        PERMANENT_ERROR: Non-retryable error (unsupported or disabled channel)
    """

    SUCCESS = "success"
    TRANSIENT_ERROR = "transient_error"
    PERMANENT_ERROR = "permanent_error"
