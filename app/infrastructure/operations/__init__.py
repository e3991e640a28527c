"""Operation result types and status enums.

Standardized result types shared by the delivery dispatcher and channel
transports, including the transport error classifier.
"""

from infrastructure.operations.classifiers import (
    REQUEST_TIMEOUT_MESSAGE,
    classify_transport_error,
)
from infrastructure.operations.result import OperationResult
from infrastructure.operations.status import OperationStatus

__all__ = [
    "OperationResult",
    "OperationStatus",
    "REQUEST_TIMEOUT_MESSAGE",
    "classify_transport_error",
]
