"""Error classifier for channel transport exceptions.

Converts whatever a transport raises into a standardized OperationResult so
the dispatcher has a single place deciding between retryable and permanent
failures.

Usage:
    from infrastructure.operations.classifiers import classify_transport_error

    try:
        response = await asyncio.wait_for(transport.send(payload), timeout)
    except Exception as exc:
        outcome = classify_transport_error(exc)
"""

import asyncio

from infrastructure.operations.result import OperationResult

REQUEST_TIMEOUT_MESSAGE = "Request timeout"


def classify_transport_error(exc: Exception) -> OperationResult:
    """Classify a transport exception into an OperationResult.

    Classification:
    - asyncio.TimeoutError / TimeoutError: TRANSIENT_ERROR, "Request timeout"
    - Exceptions exposing ``retryable = False``: PERMANENT_ERROR
    - Anything else: TRANSIENT_ERROR

    The exception message is propagated verbatim. Exceptions with an empty
    message fall back to their class name so the failure stays readable.

    Args:
        exc: Exception raised by a channel transport

    Returns:
        OperationResult with a failure status, message and error code
    """
    if isinstance(exc, (asyncio.TimeoutError, TimeoutError)):
        return OperationResult.transient_error(
            REQUEST_TIMEOUT_MESSAGE, error_code="TIMEOUT"
        )

    message = str(exc) or type(exc).__name__

    if getattr(exc, "retryable", True) is False:
        return OperationResult.permanent_error(message, error_code="TRANSPORT_REJECTED")

    return OperationResult.transient_error(message, error_code="TRANSPORT_ERROR")
