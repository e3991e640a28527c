"""Unit tests for the transport error classifier.

Tests cover:
- Timeout classification
- Exceptions flagged as non-retryable
- Fallback to transient errors
- Empty exception messages
"""

import asyncio

import pytest

from infrastructure.operations.classifiers import (
    REQUEST_TIMEOUT_MESSAGE,
    classify_transport_error,
)
from infrastructure.operations.status import OperationStatus
from modules.notifications.domain.errors import TransportError


@pytest.mark.unit
class TestClassifyTransportError:
    @pytest.mark.parametrize("exc", [asyncio.TimeoutError(), TimeoutError("slow")])
    def test_timeouts_are_transient(self, exc):
        result = classify_transport_error(exc)

        assert result.status == OperationStatus.TRANSIENT_ERROR
        assert result.message == REQUEST_TIMEOUT_MESSAGE
        assert result.error_code == "TIMEOUT"

    def test_non_retryable_transport_error_is_permanent(self):
        result = classify_transport_error(
            TransportError("Webhook responded with status 404", retryable=False)
        )

        assert result.status == OperationStatus.PERMANENT_ERROR
        assert result.message == "Webhook responded with status 404"
        assert result.error_code == "TRANSPORT_REJECTED"

    def test_retryable_transport_error_is_transient(self):
        result = classify_transport_error(
            TransportError("Webhook responded with status 503", status_code=503)
        )

        assert result.status == OperationStatus.TRANSIENT_ERROR
        assert result.message == "Webhook responded with status 503"

    def test_unknown_exception_is_transient(self):
        result = classify_transport_error(RuntimeError("connection reset"))

        assert result.status == OperationStatus.TRANSIENT_ERROR
        assert result.message == "connection reset"
        assert result.error_code == "TRANSPORT_ERROR"

    def test_empty_message_falls_back_to_class_name(self):
        result = classify_transport_error(ConnectionError())

        assert result.message == "ConnectionError"
