"""Unit tests for OperationResult and OperationStatus."""

import pytest

from infrastructure.operations.result import OperationResult
from infrastructure.operations.status import OperationStatus


@pytest.mark.unit
class TestOperationStatus:
    def test_operation_status_values(self):
        assert OperationStatus.SUCCESS.value == "success"
        assert OperationStatus.TRANSIENT_ERROR.value == "transient_error"
        assert OperationStatus.PERMANENT_ERROR.value == "permanent_error"


@pytest.mark.unit
class TestOperationResultFactories:
    def test_success_factory_minimal(self):
        result = OperationResult.success()
        assert result.status == OperationStatus.SUCCESS
        assert result.message == "ok"
        assert result.is_success is True
        assert result.is_retryable is False

    def test_success_factory_with_data(self):
        data = {"inbox_size": 3}
        result = OperationResult.success(data=data, message="in_app ok")
        assert result.data == data
        assert result.message == "in_app ok"

    def test_transient_error_is_retryable(self):
        result = OperationResult.transient_error("smtp down", error_code="TRANSPORT_ERROR")
        assert result.status == OperationStatus.TRANSIENT_ERROR
        assert result.error_code == "TRANSPORT_ERROR"
        assert result.is_success is False
        assert result.is_retryable is True

    def test_permanent_error_not_retryable(self):
        result = OperationResult.permanent_error("Channel sms is not enabled")
        assert result.status == OperationStatus.PERMANENT_ERROR
        assert result.error_code is None
        assert result.is_retryable is False
