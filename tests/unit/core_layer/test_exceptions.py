"""
Unit Tests for Core Exceptions

Tests the base error contract and the hierarchy used by the exception handlers.
"""

import pytest

from item_service.core.exceptions import (
    ConfigurationError,
    DependencyDegradedError,
    DependencyError,
    DependencyExhaustedError,
    ItemServiceError,
    RecordNotFoundError,
    StoreError,
    TransientStoreError,
    ValidationError,
)


@pytest.mark.unit
class TestItemServiceError:
    def test_message_and_defaults(self):
        error = ItemServiceError("Test message")

        assert str(error) == "Test message"
        assert error.details == {}
        assert error.request_id is None

    def test_details_are_copied(self):
        details = {"key": "value"}
        error = ItemServiceError("Test", details=details)
        details["key"] = "changed"

        assert error.details == {"key": "value"}

    def test_to_dict(self):
        error = RecordNotFoundError("Item not found", request_id="req-1", details={"id": 7})

        assert error.to_dict() == {
            "error_type": "RecordNotFoundError",
            "message": "Item not found",
            "request_id": "req-1",
            "details": {"id": 7},
        }

    def test_from_exception_keeps_original(self):
        original = ConnectionResetError("server closed the connection")

        error = TransientStoreError.from_exception(original, message="Failed to fetch items", operation="list")

        assert isinstance(error, TransientStoreError)
        assert error.message == "Failed to fetch items"
        assert error.details["original_error"] == "ConnectionResetError"
        assert error.details["original_message"] == "server closed the connection"
        assert error.details["operation"] == "list"

    def test_repr_includes_details(self):
        error = DependencyExhaustedError("gave up", details={"attempts": 5})
        assert repr(error) == "DependencyExhaustedError(message='gave up', details={'attempts': 5})"


@pytest.mark.unit
class TestHierarchy:
    @pytest.mark.parametrize(
        "error_cls, parent",
        [
            (DependencyExhaustedError, DependencyError),
            (DependencyDegradedError, DependencyError),
            (TransientStoreError, StoreError),
            (RecordNotFoundError, StoreError),
            (ConfigurationError, ItemServiceError),
            (DependencyError, ItemServiceError),
            (StoreError, ItemServiceError),
            (ValidationError, ItemServiceError),
        ],
    )
    def test_subclassing(self, error_cls, parent):
        assert issubclass(error_cls, parent)

    def test_not_found_is_not_transient(self):
        assert not issubclass(RecordNotFoundError, TransientStoreError)
