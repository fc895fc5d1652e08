#!/usr/bin/env python3
"""
Tests for the BulkOperation domain model
"""

from datetime import UTC, datetime

import pytest

from ghx.domain.bulk import BulkOperation, BulkOperationStatus, BulkOperationType
from ghx.errors import InvalidRequestError


@pytest.fixture
def running():
    operation = BulkOperation.new(BulkOperationType.UPDATE, total_items=3)
    operation.start()
    return operation


class TestBulkOperationType:
    """Tests for BulkOperationType.parse()"""

    @pytest.mark.parametrize("value", ["update", "UPDATE", " Update "])
    def test_case_insensitive(self, value):
        assert BulkOperationType.parse(value) == BulkOperationType.UPDATE

    @pytest.mark.parametrize("value", ["import", "EXPORT", "move"])
    def test_unsupported_types(self, value):
        with pytest.raises(InvalidRequestError, match="not supported"):
            BulkOperationType.parse(value)

    def test_unknown_type(self):
        with pytest.raises(InvalidRequestError, match="invalid bulk operation type"):
            BulkOperationType.parse("explode")


class TestBulkOperation:
    """Tests for BulkOperation state transitions"""

    def test_new_operation(self):
        """Test defaults of a freshly created operation"""
        operation = BulkOperation.new(BulkOperationType.DELETE, total_items=4)

        assert operation.id.startswith("bulk_")
        assert operation.status == BulkOperationStatus.PENDING
        assert operation.processed_items == 0
        assert operation.progress == 0.0
        assert operation.created_at.tzinfo is not None
        assert operation.completed_at is None

    def test_total_must_be_positive(self):
        with pytest.raises(ValueError, match="total_items"):
            BulkOperation.new(BulkOperationType.DELETE, total_items=0)

    def test_created_at_must_be_datetime(self):
        with pytest.raises(TypeError):
            BulkOperation(id="bulk_1", type=BulkOperationType.DELETE, total_items=1, created_at="2026-01-01")

    def test_progress(self, running):
        running.record_item_result("a")

        assert running.progress == pytest.approx(1 / 3)
        assert running.succeeded_items == 1

    def test_record_requires_running(self):
        operation = BulkOperation.new(BulkOperationType.UPDATE, total_items=1)

        with pytest.raises(ValueError, match="Cannot record"):
            operation.record_item_result("a")

    def test_cannot_exceed_total(self, running):
        for item_id in ("a", "b", "c"):
            running.record_item_result(item_id)

        with pytest.raises(ValueError, match="already processed"):
            running.record_item_result("d")

    def test_complete_requires_all_items(self, running):
        running.record_item_result("a")

        with pytest.raises(ValueError, match="1 of 3"):
            running.complete()

    def test_completed(self, running):
        """Test COMPLETED when nothing failed"""
        for item_id in ("a", "b", "c"):
            running.record_item_result(item_id)
        finished_at = datetime(2026, 3, 1, tzinfo=UTC)

        running.complete(completed_at=finished_at)

        assert running.status == BulkOperationStatus.COMPLETED
        assert running.completed_at == finished_at
        assert running.error_message is None

    def test_partially_failed(self, running):
        running.record_item_result("a")
        running.record_item_result("b", "option 'X' not found")
        running.record_item_result("c")

        running.complete()

        assert running.status == BulkOperationStatus.PARTIALLY_FAILED
        assert running.error_message == "1 of 3 items failed (first error: b: option 'X' not found)"

    def test_failed(self, running):
        for item_id in ("a", "b", "c"):
            running.record_item_result(item_id, "denied")

        running.complete()

        assert running.status == BulkOperationStatus.FAILED
        assert running.error_message.startswith("all 3 items failed")

    def test_fail_is_terminal(self, running):
        running.fail("Operation cancelled after 0 of 3 items")

        assert running.status == BulkOperationStatus.FAILED
        assert running.status.is_terminal
        with pytest.raises(ValueError):
            running.fail("again")
        with pytest.raises(ValueError):
            running.complete()

    def test_cannot_start_twice(self, running):
        with pytest.raises(ValueError, match="Cannot start"):
            running.start()

    def test_snapshot_is_independent(self, running):
        running.record_item_result("a", "boom")

        snapshot = running.snapshot()
        running.record_item_result("b")

        assert snapshot.processed_items == 1
        assert snapshot.item_errors == {"a": "boom"}
        assert snapshot.item_errors is not running.item_errors
