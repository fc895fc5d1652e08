"""
Bulk operation domain models

Tracks one bulk mutation over a set of project items:
    - BulkOperationType: What is done to each item
    - BulkOperationStatus: Lifecycle state
    - BulkOperation: Mutable operation record with progress counters

Lifecycle:
    PENDING -> RUNNING -> COMPLETED | PARTIALLY_FAILED | FAILED

The terminal status is computed from the final counters; a cancelled or
aborted operation is moved to FAILED with an explanatory message.
"""

import dataclasses
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from ghx.errors import InvalidRequestError
from ghx.utils.datetime_utils import utc_now

# Field name -> new value; None clears the field
FieldUpdates = dict[str, Any]

# Types the remote system knows about but this engine does not run as bulk operations
_UNSUPPORTED_TYPES = ("IMPORT", "EXPORT", "MOVE")


class BulkOperationType(str, Enum):
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    ARCHIVE = "ARCHIVE"

    @classmethod
    def parse(cls, value: "str | BulkOperationType") -> "BulkOperationType":
        """
        Parse an operation type, accepting any case and '-' for '_'.

        Raises:
            InvalidRequestError: If the type is unknown or not supported
        """
        if isinstance(value, cls):
            return value
        normalized = str(value).strip().upper().replace("-", "_")
        valid = ", ".join(member.value for member in cls)
        if normalized in _UNSUPPORTED_TYPES:
            raise InvalidRequestError(f"bulk operation type {normalized} is not supported (valid types: {valid})")
        try:
            return cls(normalized)
        except ValueError:
            raise InvalidRequestError(f"invalid bulk operation type: {value} (valid types: {valid})") from None


class BulkOperationStatus(str, Enum):
    PENDING = "PENDING"
    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    PARTIALLY_FAILED = "PARTIALLY_FAILED"

    @property
    def is_terminal(self) -> bool:
        return self in (BulkOperationStatus.COMPLETED, BulkOperationStatus.FAILED, BulkOperationStatus.PARTIALLY_FAILED)


@dataclass
class BulkOperation:
    """
    Record of one bulk operation.

    Counters only move forward while RUNNING and never exceed ``total_items``:
    ``failed_items <= processed_items <= total_items``.

    Attributes:
        id: Operation identifier ("bulk_<hex>")
        type: Operation type
        total_items: Number of items in the batch (always positive)
        status: Lifecycle state
        processed_items: Items attempted so far (succeeded or failed)
        failed_items: Items whose mutation failed
        created_at: Creation time (UTC)
        completed_at: Set once, on the terminal transition
        error_message: Summary for FAILED / PARTIALLY_FAILED operations
        item_errors: Per-item failure messages (item id -> message)

    Example:
        >>> op = BulkOperation.new(BulkOperationType.UPDATE, total_items=3)
        >>> op.start()
        >>> op.record_item_result("PVTI_1")
        >>> op.progress
        0.3333333333333333
    """

    id: str
    type: BulkOperationType
    total_items: int
    status: BulkOperationStatus = BulkOperationStatus.PENDING
    processed_items: int = 0
    failed_items: int = 0
    created_at: datetime = field(default_factory=utc_now)
    completed_at: datetime | None = None
    error_message: str | None = None
    item_errors: dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.total_items <= 0:
            raise ValueError(f"total_items must be positive, got {self.total_items}")
        if not isinstance(self.created_at, datetime):
            raise TypeError(f"created_at must be datetime, got {type(self.created_at)}")

    @classmethod
    def new(cls, op_type: BulkOperationType, total_items: int, created_at: datetime | None = None) -> "BulkOperation":
        """Create a PENDING operation with a fresh identifier."""
        return cls(
            id=f"bulk_{uuid.uuid4().hex[:16]}",
            type=op_type,
            total_items=total_items,
            created_at=created_at or utc_now(),
        )

    @property
    def progress(self) -> float:
        """Fraction of items processed, in [0, 1]."""
        if self.total_items == 0:
            return 0.0
        return self.processed_items / self.total_items

    @property
    def succeeded_items(self) -> int:
        return self.processed_items - self.failed_items

    def start(self) -> None:
        """Move PENDING -> RUNNING."""
        if self.status is not BulkOperationStatus.PENDING:
            raise ValueError(f"Cannot start operation {self.id} in status {self.status.value}")
        self.status = BulkOperationStatus.RUNNING

    def record_item_result(self, item_id: str, error: str | None = None) -> None:
        """
        Record the outcome of one item.

        Args:
            item_id: Item that was attempted
            error: Failure message, or None on success

        Raises:
            ValueError: If the operation is not RUNNING or every item is already counted
        """
        if self.status is not BulkOperationStatus.RUNNING:
            raise ValueError(f"Cannot record results for operation {self.id} in status {self.status.value}")
        if self.processed_items >= self.total_items:
            raise ValueError(f"Operation {self.id} already processed all {self.total_items} items")

        self.processed_items += 1
        if error is not None:
            self.failed_items += 1
            self.item_errors[item_id] = error

    def complete(self, completed_at: datetime | None = None) -> None:
        """
        Finish a RUNNING operation, deriving the terminal status from the counters.

        Raises:
            ValueError: If not RUNNING or items are still outstanding
        """
        if self.status is not BulkOperationStatus.RUNNING:
            raise ValueError(f"Cannot complete operation {self.id} in status {self.status.value}")
        if self.processed_items != self.total_items:
            raise ValueError(
                f"Cannot complete operation {self.id}: {self.processed_items} of {self.total_items} items processed"
            )

        if self.failed_items == 0:
            self.status = BulkOperationStatus.COMPLETED
        elif self.failed_items < self.total_items:
            self.status = BulkOperationStatus.PARTIALLY_FAILED
            self.error_message = f"{self.failed_items} of {self.total_items} items failed{self._first_error_suffix()}"
        else:
            self.status = BulkOperationStatus.FAILED
            self.error_message = f"all {self.total_items} items failed{self._first_error_suffix()}"

        self.completed_at = completed_at or utc_now()

    def fail(self, message: str, completed_at: datetime | None = None) -> None:
        """
        Move a PENDING or RUNNING operation to FAILED.

        Used for cancellation and for errors that stop the whole batch.
        """
        if self.status.is_terminal:
            raise ValueError(f"Operation {self.id} already finished with status {self.status.value}")
        self.status = BulkOperationStatus.FAILED
        self.error_message = message
        self.completed_at = completed_at or utc_now()

    def snapshot(self) -> "BulkOperation":
        """Independent copy for status polling."""
        return dataclasses.replace(self, item_errors=dict(self.item_errors))

    def _first_error_suffix(self) -> str:
        if not self.item_errors:
            return ""
        item_id, message = next(iter(self.item_errors.items()))
        return f" (first error: {item_id}: {message})"
