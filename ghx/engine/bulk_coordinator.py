"""
Bulk Operation Coordinator

Executes a mutation over a batch of project items as one tracked operation:

    - validates the request before any remote call
    - runs item mutations through a bounded pool of asyncio workers
    - records every item outcome on the BulkOperation (single writer on the event loop)
    - derives COMPLETED / PARTIALLY_FAILED / FAILED from the final counters
    - supports cooperative cancellation and per-item timeouts

Usage:
    coordinator = BulkOperationCoordinator(provider, max_workers=8)
    operation = await coordinator.submit(project.id, ["PVTI_1", "PVTI_2"], {"Status": "Done"})

    # Or keep a handle for polling / cancellation
    handle = coordinator.start(project.id, item_ids, op_type=BulkOperationType.ARCHIVE)
    print(handle.operation.progress)
    operation = await handle.result()
"""

import asyncio
import math
from collections.abc import Callable, Sequence

from ghx.core import get_logger, log_with_context
from ghx.domain.bulk import BulkOperation, BulkOperationType, FieldUpdates
from ghx.domain.constants import bulk_operations
from ghx.errors import (
    AccessDeniedError,
    AuthenticationError,
    InvalidRequestError,
    NotFoundError,
    RemoteMutationError,
    RemoteUnavailableError,
)
from ghx.provider.base import RemoteDataProvider
from ghx.utils.error_handling import log_and_continue

logger = get_logger(__name__)

ProgressCallback = Callable[[BulkOperation], None]

ITEM_FAILURES = (AccessDeniedError, InvalidRequestError, NotFoundError, RemoteMutationError, RemoteUnavailableError)


def validate_bulk_request(
    item_ids: Sequence[str],
    updates: FieldUpdates | None,
    op_type: BulkOperationType,
    project_id: str | None = None,
) -> None:
    """
    Reject malformed bulk requests before anything is sent.

    Raises:
        InvalidRequestError: Missing project, empty or blank item ids, or an UPDATE without field updates
    """
    if project_id is not None and not project_id.strip():
        raise InvalidRequestError("project id is required")
    if not item_ids:
        raise InvalidRequestError("no items specified for update")
    if any(not item_id or not str(item_id).strip() for item_id in item_ids):
        raise InvalidRequestError("item ids cannot be blank")
    if op_type is BulkOperationType.UPDATE and not updates:
        raise InvalidRequestError("no field updates specified")


class BulkOperationHandle:
    """
    Running bulk operation.

    ``operation`` returns a snapshot for polling; ``cancel()`` asks the workers
    to stop taking new items; ``result()`` waits for the terminal record.
    """

    def __init__(self, operation: BulkOperation, task: "asyncio.Task[None]", cancel_event: asyncio.Event):
        self._operation = operation
        self._task = task
        self._cancel_event = cancel_event

    @property
    def operation_id(self) -> str:
        return self._operation.id

    @property
    def operation(self) -> BulkOperation:
        return self._operation.snapshot()

    @property
    def cancel_requested(self) -> bool:
        return self._cancel_event.is_set()

    def done(self) -> bool:
        return self._task.done()

    def cancel(self) -> None:
        """Request cooperative cancellation: in-flight items finish, no new item starts."""
        self._cancel_event.set()

    async def result(self) -> BulkOperation:
        """
        Wait for the operation to finish.

        Raises:
            AuthenticationError: If credentials were rejected mid-batch
        """
        await self._task
        return self._operation.snapshot()


class BulkOperationCoordinator:
    """
    Runs bulk item mutations against a RemoteDataProvider.

    Operations started by this coordinator stay queryable through
    ``get_operation`` for the rest of the invocation.
    """

    def __init__(
        self,
        provider: RemoteDataProvider,
        max_workers: int = bulk_operations.MAX_WORKERS,
        item_timeout: float = bulk_operations.ITEM_TIMEOUT_SECONDS,
        progress_callback: ProgressCallback | None = None,
    ):
        """
        Args:
            provider: Remote data provider used for every mutation
            max_workers: Maximum concurrent item mutations
            item_timeout: Seconds allowed for one item mutation
            progress_callback: Called with an operation snapshot after each item
        """
        if max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {max_workers}")
        if item_timeout <= 0:
            raise ValueError(f"item_timeout must be positive, got {item_timeout}")

        self.provider = provider
        self.max_workers = max_workers
        self.item_timeout = item_timeout
        self.progress_callback = progress_callback
        self._operations: dict[str, BulkOperation] = {}

    def start(
        self,
        project_id: str,
        item_ids: Sequence[str],
        updates: FieldUpdates | None = None,
        op_type: BulkOperationType | str = BulkOperationType.UPDATE,
        cancel_event: asyncio.Event | None = None,
    ) -> BulkOperationHandle:
        """
        Validate the request and schedule the operation on the running event loop.

        Args:
            project_id: Project node ID
            item_ids: Project item IDs, each attempted exactly once
            updates: Field name -> value (required for UPDATE)
            op_type: UPDATE, DELETE or ARCHIVE
            cancel_event: Optional external cancellation signal

        Returns:
            Handle to the running operation

        Raises:
            InvalidRequestError: If the request is malformed (no remote call is made)
        """
        op_type = BulkOperationType.parse(op_type)
        validate_bulk_request(item_ids, updates, op_type, project_id=project_id)

        operation = BulkOperation.new(op_type, total_items=len(item_ids))
        self._operations[operation.id] = operation

        cancel_event = cancel_event or asyncio.Event()
        task = asyncio.create_task(self._run(operation, project_id, list(item_ids), updates, cancel_event))
        return BulkOperationHandle(operation, task, cancel_event)

    async def submit(
        self,
        project_id: str,
        item_ids: Sequence[str],
        updates: FieldUpdates | None = None,
        op_type: BulkOperationType | str = BulkOperationType.UPDATE,
        cancel_event: asyncio.Event | None = None,
    ) -> BulkOperation:
        """
        Run a bulk operation to completion and return its terminal record.

        Raises:
            InvalidRequestError: If the request is malformed (no remote call is made)
            AuthenticationError: If credentials were rejected mid-batch
        """
        handle = self.start(project_id, item_ids, updates, op_type, cancel_event)
        return await handle.result()

    async def submit_to_project(
        self,
        owner: str,
        number: int,
        item_ids: Sequence[str],
        updates: FieldUpdates | None = None,
        op_type: BulkOperationType | str = BulkOperationType.UPDATE,
        cancel_event: asyncio.Event | None = None,
    ) -> BulkOperation:
        """
        Resolve ``owner/number`` and run the operation against it.

        If the remote system is unavailable while resolving the project, no
        item is attempted and a FAILED operation with ``processed_items == 0``
        is returned.

        Raises:
            InvalidRequestError: If the request is malformed
            NotFoundError / AccessDeniedError: If the project cannot be resolved
        """
        op_type = BulkOperationType.parse(op_type)
        validate_bulk_request(item_ids, updates, op_type)

        try:
            project = await self.provider.fetch_project(owner, number)
        except RemoteUnavailableError as e:
            operation = BulkOperation.new(op_type, total_items=len(item_ids))
            self._operations[operation.id] = operation
            operation.fail(f"remote system unavailable before any item was attempted: {e}")
            log_with_context(
                logger,
                "error",
                "Bulk operation failed before dispatch",
                operation_id=operation.id,
                project=f"{owner}/{number}",
                error=str(e),
            )
            return operation.snapshot()

        return await self.submit(project.id, item_ids, updates, op_type, cancel_event)

    def get_operation(self, operation_id: str) -> BulkOperation:
        """
        Current state of an operation started during this invocation.

        Raises:
            NotFoundError: If the id is unknown
        """
        operation = self._operations.get(operation_id)
        if operation is None:
            raise NotFoundError(f"bulk operation {operation_id} not found")
        return operation.snapshot()

    async def _run(
        self,
        operation: BulkOperation,
        project_id: str,
        item_ids: list[str],
        updates: FieldUpdates | None,
        cancel_event: asyncio.Event,
    ) -> None:
        operation.start()
        worker_count = min(self.max_workers, len(item_ids))
        log_with_context(
            logger,
            "info",
            "Bulk operation started",
            operation_id=operation.id,
            type=operation.type.value,
            project_id=project_id,
            total_items=operation.total_items,
            workers=worker_count,
        )

        queue: asyncio.Queue[str] = asyncio.Queue()
        for item_id in item_ids:
            queue.put_nowait(item_id)

        progress_step = max(1, math.ceil(operation.total_items / bulk_operations.PROGRESS_LOG_STEPS))

        async def worker() -> None:
            while not cancel_event.is_set():
                try:
                    item_id = queue.get_nowait()
                except asyncio.QueueEmpty:
                    return
                error = await self._attempt_item(operation, project_id, item_id, updates)
                operation.record_item_result(item_id, error)
                if operation.processed_items % progress_step == 0:
                    logger.info(
                        f"Bulk operation {operation.id}: {operation.processed_items}/{operation.total_items} items "
                        f"processed ({operation.failed_items} failed)"
                    )
                if self.progress_callback:
                    self.progress_callback(operation.snapshot())

        workers = [asyncio.create_task(worker()) for _ in range(worker_count)]
        try:
            await asyncio.gather(*workers)
        except BaseException as e:
            for task in workers:
                task.cancel()
            await asyncio.gather(*workers, return_exceptions=True)
            if isinstance(e, asyncio.CancelledError):
                operation.fail(self._cancel_message(operation))
            else:
                operation.fail(
                    f"aborted after {operation.processed_items} of {operation.total_items} items: {e}"
                )
            logger.error(
                f"Bulk operation {operation.id} aborted",
                exc_info=not isinstance(e, (asyncio.CancelledError, AuthenticationError)),
                extra={"operation_id": operation.id, "error_type": type(e).__name__},
            )
            raise

        if operation.processed_items < operation.total_items:
            operation.fail(self._cancel_message(operation))
        else:
            operation.complete()

        log_with_context(
            logger,
            "info" if operation.failed_items == 0 and not operation.error_message else "warning",
            "Bulk operation finished",
            operation_id=operation.id,
            status=operation.status.value,
            processed_items=operation.processed_items,
            failed_items=operation.failed_items,
            total_items=operation.total_items,
        )

    async def _attempt_item(
        self,
        operation: BulkOperation,
        project_id: str,
        item_id: str,
        updates: FieldUpdates | None,
    ) -> str | None:
        """Mutate one item; returns the failure message or None on success."""
        try:
            result = await asyncio.wait_for(
                self.provider.mutate_item(project_id, item_id, operation.type, updates),
                timeout=self.item_timeout,
            )
        except asyncio.TimeoutError:
            error = f"timed out after {self.item_timeout:g}s"
            logger.warning(f"Item {item_id} {error}", extra={"operation_id": operation.id, "item_id": item_id})
            return error
        except ITEM_FAILURES as e:
            log_and_continue(
                logger, e, context={"operation_id": operation.id, "item_id": item_id}, error_type="Item mutation"
            )
            return str(e)

        if result.success:
            return None
        logger.warning(
            f"Item {item_id} mutation failed: {result.error}", extra={"operation_id": operation.id, "item_id": item_id}
        )
        return result.error or "mutation failed"

    @staticmethod
    def _cancel_message(operation: BulkOperation) -> str:
        return f"Operation cancelled after {operation.processed_items} of {operation.total_items} items"
