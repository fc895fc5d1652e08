"""
Workflow Automation Engine

    - WorkflowStore: In-memory workflow definitions in stable creation order
    - WorkflowEngine: Create / update / delete workflows, evaluate events,
      record executions and summarise them per project
    - load_workflows_file() / load_history_file(): Read user-supplied JSON documents

Definitions and history live for one invocation; nothing is written back.

Usage:
    engine = WorkflowEngine(provider, store=load_workflows_file(Path("workflows.json")))
    executions = await engine.evaluate(event)
    status = engine.get_workflow_status(event.project_id)
"""

import json
import time
import uuid
from collections.abc import Callable, Iterable, Mapping
from datetime import datetime
from pathlib import Path
from typing import Any

from ghx.core import get_logger, log_with_context
from ghx.domain.constants import workflow_config
from ghx.domain.workflow import (
    Condition,
    ExecutionStatus,
    TriggerType,
    WorkflowAction,
    WorkflowDefinition,
    WorkflowEvent,
    WorkflowExecution,
    WorkflowState,
    WorkflowStatus,
    WorkflowUpdate,
    parse_action,
    parse_condition,
    validate_workflow_name,
)
from ghx.errors import (
    AccessDeniedError,
    InvalidRequestError,
    NotFoundError,
    RemoteMutationError,
    RemoteUnavailableError,
)
from ghx.provider.base import RemoteDataProvider
from ghx.utils.datetime_utils import utc_now
from ghx.utils.error_handling import log_and_continue

logger = get_logger(__name__)

ACTION_FAILURES = (AccessDeniedError, InvalidRequestError, NotFoundError, RemoteMutationError, RemoteUnavailableError)


class WorkflowStore:
    """
    In-memory workflow definitions keyed by id.

    ``list()`` returns definitions ordered by (created_at, id), which is the
    evaluation order.
    """

    def __init__(self, definitions: Iterable[WorkflowDefinition] = ()):
        self._definitions: dict[str, WorkflowDefinition] = {}
        for definition in definitions:
            self.add(definition)

    def __len__(self) -> int:
        return len(self._definitions)

    def add(self, definition: WorkflowDefinition) -> None:
        if definition.id in self._definitions:
            raise InvalidRequestError(f"duplicate workflow id: {definition.id}")
        self._definitions[definition.id] = definition

    def get(self, workflow_id: str) -> WorkflowDefinition:
        definition = self._definitions.get(workflow_id)
        if definition is None:
            raise NotFoundError(f"workflow {workflow_id} not found")
        return definition

    def remove(self, workflow_id: str) -> WorkflowDefinition:
        definition = self.get(workflow_id)
        del self._definitions[workflow_id]
        return definition

    def list(self, project_id: str | None = None) -> list[WorkflowDefinition]:
        definitions = [d for d in self._definitions.values() if project_id is None or d.project_id == project_id]
        return sorted(definitions, key=lambda d: (d.created_at, d.id))

    def to_document(self) -> dict[str, Any]:
        return {"workflows": [definition.to_dict() for definition in self.list()]}

    @classmethod
    def from_document(cls, document: Any) -> "WorkflowStore":
        """
        Build a store from ``{"workflows": [...]}`` or a bare list of definitions.

        Raises:
            InvalidRequestError: If the document is malformed
        """
        entries = document.get("workflows") if isinstance(document, Mapping) else document
        if not isinstance(entries, list):
            raise InvalidRequestError("workflows document must be a list or an object with a 'workflows' list")
        return cls(WorkflowDefinition.from_dict(entry) for entry in entries)


def _read_json(path: Path, description: str) -> Any:
    try:
        with path.open("r", encoding="utf-8") as f:
            return json.load(f)
    except FileNotFoundError as e:
        raise InvalidRequestError(f"{description} file not found: {path}") from e
    except json.JSONDecodeError as e:
        raise InvalidRequestError(f"{description} file {path} is not valid JSON: {e}") from e


def load_workflows_file(path: Path) -> WorkflowStore:
    """Load workflow definitions from a JSON file."""
    store = WorkflowStore.from_document(_read_json(path, "workflows"))
    logger.debug(f"Loaded {len(store)} workflows from {path}")
    return store


def load_history_file(path: Path) -> list[WorkflowExecution]:
    """Load execution records from ``{"executions": [...]}`` or a bare list."""
    document = _read_json(path, "history")
    entries = document.get("executions") if isinstance(document, Mapping) else document
    if not isinstance(entries, list):
        raise InvalidRequestError("history document must be a list or an object with an 'executions' list")
    return [WorkflowExecution.from_dict(entry) for entry in entries]


def load_event_file(path: Path) -> WorkflowEvent:
    """Load one project event from a JSON file."""
    document = _read_json(path, "event")
    if not isinstance(document, Mapping):
        raise InvalidRequestError("event document must be an object")
    return WorkflowEvent.from_dict(document)


class WorkflowEngine:
    """
    Evaluates workflows against project events.

    Args:
        provider: Performs workflow actions (required for evaluate())
        store: Workflow definitions
        history: Previously recorded executions
        clock: Returns the current time (executed_at, created_at)
        timer: Monotonic seconds used to measure execution duration
    """

    def __init__(
        self,
        provider: RemoteDataProvider | None = None,
        store: WorkflowStore | None = None,
        history: Iterable[WorkflowExecution] = (),
        clock: Callable[[], datetime] = utc_now,
        timer: Callable[[], float] = time.perf_counter,
    ):
        self.provider = provider
        self.store = store if store is not None else WorkflowStore()
        self._history: list[WorkflowExecution] = list(history)
        self._clock = clock
        self._timer = timer

    @property
    def history(self) -> list[WorkflowExecution]:
        return list(self._history)

    def create_workflow(
        self,
        project_id: str,
        name: str,
        trigger: TriggerType | str,
        action: WorkflowAction | str,
        condition: Condition | str | None = None,
        enabled: bool = True,
    ) -> WorkflowDefinition:
        """
        Create and store a workflow.

        Raises:
            InvalidRequestError: If the name, trigger, condition or action is invalid
        """
        if not project_id or not project_id.strip():
            raise InvalidRequestError("project id is required")

        now = self._clock()
        definition = WorkflowDefinition(
            id=f"wf_{uuid.uuid4().hex[:12]}",
            project_id=project_id.strip(),
            name=validate_workflow_name(name),
            trigger=TriggerType.parse(trigger),
            action=parse_action(action) if isinstance(action, str) else action,
            condition=parse_condition(condition) if isinstance(condition, str) else condition,
            created_at=now,
            updated_at=now,
        )
        if not enabled:
            definition.state = WorkflowState.DISABLED

        self.store.add(definition)
        logger.info(f"Created workflow {definition.id} '{definition.name}' on {definition.trigger.value}")
        return definition

    def update_workflow(self, workflow_id: str, update: WorkflowUpdate) -> WorkflowDefinition:
        """
        Apply a WorkflowUpdate. Disabled wins when both enable and disable are requested.

        Raises:
            NotFoundError: If the workflow does not exist
            InvalidRequestError: If the new name is invalid
        """
        definition = self.store.get(workflow_id)
        name = validate_workflow_name(update.name) if update.name is not None else None

        if name is not None:
            definition.name = name
        state = update.resolved_state()
        if state is not None:
            definition.state = state
        definition.updated_at = self._clock()

        logger.info(f"Updated workflow {workflow_id} (state={definition.state.value})")
        return definition

    def delete_workflow(self, workflow_id: str) -> WorkflowDefinition:
        """
        Raises:
            NotFoundError: If the workflow does not exist
        """
        definition = self.store.remove(workflow_id)
        logger.info(f"Deleted workflow {workflow_id}")
        return definition

    def get_workflow(self, workflow_id: str) -> WorkflowDefinition:
        return self.store.get(workflow_id)

    def list_workflows(self, project_id: str) -> list[WorkflowDefinition]:
        return self.store.list(project_id)

    async def evaluate(self, event: WorkflowEvent) -> list[WorkflowExecution]:
        """
        Run every enabled workflow of the event's project whose trigger matches.

        Workflows run one after another in creation order. A failing action is
        recorded as a FAILURE execution and does not stop the remaining
        workflows; AuthenticationError is fatal and propagates.

        Returns:
            Executions produced by this event, in evaluation order
        """
        if self.provider is None:
            raise RuntimeError("WorkflowEngine needs a provider to evaluate events")

        candidates = [
            definition
            for definition in self.store.list(event.project_id)
            if definition.is_enabled and definition.trigger is event.trigger
        ]

        executions = []
        for definition in candidates:
            if definition.condition is not None and not definition.condition.matches(event.payload):
                logger.debug(f"Workflow {definition.id} skipped: condition {definition.condition.describe()} not met")
                continue

            execution = await self._execute(definition, event)
            self.record_execution(execution)
            executions.append(execution)

        log_with_context(
            logger,
            "info",
            "Event evaluated",
            trigger=event.trigger.value,
            project_id=event.project_id,
            item_id=event.item.item_id,
            candidates=len(candidates),
            executions=len(executions),
        )
        return executions

    async def _execute(self, definition: WorkflowDefinition, event: WorkflowEvent) -> WorkflowExecution:
        started = self._timer()
        error: str | None = None

        try:
            result = await self.provider.invoke_action(event.project_id, definition.action, event.item)
            if not result.success:
                error = result.error or "action failed"
        except ACTION_FAILURES as e:
            log_and_continue(
                logger,
                e,
                context={"workflow_id": definition.id, "item_id": event.item.item_id},
                error_type="Workflow action",
            )
            error = str(e)

        duration = max(self._timer() - started, 0.0)
        return WorkflowExecution(
            workflow_id=definition.id,
            workflow_name=definition.name,
            project_id=definition.project_id,
            trigger=event.trigger,
            status=ExecutionStatus.FAILURE if error else ExecutionStatus.SUCCESS,
            duration=duration,
            executed_at=self._clock(),
            error_message=error,
        )

    def record_execution(self, execution: WorkflowExecution) -> None:
        self._history.append(execution)

    def get_workflow_status(
        self, project_id: str, recent_limit: int = workflow_config.RECENT_EXECUTIONS_LIMIT
    ) -> WorkflowStatus:
        """
        Summarise workflows and executions of one project.

        ``success_rate`` is successes / total executions, 0.0 without executions.
        ``recent_executions`` holds at most ``recent_limit`` entries, newest first.
        """
        definitions = self.store.list(project_id)
        executions = [execution for execution in self._history if execution.project_id == project_id]
        successes = sum(1 for execution in executions if execution.succeeded)

        # Newest first; ties keep the most recently recorded first
        recent = sorted(reversed(executions), key=lambda execution: execution.executed_at, reverse=True)

        return WorkflowStatus(
            project_id=project_id,
            total_workflows=len(definitions),
            active_workflows=sum(1 for definition in definitions if definition.is_enabled),
            total_executions=len(executions),
            success_rate=successes / len(executions) if executions else 0.0,
            recent_executions=recent[: max(recent_limit, 0)],
        )
