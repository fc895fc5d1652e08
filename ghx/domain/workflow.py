"""
Workflow automation domain models

A workflow is a trigger, an optional condition and an action:

    trigger  - which project event starts evaluation (TriggerType)
    condition - predicate over the event payload (Condition variants)
    action   - what is done to the item when the condition holds (WorkflowAction)

Evaluations are recorded as WorkflowExecution entries and summarised by
WorkflowStatus.

Textual forms accepted from the command line:
    trigger:   "item_added", "item-added", "issue.opened", "pull_request.merged"
    condition: "label=critical", "priority in (High, Urgent)"
    action:    "set_field:Priority=High", "move_to_status:Done", "assign_user:octocat",
               "add_comment:Thanks!", "clear_field:Priority", "archive_item", "add_to_project"
"""

import re
from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, ClassVar

from ghx.domain.constants import workflow_config
from ghx.domain.project import ItemRef
from ghx.errors import InvalidRequestError
from ghx.utils.datetime_utils import format_utc, parse_github_timestamp, utc_now


def _normalize_token(value: str) -> str:
    return re.sub(r"[\s.\-]+", "_", str(value).strip().lower())


class TriggerType(str, Enum):
    """Project events that can start a workflow."""

    ITEM_ADDED = "item_added"
    ITEM_UPDATED = "item_updated"
    ITEM_ARCHIVED = "item_archived"
    FIELD_CHANGED = "field_changed"
    STATUS_CHANGED = "status_changed"
    ASSIGNEE_CHANGED = "assignee_changed"
    SCHEDULED = "scheduled"
    ISSUE_OPENED = "issue_opened"
    ISSUE_CLOSED = "issue_closed"
    ISSUE_REOPENED = "issue_reopened"
    ISSUE_LABELED = "issue_labeled"
    PR_OPENED = "pr_opened"
    PR_CLOSED = "pr_closed"
    PR_MERGED = "pr_merged"

    @classmethod
    def parse(cls, value: "str | TriggerType") -> "TriggerType":
        """
        Parse a trigger name in any of its accepted spellings.

        Raises:
            InvalidRequestError: If the trigger is unknown
        """
        if isinstance(value, cls):
            return value
        normalized = _normalize_token(value)
        normalized = _TRIGGER_ALIASES.get(normalized, normalized)
        try:
            return cls(normalized)
        except ValueError:
            valid = ", ".join(member.value for member in cls)
            raise InvalidRequestError(f"invalid trigger type: {value} (valid types: {valid})") from None


_TRIGGER_ALIASES = {
    "pull_request_opened": "pr_opened",
    "pull_request_closed": "pr_closed",
    "pull_request_merged": "pr_merged",
    "issue_created": "issue_opened",
}


class ActionType(str, Enum):
    """Actions a workflow can perform on an item."""

    SET_FIELD = "set_field"
    CLEAR_FIELD = "clear_field"
    MOVE_TO_STATUS = "move_to_status"
    ASSIGN_USER = "assign_user"
    ADD_COMMENT = "add_comment"
    ARCHIVE_ITEM = "archive_item"
    ADD_TO_PROJECT = "add_to_project"

    @classmethod
    def parse(cls, value: "str | ActionType") -> "ActionType":
        """
        Parse an action name.

        Raises:
            InvalidRequestError: If the action is unknown
        """
        if isinstance(value, cls):
            return value
        normalized = _normalize_token(value)
        normalized = _ACTION_ALIASES.get(normalized, normalized)
        try:
            return cls(normalized)
        except ValueError:
            valid = ", ".join(member.value for member in cls)
            raise InvalidRequestError(f"invalid action type: {value} (valid types: {valid})") from None


_ACTION_ALIASES = {
    "move_to_column": "move_to_status",
    "assign": "assign_user",
    "archive": "archive_item",
    "comment": "add_comment",
}

_REQUIRED_ACTION_PARAMS: dict[ActionType, tuple[str, ...]] = {
    ActionType.SET_FIELD: ("field", "value"),
    ActionType.CLEAR_FIELD: ("field",),
    ActionType.MOVE_TO_STATUS: ("status",),
    ActionType.ASSIGN_USER: ("user",),
    ActionType.ADD_COMMENT: ("body",),
    ActionType.ARCHIVE_ITEM: (),
    ActionType.ADD_TO_PROJECT: (),
}


class WorkflowState(str, Enum):
    ENABLED = "enabled"
    DISABLED = "disabled"


class ExecutionStatus(str, Enum):
    SUCCESS = "success"
    FAILURE = "failed"


# ===== Conditions =====


def _lookup(payload: Mapping[str, Any], field_name: str) -> tuple[bool, Any]:
    """Find a payload entry by field name, ignoring case."""
    if field_name in payload:
        return True, payload[field_name]
    wanted = field_name.lower()
    for key, value in payload.items():
        if str(key).lower() == wanted:
            return True, value
    return False, None


def _candidate_values(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, (list, tuple, set, frozenset)):
        return [str(entry) for entry in value if entry is not None]
    return [str(value)]


class Condition(ABC):
    """
    Predicate over an event payload.

    Each subclass is one predicate kind identified by ``kind``; new kinds are
    added by subclassing and registering in ``_CONDITION_KINDS``.
    """

    kind: ClassVar[str]

    @abstractmethod
    def matches(self, payload: Mapping[str, Any]) -> bool: ...

    @abstractmethod
    def to_dict(self) -> dict[str, Any]: ...

    @abstractmethod
    def describe(self) -> str: ...


@dataclass(frozen=True)
class EqualsCondition(Condition):
    """
    True when the payload field equals the value.

    List-valued fields (e.g. labels) match when any element equals the value.
    """

    field: str
    value: str

    kind: ClassVar[str] = "equals"

    def matches(self, payload: Mapping[str, Any]) -> bool:
        found, value = _lookup(payload, self.field)
        return found and self.value in _candidate_values(value)

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind, "field": self.field, "value": self.value}

    def describe(self) -> str:
        return f"{self.field}={self.value}"


@dataclass(frozen=True)
class MembershipCondition(Condition):
    """True when the payload field takes one of the listed values."""

    field: str
    values: tuple[str, ...]

    kind: ClassVar[str] = "in"

    def matches(self, payload: Mapping[str, Any]) -> bool:
        found, value = _lookup(payload, self.field)
        return found and any(candidate in self.values for candidate in _candidate_values(value))

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind, "field": self.field, "values": list(self.values)}

    def describe(self) -> str:
        return f"{self.field} in ({', '.join(self.values)})"


_MEMBERSHIP_PATTERN = re.compile(r"^(?P<field>.+?)\s+in\s+\((?P<values>.*)\)$", re.IGNORECASE)


def parse_condition(text: str | None) -> Condition | None:
    """
    Parse a condition string.

    Args:
        text: "field=value", "field in (a, b)", or empty for no condition

    Returns:
        Condition, or None when text is empty

    Raises:
        InvalidRequestError: If the text is not a recognised condition

    Example:
        >>> parse_condition("label=critical")
        EqualsCondition(field='label', value='critical')
    """
    if text is None or not text.strip():
        return None
    text = text.strip()

    membership = _MEMBERSHIP_PATTERN.match(text)
    if membership:
        field_name = membership.group("field").strip()
        values = tuple(value.strip() for value in membership.group("values").split(",") if value.strip())
        if field_name and values:
            return MembershipCondition(field=field_name, values=values)

    if "=" in text:
        field_name, value = (part.strip() for part in text.split("=", 1))
        if field_name and value:
            return EqualsCondition(field=field_name, value=value)

    raise InvalidRequestError(f"invalid condition: {text} (expected field=value or field in (a, b))")


def condition_from_dict(data: Mapping[str, Any] | None) -> Condition | None:
    """
    Rebuild a condition from its ``to_dict()`` form.

    Raises:
        InvalidRequestError: If the kind is unknown or fields are missing
    """
    if not data:
        return None
    kind = data.get("kind")
    condition_cls = _CONDITION_KINDS.get(kind)
    if condition_cls is None:
        raise InvalidRequestError(f"invalid condition kind: {kind} (valid kinds: {', '.join(_CONDITION_KINDS)})")
    try:
        if condition_cls is MembershipCondition:
            return MembershipCondition(field=data["field"], values=tuple(str(v) for v in data["values"]))
        return EqualsCondition(field=data["field"], value=str(data["value"]))
    except KeyError as e:
        raise InvalidRequestError(f"condition is missing {e.args[0]!r}") from e


_CONDITION_KINDS: dict[str, type[Condition]] = {
    EqualsCondition.kind: EqualsCondition,
    MembershipCondition.kind: MembershipCondition,
}


# ===== Actions =====


@dataclass(frozen=True)
class WorkflowAction:
    """
    Action performed by a workflow.

    Attributes:
        type: Action type
        params: Action parameters (e.g. {"field": "Priority", "value": "High"})
    """

    type: ActionType
    params: dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        missing = [name for name in _REQUIRED_ACTION_PARAMS[self.type] if not self.params.get(name)]
        if missing:
            raise InvalidRequestError(f"action {self.type.value} requires: {', '.join(missing)}")

    def describe(self) -> str:
        if self.type is ActionType.SET_FIELD:
            return f"{self.type.value}:{self.params['field']}={self.params['value']}"
        if self.type is ActionType.CLEAR_FIELD:
            return f"{self.type.value}:{self.params['field']}"
        if self.type is ActionType.MOVE_TO_STATUS:
            return f"{self.type.value}:{self.params['status']}"
        if self.type is ActionType.ASSIGN_USER:
            return f"{self.type.value}:{self.params['user']}"
        if self.type is ActionType.ADD_COMMENT:
            return f"{self.type.value}:{self.params['body']}"
        return self.type.value

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type.value, "params": dict(self.params)}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "WorkflowAction":
        if "type" not in data:
            raise InvalidRequestError("action is missing 'type'")
        params = {str(key): str(value) for key, value in (data.get("params") or {}).items()}
        return cls(type=ActionType.parse(data["type"]), params=params)


def parse_action(text: str) -> WorkflowAction:
    """
    Parse an action string of the form "type[:argument]".

    Raises:
        InvalidRequestError: If the type is unknown or the argument is malformed

    Example:
        >>> parse_action("set_field:Priority=High").params
        {'field': 'Priority', 'value': 'High'}
    """
    if not text or not text.strip():
        raise InvalidRequestError("action cannot be empty")

    type_text, _, argument = text.strip().partition(":")
    action_type = ActionType.parse(type_text)
    argument = argument.strip()

    if action_type is ActionType.SET_FIELD:
        field_name, separator, value = argument.partition("=")
        if not separator:
            raise InvalidRequestError(f"invalid action: {text} (expected set_field:Field=Value)")
        return WorkflowAction(action_type, {"field": field_name.strip(), "value": value.strip()})
    if action_type is ActionType.CLEAR_FIELD:
        return WorkflowAction(action_type, {"field": argument})
    if action_type is ActionType.MOVE_TO_STATUS:
        return WorkflowAction(action_type, {"status": argument})
    if action_type is ActionType.ASSIGN_USER:
        return WorkflowAction(action_type, {"user": argument.lstrip("@")})
    if action_type is ActionType.ADD_COMMENT:
        return WorkflowAction(action_type, {"body": argument})
    return WorkflowAction(action_type)


# ===== Definitions, events and executions =====


def validate_workflow_name(name: str | None) -> str:
    """
    Validate and normalise a workflow name.

    Returns:
        The name with surrounding whitespace removed

    Raises:
        InvalidRequestError: If the name is blank or too long
    """
    stripped = (name or "").strip()
    if not stripped:
        raise InvalidRequestError("workflow name cannot be empty")
    if len(stripped) > workflow_config.MAX_NAME_LENGTH:
        raise InvalidRequestError(f"workflow name cannot exceed {workflow_config.MAX_NAME_LENGTH} characters")
    return stripped


@dataclass
class WorkflowDefinition:
    """
    Automation rule bound to one project.

    Attributes:
        id: Workflow identifier ("wf_<hex>")
        project_id: Project node ID the workflow belongs to
        name: Display name (1-100 characters)
        trigger: Event type that starts evaluation
        action: Action performed when the condition holds
        condition: Optional predicate; absent means always true
        state: ENABLED or DISABLED
        created_at: Creation time, used for evaluation order
        updated_at: Last modification time
    """

    id: str
    project_id: str
    name: str
    trigger: TriggerType
    action: WorkflowAction
    condition: Condition | None = None
    state: WorkflowState = WorkflowState.ENABLED
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime | None = None

    @property
    def is_enabled(self) -> bool:
        return self.state is WorkflowState.ENABLED

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "projectId": self.project_id,
            "name": self.name,
            "trigger": self.trigger.value,
            "condition": self.condition.to_dict() if self.condition else None,
            "action": self.action.to_dict(),
            "enabled": self.is_enabled,
            "createdAt": format_utc(self.created_at),
            "updatedAt": format_utc(self.updated_at),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "WorkflowDefinition":
        """
        Build a definition from its ``to_dict()`` form.

        Conditions and actions may also be given in their textual form.

        Raises:
            InvalidRequestError: If required keys are missing or values are invalid
        """
        for key in ("id", "projectId", "name", "trigger", "action"):
            if key not in data:
                raise InvalidRequestError(f"workflow definition is missing {key!r}")

        raw_condition = data.get("condition")
        condition = (
            parse_condition(raw_condition) if isinstance(raw_condition, str) else condition_from_dict(raw_condition)
        )
        raw_action = data["action"]
        action = parse_action(raw_action) if isinstance(raw_action, str) else WorkflowAction.from_dict(raw_action)

        try:
            created_at = parse_github_timestamp(data.get("createdAt")) or utc_now()
            updated_at = parse_github_timestamp(data.get("updatedAt"))
        except ValueError as e:
            raise InvalidRequestError(f"workflow {data['id']}: {e}") from e

        return cls(
            id=str(data["id"]),
            project_id=str(data["projectId"]),
            name=validate_workflow_name(data["name"]),
            trigger=TriggerType.parse(data["trigger"]),
            action=action,
            condition=condition,
            state=WorkflowState.ENABLED if data.get("enabled", True) else WorkflowState.DISABLED,
            created_at=created_at,
            updated_at=updated_at,
        )


@dataclass
class WorkflowUpdate:
    """
    Requested changes to a workflow.

    When both ``enabled`` and ``disabled`` are set, disabled wins.
    """

    name: str | None = None
    enabled: bool = False
    disabled: bool = False

    def resolved_state(self) -> WorkflowState | None:
        """State to apply, or None to leave the state unchanged."""
        if self.disabled:
            return WorkflowState.DISABLED
        if self.enabled:
            return WorkflowState.ENABLED
        return None


@dataclass
class WorkflowEvent:
    """
    Project event evaluated against workflows.

    Attributes:
        trigger: Event type
        project_id: Project node ID
        item: Item the event refers to
        payload: Field values available to conditions (e.g. {"label": ["bug"], "Status": "Todo"})
        occurred_at: When the event happened
    """

    trigger: TriggerType
    project_id: str
    item: ItemRef
    payload: dict[str, Any] = field(default_factory=dict)
    occurred_at: datetime = field(default_factory=utc_now)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "WorkflowEvent":
        """
        Build an event from a JSON document.

        Example document:
            {"trigger": "issue.opened", "projectId": "PVT_1", "itemId": "PVTI_1",
             "contentId": "I_1", "payload": {"label": ["critical"]}}
        """
        for key in ("trigger", "projectId", "itemId"):
            if key not in data:
                raise InvalidRequestError(f"event is missing {key!r}")
        payload = data.get("payload") or {}
        if not isinstance(payload, Mapping):
            raise InvalidRequestError("event payload must be an object")
        try:
            occurred_at = parse_github_timestamp(data.get("occurredAt")) or utc_now()
        except ValueError as e:
            raise InvalidRequestError(f"event: {e}") from e
        return cls(
            trigger=TriggerType.parse(data["trigger"]),
            project_id=str(data["projectId"]),
            item=ItemRef(item_id=str(data["itemId"]), content_id=data.get("contentId")),
            payload=dict(payload),
            occurred_at=occurred_at,
        )


@dataclass(frozen=True)
class WorkflowExecution:
    """
    Outcome of one workflow evaluation that reached its action.

    Attributes:
        workflow_id: Workflow that ran
        workflow_name: Its name at execution time
        project_id: Project the workflow belongs to
        trigger: Trigger of the event
        status: SUCCESS or FAILURE
        duration: Elapsed seconds
        executed_at: When the execution finished
        error_message: Failure cause (FAILURE only)
    """

    workflow_id: str
    workflow_name: str
    project_id: str
    trigger: TriggerType
    status: ExecutionStatus
    duration: float
    executed_at: datetime
    error_message: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.status is ExecutionStatus.SUCCESS

    def to_dict(self) -> dict[str, Any]:
        return {
            "workflowId": self.workflow_id,
            "workflowName": self.workflow_name,
            "projectId": self.project_id,
            "trigger": self.trigger.value,
            "status": self.status.value,
            "duration": f"{self.duration:.1f}s",
            "durationSeconds": self.duration,
            "executedAt": format_utc(self.executed_at),
            "errorMessage": self.error_message,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "WorkflowExecution":
        """
        Rebuild an execution from its ``to_dict()`` form.

        ``durationSeconds`` carries the exact value; records written before it
        existed fall back to the rounded ``duration`` label.
        """
        try:
            if "durationSeconds" in data:
                duration = str(data["durationSeconds"])
            else:
                duration = str(data.get("duration", "0")).rstrip("s")
            return cls(
                workflow_id=str(data["workflowId"]),
                workflow_name=str(data.get("workflowName", "")),
                project_id=str(data["projectId"]),
                trigger=TriggerType.parse(data["trigger"]),
                status=ExecutionStatus(data["status"]),
                duration=float(duration or 0),
                executed_at=parse_github_timestamp(data["executedAt"]) or utc_now(),
                error_message=data.get("errorMessage"),
            )
        except (KeyError, ValueError) as e:
            raise InvalidRequestError(f"invalid execution record: {e}") from e


@dataclass
class WorkflowStatus:
    """
    Execution summary for a project's workflows.

    Attributes:
        success_rate: Successful executions / total executions (0.0 without executions)
        recent_executions: Newest first, bounded
    """

    project_id: str
    total_workflows: int
    active_workflows: int
    total_executions: int
    success_rate: float
    recent_executions: list[WorkflowExecution] = field(default_factory=list)

    @property
    def success_rate_percent(self) -> float:
        return self.success_rate * 100
