"""
Project domain models

Snapshot of a GitHub Project (v2) and its items as seen by one invocation:
    - ProjectRef: "owner/number" reference supplied on the command line
    - Project: Project metadata with its field definitions
    - ProjectItem: One card (issue, pull request or draft issue)
    - ItemRef: Identifiers needed to act on an item
    - MutationResult: Outcome of a single remote mutation
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any

from ghx.errors import InvalidRequestError

# Field data types whose values can be written through updateProjectV2ItemFieldValue
SETTABLE_FIELD_TYPES = frozenset({"TEXT", "NUMBER", "DATE", "SINGLE_SELECT", "ITERATION"})


class ContentType(str, Enum):
    """Kind of content behind a project item."""

    ISSUE = "Issue"
    PULL_REQUEST = "PullRequest"
    DRAFT_ISSUE = "DraftIssue"
    REDACTED = "Redacted"


@dataclass(frozen=True)
class ProjectRef:
    """
    Reference to a project by owner login and project number.

    Example:
        >>> ProjectRef.parse("octo-org/5")
        ProjectRef(owner='octo-org', number=5)
    """

    owner: str
    number: int

    @classmethod
    def parse(cls, reference: str) -> "ProjectRef":
        """
        Parse an "owner/number" reference.

        Raises:
            InvalidRequestError: If the reference is not "owner/positive-number"
        """
        parts = (reference or "").strip().split("/")
        if len(parts) != 2 or not parts[0] or not parts[1].isdigit() or int(parts[1]) <= 0:
            raise InvalidRequestError("invalid project reference format. Use: owner/project-number")
        return cls(owner=parts[0], number=int(parts[1]))

    def __str__(self) -> str:
        return f"{self.owner}/{self.number}"


@dataclass(frozen=True)
class FieldOption:
    """A single-select option or an iteration of a project field."""

    id: str
    name: str


@dataclass
class ProjectField:
    """
    Project field definition.

    Attributes:
        id: Field node ID
        name: Display name (e.g., "Status", "Priority")
        data_type: GitHub ProjectV2FieldType (e.g., "SINGLE_SELECT", "DATE")
        options: Single-select options (empty for other types)
        iterations: Iterations of an iteration field (empty for other types)
    """

    id: str
    name: str
    data_type: str
    options: list[FieldOption] = field(default_factory=list)
    iterations: list[FieldOption] = field(default_factory=list)

    @property
    def is_settable(self) -> bool:
        return self.data_type in SETTABLE_FIELD_TYPES

    def find_option(self, name: str) -> FieldOption | None:
        """Find a single-select option or iteration by name (case-insensitive)."""
        wanted = name.strip().lower()
        for option in self.options + self.iterations:
            if option.name.lower() == wanted:
                return option
        return None


@dataclass
class Project:
    """
    GitHub Project (v2) metadata.

    Attributes:
        id: Project node ID (e.g., "PVT_kwDOA...")
        title: Project title
        number: Project number within its owner
        owner: Owner login
        fields: Field definitions
        view_count: Number of views defined on the project
    """

    id: str
    title: str
    number: int | None = None
    owner: str | None = None
    fields: list[ProjectField] = field(default_factory=list)
    view_count: int = 0

    @property
    def field_count(self) -> int:
        return len(self.fields)

    def get_field(self, name: str) -> ProjectField | None:
        """Look up a field by display name (case-insensitive)."""
        wanted = name.strip().lower()
        for project_field in self.fields:
            if project_field.name.lower() == wanted:
                return project_field
        return None


@dataclass(frozen=True)
class Milestone:
    """Repository milestone attached to an issue or pull request."""

    title: str
    due_on: date | None = None


@dataclass
class ProjectItem:
    """
    A project item with the content and field values analytics relies on.

    Timestamps:
        created_at: When the underlying issue/PR/draft was created (lead time start)
        added_at: When the item was added to the project ("added" in velocity)
        started_at: Value of a "Start date" field, when the project has one
        closed_at: When the content was closed or merged (completion)

    Attributes:
        field_values: Custom field values by field name. DATE fields hold
            ``date`` objects, NUMBER fields floats, others strings.
    """

    id: str
    content_type: ContentType
    title: str = ""
    content_id: str | None = None
    number: int | None = None
    state: str | None = None
    status: str | None = None
    assignees: list[str] = field(default_factory=list)
    labels: list[str] = field(default_factory=list)
    milestone: Milestone | None = None
    field_values: dict[str, Any] = field(default_factory=dict)
    created_at: datetime | None = None
    added_at: datetime | None = None
    started_at: datetime | None = None
    closed_at: datetime | None = None
    archived: bool = False

    @property
    def primary_assignee(self) -> str | None:
        """First listed assignee, used for single-bucket distributions."""
        return self.assignees[0] if self.assignees else None

    @property
    def is_closed(self) -> bool:
        return self.closed_at is not None

    def to_ref(self) -> "ItemRef":
        return ItemRef(item_id=self.id, content_id=self.content_id)


@dataclass(frozen=True)
class ItemRef:
    """Identifiers of a project item: its project item ID and the content node ID."""

    item_id: str
    content_id: str | None = None


@dataclass(frozen=True)
class MutationResult:
    """
    Outcome of one remote mutation.

    Example:
        >>> MutationResult.ok().success
        True
        >>> MutationResult.failed("field not found").error
        'field not found'
    """

    success: bool
    error: str | None = None

    @classmethod
    def ok(cls) -> "MutationResult":
        return cls(success=True)

    @classmethod
    def failed(cls, error: str) -> "MutationResult":
        return cls(success=False, error=error)
