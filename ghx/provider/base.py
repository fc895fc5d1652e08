"""
Remote Data Provider interface

The engine components (bulk coordinator, workflow engine, analytics aggregator)
only talk to the remote system through this interface, so they can be driven by
the GitHub implementation or by an in-memory double in tests.
"""

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator

from ghx.domain.bulk import BulkOperationType, FieldUpdates
from ghx.domain.project import ItemRef, MutationResult, Project, ProjectItem
from ghx.domain.workflow import WorkflowAction


class RemoteDataProvider(ABC):
    """Abstract access to projects, items and mutations."""

    @abstractmethod
    async def fetch_project(self, owner: str, number: int) -> Project:
        """
        Resolve a project by owner login and number.

        Raises:
            NotFoundError: If the owner or project does not exist
            AccessDeniedError: If the credentials cannot read the project
            RemoteUnavailableError: If the remote system stays unreachable
        """

    @abstractmethod
    def fetch_items(self, project_id: str) -> AsyncIterator[ProjectItem]:
        """
        Iterate over every item of a project, page by page.

        Each call starts again from the first page. A page that cannot be
        fetched raises RemoteUnavailableError from the iterator.
        """

    @abstractmethod
    async def mutate_item(
        self,
        project_id: str,
        item_id: str,
        op_type: BulkOperationType,
        updates: FieldUpdates | None = None,
    ) -> MutationResult:
        """
        Apply one mutation to one item. Single attempt, no internal retry.

        Item-level failures are returned as ``MutationResult(success=False)``;
        AuthenticationError propagates.
        """

    @abstractmethod
    async def invoke_action(self, project_id: str, action: WorkflowAction, item: ItemRef) -> MutationResult:
        """Perform a workflow action against an item."""
