"""
GitHub Projects (v2) implementation of the Remote Data Provider.

Usage:
    from ghx.provider.github_provider import get_github_provider

    provider = get_github_provider()
    project = await provider.fetch_project("octo-org", 5)
    async for item in provider.fetch_items(project.id):
        print(item.title, item.status)
"""

from collections.abc import AsyncIterator
from datetime import date, datetime
from typing import Any

from ghx.core import get_logger
from ghx.domain.bulk import BulkOperationType, FieldUpdates
from ghx.domain.constants import analytics_config, api_config
from ghx.domain.project import ItemRef, MutationResult, Project, ProjectField, ProjectItem
from ghx.domain.workflow import ActionType, WorkflowAction
from ghx.errors import (
    AccessDeniedError,
    InvalidRequestError,
    NotFoundError,
    RemoteMutationError,
    RemoteUnavailableError,
)
from ghx.provider.base import RemoteDataProvider
from ghx.provider.graphql_client import GitHubGraphQLClient, get_github_graphql_client
from ghx.provider.queries import (
    ADD_ASSIGNEES_MUTATION,
    ADD_COMMENT_MUTATION,
    ADD_ITEM_MUTATION,
    ARCHIVE_ITEM_MUTATION,
    DELETE_ITEM_MUTATION,
    GET_PROJECT_BY_ID_QUERY,
    GET_PROJECT_ITEMS_QUERY,
    GET_PROJECT_QUERY,
    GET_USER_ID_QUERY,
    build_update_item_mutation,
)
from ghx.provider.transformers import ProjectItemTransformer, ProjectTransformer

logger = get_logger(__name__)

# Failures scoped to one item; AuthenticationError aborts the whole batch
ITEM_LEVEL_ERRORS = (
    AccessDeniedError,
    InvalidRequestError,
    NotFoundError,
    RemoteMutationError,
    RemoteUnavailableError,
)


class GitHubProjectProvider(RemoteDataProvider):
    """
    RemoteDataProvider backed by the GitHub GraphQL API.

    Project metadata is cached per instance so field names can be resolved to
    field and option IDs without a query per item.
    """

    def __init__(self, client: GitHubGraphQLClient, page_size: int = api_config.ITEMS_PAGE_SIZE):
        self.client = client
        self.page_size = page_size
        self._projects: dict[str, Project] = {}

    async def fetch_project(self, owner: str, number: int) -> Project:
        data = await self.client.execute(GET_PROJECT_QUERY, {"owner": owner, "number": number})

        owner_node = data.get("repositoryOwner")
        if not owner_node:
            raise NotFoundError(f"owner '{owner}' not found")

        project_node = owner_node.get("projectV2")
        if not project_node:
            raise NotFoundError(f"project {owner}/{number} not found")

        project = ProjectTransformer.transform_project(project_node)
        self._projects[project.id] = project
        logger.debug(f"Resolved project {owner}/{number} -> {project.id} ({project.field_count} fields)")
        return project

    async def get_project_by_id(self, project_id: str) -> Project:
        """Project metadata by node ID, cached for the lifetime of the provider."""
        if project_id in self._projects:
            return self._projects[project_id]

        data = await self.client.execute(GET_PROJECT_BY_ID_QUERY, {"projectId": project_id})
        node = data.get("node")
        if not node or not node.get("id"):
            raise NotFoundError(f"project {project_id} not found")

        project = ProjectTransformer.transform_project(node)
        self._projects[project.id] = project
        return project

    async def fetch_items(self, project_id: str) -> AsyncIterator[ProjectItem]:
        cursor: str | None = None
        page = 0

        while True:
            data = await self.client.execute(
                GET_PROJECT_ITEMS_QUERY,
                {"projectId": project_id, "first": self.page_size, "after": cursor},
            )
            node = data.get("node")
            if not node or "items" not in node:
                raise NotFoundError(f"project {project_id} not found")

            items, has_next_page, end_cursor = ProjectItemTransformer.transform_items_page(node["items"])
            page += 1
            logger.debug(f"Fetched page {page} of project {project_id} ({len(items)} items)")

            for item in items:
                yield item

            if not has_next_page or not end_cursor:
                return
            cursor = end_cursor

    async def mutate_item(
        self,
        project_id: str,
        item_id: str,
        op_type: BulkOperationType,
        updates: FieldUpdates | None = None,
    ) -> MutationResult:
        variables = {"projectId": project_id, "itemId": item_id}
        try:
            if op_type is BulkOperationType.DELETE:
                await self.client.execute(DELETE_ITEM_MUTATION, variables, max_retries=api_config.MUTATION_MAX_RETRIES)
            elif op_type is BulkOperationType.ARCHIVE:
                await self.client.execute(ARCHIVE_ITEM_MUTATION, variables, max_retries=api_config.MUTATION_MAX_RETRIES)
            else:
                project = await self.get_project_by_id(project_id)
                field_values = self.resolve_field_updates(project, updates or {})
                document, update_variables = build_update_item_mutation(project_id, item_id, field_values)
                await self.client.execute(document, update_variables, max_retries=api_config.MUTATION_MAX_RETRIES)
        except ITEM_LEVEL_ERRORS as e:
            return MutationResult.failed(str(e))

        return MutationResult.ok()

    async def invoke_action(self, project_id: str, action: WorkflowAction, item: ItemRef) -> MutationResult:
        params = action.params

        if action.type is ActionType.SET_FIELD:
            return await self.mutate_item(
                project_id, item.item_id, BulkOperationType.UPDATE, {params["field"]: params["value"]}
            )
        if action.type is ActionType.CLEAR_FIELD:
            return await self.mutate_item(project_id, item.item_id, BulkOperationType.UPDATE, {params["field"]: None})
        if action.type is ActionType.MOVE_TO_STATUS:
            return await self.mutate_item(
                project_id, item.item_id, BulkOperationType.UPDATE, {analytics_config.STATUS_FIELD_NAME: params["status"]}
            )
        if action.type is ActionType.ARCHIVE_ITEM:
            return await self.mutate_item(project_id, item.item_id, BulkOperationType.ARCHIVE)

        if not item.content_id:
            return MutationResult.failed(f"action {action.type.value} requires the item's content id")

        try:
            if action.type is ActionType.ASSIGN_USER:
                data = await self.client.execute(GET_USER_ID_QUERY, {"login": params["user"]})
                user = data.get("user")
                if not user:
                    return MutationResult.failed(f"user '{params['user']}' not found")
                await self.client.execute(
                    ADD_ASSIGNEES_MUTATION,
                    {"contentId": item.content_id, "userId": user["id"]},
                    max_retries=api_config.MUTATION_MAX_RETRIES,
                )
            elif action.type is ActionType.ADD_COMMENT:
                await self.client.execute(
                    ADD_COMMENT_MUTATION,
                    {"contentId": item.content_id, "body": params["body"]},
                    max_retries=api_config.MUTATION_MAX_RETRIES,
                )
            elif action.type is ActionType.ADD_TO_PROJECT:
                await self.client.execute(
                    ADD_ITEM_MUTATION,
                    {"projectId": project_id, "contentId": item.content_id},
                    max_retries=api_config.MUTATION_MAX_RETRIES,
                )
            else:
                return MutationResult.failed(f"unsupported action: {action.type.value}")
        except ITEM_LEVEL_ERRORS as e:
            return MutationResult.failed(str(e))

        return MutationResult.ok()

    @staticmethod
    def resolve_field_updates(project: Project, updates: FieldUpdates) -> list[tuple[str, dict[str, Any] | None]]:
        """
        Translate {field name: value} into (field ID, ProjectV2FieldValue) pairs.

        Raises:
            InvalidRequestError: For unknown fields, unknown options or values of the wrong type
        """
        if not updates:
            raise InvalidRequestError("no field updates specified")

        resolved = []
        for name, value in updates.items():
            project_field = project.get_field(name)
            if project_field is None:
                raise InvalidRequestError(f"field '{name}' not found in project {project.title or project.id}")
            if not project_field.is_settable:
                raise InvalidRequestError(f"field '{name}' ({project_field.data_type}) cannot be updated")
            resolved.append((project_field.id, _field_value_input(project_field, value)))
        return resolved


def _field_value_input(project_field: ProjectField, value: Any) -> dict[str, Any] | None:
    """ProjectV2FieldValue input for one field; None clears the field."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return None

    data_type = project_field.data_type
    if data_type in ("SINGLE_SELECT", "ITERATION"):
        option = project_field.find_option(str(value))
        if option is None:
            raise InvalidRequestError(f"option '{value}' not found for field '{project_field.name}'")
        key = "singleSelectOptionId" if data_type == "SINGLE_SELECT" else "iterationId"
        return {key: option.id}

    if data_type == "NUMBER":
        try:
            return {"number": float(value)}
        except (TypeError, ValueError):
            raise InvalidRequestError(f"field '{project_field.name}' expects a number, got '{value}'") from None

    if data_type == "DATE":
        if isinstance(value, datetime):
            return {"date": value.date().isoformat()}
        if isinstance(value, date):
            return {"date": value.isoformat()}
        try:
            return {"date": date.fromisoformat(str(value).strip()).isoformat()}
        except ValueError:
            raise InvalidRequestError(f"field '{project_field.name}' expects a YYYY-MM-DD date, got '{value}'") from None

    return {"text": str(value)}


def get_github_provider() -> GitHubProjectProvider:
    """
    Get a GitHub provider with credentials from config.

    Raises:
        ConfigurationError: If GITHUB_TOKEN is missing or invalid
    """
    return GitHubProjectProvider(get_github_graphql_client())
