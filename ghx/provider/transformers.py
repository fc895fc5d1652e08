"""
GitHub GraphQL Response Transformers

Converts GraphQL response nodes into ghx domain objects.

Usage:
    from ghx.provider.transformers import ProjectItemTransformer

    items, has_next_page, end_cursor = ProjectItemTransformer.transform_items_page(data["node"]["items"])
"""

from datetime import UTC, date, datetime
from typing import Any

from ghx.domain.constants import analytics_config
from ghx.domain.project import ContentType, FieldOption, Milestone, Project, ProjectField, ProjectItem
from ghx.utils.datetime_utils import parse_github_date, parse_github_timestamp

_TYPENAME_TO_CONTENT_TYPE = {
    "Issue": ContentType.ISSUE,
    "PullRequest": ContentType.PULL_REQUEST,
    "DraftIssue": ContentType.DRAFT_ISSUE,
}

_ITEM_TYPE_TO_CONTENT_TYPE = {
    "ISSUE": ContentType.ISSUE,
    "PULL_REQUEST": ContentType.PULL_REQUEST,
    "DRAFT_ISSUE": ContentType.DRAFT_ISSUE,
    "REDACTED": ContentType.REDACTED,
}


def _nodes(connection: dict[str, Any] | None) -> list[dict[str, Any]]:
    """Non-null nodes of a GraphQL connection."""
    if not connection:
        return []
    return [node for node in connection.get("nodes") or [] if node]


class ProjectTransformer:
    """Transforms ProjectV2 nodes into Project objects."""

    @staticmethod
    def transform_project(node: dict[str, Any]) -> Project:
        """
        Transform a ProjectV2 node (ProjectFields fragment).

        Args:
            node: {"id": ..., "title": ..., "fields": {"nodes": [...]}, "views": {"totalCount": 3}}

        Returns:
            Project with field definitions
        """
        fields = [ProjectTransformer.transform_field(field_node) for field_node in _nodes(node.get("fields"))]
        owner = node.get("owner") or {}

        return Project(
            id=node["id"],
            title=node.get("title") or "",
            number=node.get("number"),
            owner=owner.get("login"),
            fields=[project_field for project_field in fields if project_field is not None],
            view_count=(node.get("views") or {}).get("totalCount", 0),
        )

    @staticmethod
    def transform_field(node: dict[str, Any]) -> ProjectField | None:
        """Transform a field node; nodes without an id (unsupported field kinds) yield None."""
        if not node.get("id"):
            return None

        options = [FieldOption(id=option["id"], name=option["name"]) for option in node.get("options") or []]

        configuration = node.get("configuration") or {}
        iterations = [
            FieldOption(id=iteration["id"], name=iteration["title"])
            for iteration in (configuration.get("iterations") or []) + (configuration.get("completedIterations") or [])
        ]

        return ProjectField(
            id=node["id"],
            name=node.get("name") or "",
            data_type=node.get("dataType") or "",
            options=options,
            iterations=iterations,
        )


class ProjectItemTransformer:
    """Transforms ProjectV2Item nodes into ProjectItem objects."""

    @staticmethod
    def transform_items_page(connection: dict[str, Any]) -> tuple[list[ProjectItem], bool, str | None]:
        """
        Transform one page of the items connection.

        Returns:
            (items, has_next_page, end_cursor)
        """
        items = [ProjectItemTransformer.transform_item(node) for node in _nodes(connection)]
        page_info = connection.get("pageInfo") or {}
        return items, bool(page_info.get("hasNextPage")), page_info.get("endCursor")

    @staticmethod
    def transform_item(node: dict[str, Any]) -> ProjectItem:
        """
        Transform a ProjectV2Item node (ItemFields fragment).

        Raises:
            ValueError: If a timestamp cannot be parsed
        """
        content = node.get("content") or {}
        content_type = _TYPENAME_TO_CONTENT_TYPE.get(
            content.get("__typename", ""), _ITEM_TYPE_TO_CONTENT_TYPE.get(node.get("type", ""), ContentType.REDACTED)
        )

        field_values = ProjectItemTransformer.transform_field_values(node.get("fieldValues"))
        closed_at = parse_github_timestamp(content.get("closedAt") or content.get("mergedAt"))

        milestone = None
        if content.get("milestone"):
            milestone = Milestone(
                title=content["milestone"].get("title") or "",
                due_on=parse_github_date(content["milestone"].get("dueOn")),
            )

        return ProjectItem(
            id=node["id"],
            content_type=content_type,
            title=content.get("title") or "",
            content_id=content.get("id"),
            number=content.get("number"),
            state=content.get("state"),
            status=ProjectItemTransformer._lookup_value(field_values, analytics_config.STATUS_FIELD_NAME),
            assignees=[assignee["login"] for assignee in _nodes(content.get("assignees")) if assignee.get("login")],
            labels=[label["name"] for label in _nodes(content.get("labels")) if label.get("name")],
            milestone=milestone,
            field_values=field_values,
            created_at=parse_github_timestamp(content.get("createdAt")) or parse_github_timestamp(node.get("createdAt")),
            added_at=parse_github_timestamp(node.get("createdAt")),
            started_at=ProjectItemTransformer._started_at(field_values),
            closed_at=closed_at,
            archived=bool(node.get("isArchived")),
        )

    @staticmethod
    def transform_field_values(connection: dict[str, Any] | None) -> dict[str, Any]:
        """
        Flatten field value nodes into {field name: value}.

        DATE values become ``date`` objects, NUMBER values floats, single-select
        options and iterations their display names.
        """
        values: dict[str, Any] = {}
        for node in _nodes(connection):
            field_name = (node.get("field") or {}).get("name")
            if not field_name:
                continue
            if "date" in node:
                values[field_name] = parse_github_date(node["date"])
            elif "number" in node:
                values[field_name] = float(node["number"]) if node["number"] is not None else None
            elif "text" in node:
                values[field_name] = node["text"]
            elif "title" in node:
                values[field_name] = node["title"]
            elif "name" in node:
                values[field_name] = node["name"]
        return values

    @staticmethod
    def _lookup_value(field_values: dict[str, Any], field_name: str) -> Any:
        wanted = field_name.lower()
        for name, value in field_values.items():
            if name.lower() == wanted:
                return value
        return None

    @staticmethod
    def _started_at(field_values: dict[str, Any]) -> datetime | None:
        for name, value in field_values.items():
            if name.lower() in analytics_config.START_DATE_FIELD_NAMES and isinstance(value, date):
                return datetime(value.year, value.month, value.day, tzinfo=UTC)
        return None
