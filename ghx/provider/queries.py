"""
GitHub GraphQL documents for Projects (v2)

Read queries use cursor pagination; every mutation targets a single item so it
can be attempted exactly once.
"""

from typing import Any

PROJECT_FIELDS_FRAGMENT = """
fragment ProjectFields on ProjectV2 {
  id
  title
  number
  owner {
    ... on Organization { login }
    ... on User { login }
  }
  views(first: 1) { totalCount }
  fields(first: 50) {
    nodes {
      ... on ProjectV2FieldCommon { id name dataType }
      ... on ProjectV2SingleSelectField { options { id name } }
      ... on ProjectV2IterationField {
        configuration {
          iterations { id title startDate duration }
          completedIterations { id title startDate duration }
        }
      }
    }
  }
}
"""

ITEM_FIELDS_FRAGMENT = """
fragment ItemFields on ProjectV2Item {
  id
  type
  createdAt
  updatedAt
  isArchived
  fieldValues(first: 30) {
    nodes {
      ... on ProjectV2ItemFieldSingleSelectValue { name field { ... on ProjectV2FieldCommon { name } } }
      ... on ProjectV2ItemFieldTextValue { text field { ... on ProjectV2FieldCommon { name } } }
      ... on ProjectV2ItemFieldNumberValue { number field { ... on ProjectV2FieldCommon { name } } }
      ... on ProjectV2ItemFieldDateValue { date field { ... on ProjectV2FieldCommon { name } } }
      ... on ProjectV2ItemFieldIterationValue { title startDate field { ... on ProjectV2FieldCommon { name } } }
    }
  }
  content {
    __typename
    ... on Issue {
      id number title state createdAt closedAt
      assignees(first: 10) { nodes { login } }
      labels(first: 20) { nodes { name } }
      milestone { title dueOn }
    }
    ... on PullRequest {
      id number title state createdAt closedAt mergedAt
      assignees(first: 10) { nodes { login } }
      labels(first: 20) { nodes { name } }
      milestone { title dueOn }
    }
    ... on DraftIssue {
      id title createdAt
      assignees(first: 10) { nodes { login } }
    }
  }
}
"""

GET_PROJECT_QUERY = (
    PROJECT_FIELDS_FRAGMENT
    + """
query GetProject($owner: String!, $number: Int!) {
  repositoryOwner(login: $owner) {
    ... on Organization { projectV2(number: $number) { ...ProjectFields } }
    ... on User { projectV2(number: $number) { ...ProjectFields } }
  }
}
"""
)

GET_PROJECT_BY_ID_QUERY = (
    PROJECT_FIELDS_FRAGMENT
    + """
query GetProjectById($projectId: ID!) {
  node(id: $projectId) {
    ... on ProjectV2 { ...ProjectFields }
  }
}
"""
)

GET_PROJECT_ITEMS_QUERY = (
    ITEM_FIELDS_FRAGMENT
    + """
query GetProjectItems($projectId: ID!, $first: Int!, $after: String) {
  node(id: $projectId) {
    ... on ProjectV2 {
      items(first: $first, after: $after) {
        pageInfo { hasNextPage endCursor }
        nodes { ...ItemFields }
      }
    }
  }
}
"""
)

DELETE_ITEM_MUTATION = """
mutation DeleteItem($projectId: ID!, $itemId: ID!) {
  deleteProjectV2Item(input: {projectId: $projectId, itemId: $itemId}) { deletedItemId }
}
"""

ARCHIVE_ITEM_MUTATION = """
mutation ArchiveItem($projectId: ID!, $itemId: ID!) {
  archiveProjectV2Item(input: {projectId: $projectId, itemId: $itemId}) { item { id } }
}
"""

ADD_ITEM_MUTATION = """
mutation AddItem($projectId: ID!, $contentId: ID!) {
  addProjectV2ItemById(input: {projectId: $projectId, contentId: $contentId}) { item { id } }
}
"""

GET_USER_ID_QUERY = """
query GetUserId($login: String!) {
  user(login: $login) { id }
}
"""

ADD_ASSIGNEES_MUTATION = """
mutation AddAssignees($contentId: ID!, $userId: ID!) {
  addAssigneesToAssignable(input: {assignableId: $contentId, assigneeIds: [$userId]}) { clientMutationId }
}
"""

ADD_COMMENT_MUTATION = """
mutation AddComment($contentId: ID!, $body: String!) {
  addComment(input: {subjectId: $contentId, body: $body}) { commentEdge { node { id } } }
}
"""


def build_update_item_mutation(
    project_id: str,
    item_id: str,
    field_values: list[tuple[str, dict[str, Any] | None]],
) -> tuple[str, dict[str, Any]]:
    """
    Build one mutation document that applies several field updates to an item.

    Each update becomes an aliased updateProjectV2ItemFieldValue (or
    clearProjectV2ItemFieldValue when the value is None) so the item is
    changed in a single request.

    Args:
        project_id: Project node ID
        item_id: Project item node ID
        field_values: (field ID, ProjectV2FieldValue input or None to clear)

    Returns:
        (document, variables)

    Example:
        >>> document, variables = build_update_item_mutation(
        ...     "PVT_1", "PVTI_1", [("PVTSSF_1", {"singleSelectOptionId": "opt1"})]
        ... )
        >>> variables["v0"]
        {'singleSelectOptionId': 'opt1'}
    """
    if not field_values:
        raise ValueError("at least one field value is required")

    declarations = ["$projectId: ID!", "$itemId: ID!"]
    selections = []
    variables: dict[str, Any] = {"projectId": project_id, "itemId": item_id}

    for index, (field_id, value) in enumerate(field_values):
        declarations.append(f"$f{index}: ID!")
        variables[f"f{index}"] = field_id
        if value is None:
            selections.append(
                f"  c{index}: clearProjectV2ItemFieldValue("
                f"input: {{projectId: $projectId, itemId: $itemId, fieldId: $f{index}}}) {{ projectV2Item {{ id }} }}"
            )
        else:
            declarations.append(f"$v{index}: ProjectV2FieldValue!")
            variables[f"v{index}"] = value
            selections.append(
                f"  u{index}: updateProjectV2ItemFieldValue("
                f"input: {{projectId: $projectId, itemId: $itemId, fieldId: $f{index}, value: $v{index}}}) "
                f"{{ projectV2Item {{ id }} }}"
            )

    document = f"mutation UpdateItemFields({', '.join(declarations)}) {{\n" + "\n".join(selections) + "\n}\n"
    return document, variables
