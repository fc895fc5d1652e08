"""
Remote data access

    - base: RemoteDataProvider interface used by the engine
    - graphql_client: GitHub GraphQL transport with retries and error mapping
    - github_provider: GitHub Projects (v2) implementation
"""

from .base import RemoteDataProvider
from .github_provider import GitHubProjectProvider, get_github_provider
from .graphql_client import GitHubGraphQLClient, get_github_graphql_client

__all__ = [
    "RemoteDataProvider",
    "GitHubProjectProvider",
    "GitHubGraphQLClient",
    "get_github_provider",
    "get_github_graphql_client",
]
