"""
ghx - GitHub Projects Automation Engine

Bulk item mutations, workflow automation and analytics for GitHub Projects (v2).

Package Structure:
    - core: Infrastructure (logging, request metrics)
    - domain: Domain models (BulkOperation, WorkflowDefinition, AnalyticsInfo)
    - provider: Remote data access (GraphQL client, GitHub provider)
    - engine: Bulk coordinator, workflow engine, analytics aggregator
    - presentation: JSON and table output
"""

__version__ = "1.0.0"
__author__ = "ghx maintainers"
