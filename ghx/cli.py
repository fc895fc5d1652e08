#!/usr/bin/env python3
"""
ghx command line

Bulk mutations, analytics and workflow automation for GitHub Projects (v2).

Usage:
    ghx bulk update octo-org/5 --items PVTI_1,PVTI_2 --status Done
    ghx bulk archive octo-org/5 --items PVTI_1 --format json
    ghx analytics overview octo-org/5 --period monthly
    ghx analytics distribution octo-org/5 --focus assignee
    ghx workflow create --project-id PVT_1 --name "Triage" --trigger issue.opened \\
        --condition "label=critical" --action "set_field:Priority=High"
    ghx workflow run PVT_1 --workflows workflows.json --event event.json

Exit codes:
    0  Success (partially failed bulk operations are reported, not errors)
    1  Invalid input, not found, or remote system unavailable
    2  Configuration or authentication failure
    3  Bulk operation ended FAILED
"""

import argparse
import asyncio
import json
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from ghx import __version__
from ghx.core import (
    ConfigurationError,
    get_config,
    setup_logging,
    track_request_metrics,
    validate_config_on_startup,
)
from ghx.domain.analytics import VelocityPeriod
from ghx.domain.bulk import BulkOperationStatus, FieldUpdates
from ghx.domain.project import ProjectRef
from ghx.domain.workflow import WorkflowUpdate
from ghx.engine.analytics_aggregator import AnalyticsAggregator
from ghx.engine.bulk_coordinator import BulkOperationCoordinator
from ghx.engine.workflow_engine import WorkflowEngine, load_event_file, load_history_file, load_workflows_file
from ghx.errors import AccessDeniedError, AuthenticationError, GhxError, InvalidRequestError
from ghx.presentation import formatters
from ghx.provider.github_provider import get_github_provider

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_AUTH = 2
EXIT_OPERATION_FAILED = 3


def parse_item_ids(raw: str | None) -> list[str]:
    """
    Split a comma-separated id list, dropping blanks and duplicates (first occurrence wins).

    Example:
        >>> parse_item_ids("a, b,a,,c")
        ['a', 'b', 'c']
    """
    seen: dict[str, None] = {}
    for part in (raw or "").split(","):
        item_id = part.strip()
        if item_id:
            seen.setdefault(item_id, None)
    return list(seen)


def parse_field_updates(
    fields: Sequence[str] | None, status: str | None = None, priority: str | None = None
) -> FieldUpdates:
    """
    Build {field name: value} from ``NAME=VALUE`` pairs plus the --status / --priority shortcuts.

    Raises:
        InvalidRequestError: If a pair has no '=' or an empty name
    """
    updates: FieldUpdates = {}
    for pair in fields or ():
        name, sep, value = pair.partition("=")
        if not sep or not name.strip():
            raise InvalidRequestError(f"invalid field update '{pair}'. Use: NAME=VALUE")
        updates[name.strip()] = value.strip()
    if status:
        updates["Status"] = status
    if priority:
        updates["Priority"] = priority
    return updates


def _emit(args: argparse.Namespace, data: Any, table: str) -> None:
    if args.format == "json":
        print(json.dumps(data, indent=2))
    else:
        print(table)


# ============================================================
# Command handlers
# ============================================================


async def _bulk(args: argparse.Namespace) -> int:
    ref = ProjectRef.parse(args.project)
    item_ids = parse_item_ids(args.items)
    updates = parse_field_updates(args.field, args.status, args.priority) if args.command == "update" else None
    validate_config_on_startup(["github"])

    github_config = get_config().get_github_config()
    coordinator = BulkOperationCoordinator(
        get_github_provider(),
        max_workers=github_config.max_workers,
        item_timeout=github_config.item_timeout,
    )
    operation = await coordinator.submit_to_project(ref.owner, ref.number, item_ids, updates, op_type=args.command)

    _emit(args, formatters.operation_to_dict(operation), formatters.render_operation(operation))
    return EXIT_OPERATION_FAILED if operation.status is BulkOperationStatus.FAILED else EXIT_OK


async def _analytics(args: argparse.Namespace) -> int:
    ref = ProjectRef.parse(args.project)
    period = VelocityPeriod.parse(args.period)
    validate_config_on_startup(["github"])

    info = await AnalyticsAggregator(get_github_provider()).aggregate_reference(ref.owner, ref.number, period)

    if args.command == "overview":
        _emit(args, formatters.analytics_to_dict(info), formatters.render_analytics(info))
    elif args.command == "distribution":
        stats = {
            "status": info.status_stats,
            "assignee": info.assignee_stats,
            "milestone": info.milestone_stats,
        }[args.focus]
        _emit(
            args,
            {
                "projectId": info.project_id,
                "itemCount": info.item_count,
                "focus": args.focus,
                "distribution": formatters.distribution_to_list(stats, info.item_count, args.focus),
            },
            formatters.render_distribution(stats, info.item_count, args.focus.title()),
        )
    elif args.command == "velocity":
        _emit(
            args,
            {"projectId": info.project_id, **formatters.velocity_to_dict(info.velocity_data)},
            formatters.render_velocity(info.velocity_data),
        )
    else:
        _emit(
            args,
            {"projectId": info.project_id, **formatters.timeline_to_dict(info.timeline_data)},
            formatters.render_timeline(info.timeline_data),
        )
    return EXIT_OK


def _load_engine(args: argparse.Namespace, with_provider: bool = False) -> WorkflowEngine:
    store = load_workflows_file(Path(args.workflows))
    history = load_history_file(Path(args.history)) if getattr(args, "history", None) else ()
    provider = get_github_provider() if with_provider else None
    return WorkflowEngine(provider=provider, store=store, history=history)


async def _workflow(args: argparse.Namespace) -> int:
    if args.command == "create":
        engine = WorkflowEngine()
        definition = engine.create_workflow(
            args.project_id,
            args.name,
            args.trigger,
            args.action,
            condition=args.condition,
            enabled=not args.disabled,
        )
        _emit(args, formatters.workflow_to_dict(definition), formatters.render_workflow(definition))
        return EXIT_OK

    if args.command == "list":
        definitions = _load_engine(args).list_workflows(args.project_id)
        _emit(
            args,
            [formatters.workflow_to_dict(definition) for definition in definitions],
            formatters.render_workflows(definitions),
        )
    elif args.command == "status":
        status = _load_engine(args).get_workflow_status(args.project_id)
        _emit(args, formatters.workflow_status_to_dict(status), formatters.render_workflow_status(status))
    elif args.command == "update":
        update = WorkflowUpdate(name=args.name, enabled=args.enabled, disabled=args.disabled)
        definition = _load_engine(args).update_workflow(args.workflow_id, update)
        _emit(args, formatters.workflow_to_dict(definition), formatters.render_workflow(definition))
    elif args.command == "delete":
        engine = _load_engine(args)
        deleted = engine.delete_workflow(args.workflow_id)
        _emit(
            args,
            {"deleted": deleted.id, **engine.store.to_document()},
            f"Workflow {deleted.id} '{deleted.name}' deleted",
        )
    else:
        event = load_event_file(Path(args.event))
        if event.project_id != args.project_id:
            raise InvalidRequestError(f"event belongs to project {event.project_id}, not {args.project_id}")
        validate_config_on_startup(["github"])
        engine = _load_engine(args, with_provider=True)
        executions = await engine.evaluate(event)
        status = engine.get_workflow_status(args.project_id)
        _emit(
            args,
            {
                "executions": [formatters.execution_to_dict(execution) for execution in executions],
                "status": formatters.workflow_status_to_dict(status),
            },
            "\n\n".join([formatters.render_executions(executions), formatters.render_workflow_status(status)]),
        )
    return EXIT_OK


# ============================================================
# Parser
# ============================================================


def _add_format(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--format", choices=["table", "json"], default="table", help="Output format")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="ghx", description="GitHub Projects bulk operations, analytics and workflows")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--log-level", help="Log level (default: GHX_LOG_LEVEL or INFO)")
    parser.add_argument("--log-json", action="store_true", help="Emit JSON log lines on stderr")
    parser.add_argument("--log-file", type=Path, help="Also write JSON logs to this file")

    groups = parser.add_subparsers(dest="group", required=True)

    # bulk
    bulk = groups.add_parser("bulk", help="Bulk item operations")
    bulk_commands = bulk.add_subparsers(dest="command", required=True)
    for name, help_text in (
        ("update", "Update fields on many items"),
        ("delete", "Delete many items from a project"),
        ("archive", "Archive many items"),
    ):
        command = bulk_commands.add_parser(name, help=help_text)
        command.add_argument("project", help="Project reference (owner/number)")
        command.add_argument("--items", required=True, help="Comma-separated project item IDs")
        if name == "update":
            command.add_argument("--field", action="append", metavar="NAME=VALUE", help="Field update (repeatable)")
            command.add_argument("--status", help="Shortcut for --field Status=VALUE")
            command.add_argument("--priority", help="Shortcut for --field Priority=VALUE")
        _add_format(command)
        command.set_defaults(handler=_bulk)

    # analytics
    analytics = groups.add_parser("analytics", help="Project analytics")
    analytics_commands = analytics.add_subparsers(dest="command", required=True)
    for name in ("overview", "distribution", "velocity", "timeline"):
        command = analytics_commands.add_parser(name, help=f"Project {name}")
        command.add_argument("project", help="Project reference (owner/number)")
        command.add_argument("--period", default="weekly", help="Velocity window: weekly, monthly or quarterly")
        command.add_argument(
            "--focus", choices=["status", "assignee", "milestone"], default="status", help="Distribution to show"
        )
        _add_format(command)
        command.set_defaults(handler=_analytics)

    # workflow
    workflow = groups.add_parser("workflow", help="Workflow automation")
    workflow_commands = workflow.add_subparsers(dest="command", required=True)

    for name in ("list", "status"):
        command = workflow_commands.add_parser(name, help=f"Workflow {name} for a project")
        command.add_argument("project_id", help="Project node ID")
        command.add_argument("--workflows", required=True, help="Workflow definitions JSON file")
        command.add_argument("--history", help="Execution history JSON file")
        _add_format(command)
        command.set_defaults(handler=_workflow)

    create = workflow_commands.add_parser("create", help="Create a workflow definition")
    create.add_argument("--project-id", required=True, help="Project node ID")
    create.add_argument("--name", required=True, help="Workflow name")
    create.add_argument("--trigger", required=True, help="Trigger type (e.g. item_added, issue.opened)")
    create.add_argument("--action", required=True, help="Action (e.g. set_field:Priority=High)")
    create.add_argument("--condition", help="Condition (e.g. 'label=critical')")
    create.add_argument("--disabled", action="store_true", help="Create the workflow disabled")
    _add_format(create)
    create.set_defaults(handler=_workflow)

    update = workflow_commands.add_parser("update", help="Rename, enable or disable a workflow")
    update.add_argument("workflow_id", help="Workflow ID")
    update.add_argument("--workflows", required=True, help="Workflow definitions JSON file")
    update.add_argument("--name", help="New name")
    update.add_argument("--enabled", action="store_true", help="Enable the workflow")
    update.add_argument("--disabled", action="store_true", help="Disable the workflow (wins over --enabled)")
    _add_format(update)
    update.set_defaults(handler=_workflow)

    delete = workflow_commands.add_parser("delete", help="Delete a workflow")
    delete.add_argument("workflow_id", help="Workflow ID")
    delete.add_argument("--workflows", required=True, help="Workflow definitions JSON file")
    _add_format(delete)
    delete.set_defaults(handler=_workflow)

    run = workflow_commands.add_parser("run", help="Evaluate an event against a project's workflows")
    run.add_argument("project_id", help="Project node ID")
    run.add_argument("--workflows", required=True, help="Workflow definitions JSON file")
    run.add_argument("--event", required=True, help="Event JSON file")
    run.add_argument("--history", help="Execution history JSON file")
    _add_format(run)
    run.set_defaults(handler=_workflow)

    return parser


async def _run_command(args: argparse.Namespace) -> int:
    with track_request_metrics(f"{args.group} {args.command}"):
        return await args.handler(args)


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point for the ``ghx`` console script."""
    args = build_parser().parse_args(argv)

    try:
        settings = get_config().get_logging_settings()
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return EXIT_AUTH

    setup_logging(
        level=args.log_level or settings.level,
        log_file=args.log_file,
        json_output=args.log_json or settings.json_output,
    )

    try:
        return asyncio.run(_run_command(args))
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return EXIT_AUTH
    except (AuthenticationError, AccessDeniedError) as e:
        print(f"Authentication error: {e}", file=sys.stderr)
        return EXIT_AUTH
    except GhxError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_ERROR
    except KeyboardInterrupt:
        print("Interrupted", file=sys.stderr)
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
