#!/usr/bin/env python3
"""
Error Handling Utility Module

Reusable error handling patterns with structured logging context:

1. log_and_continue() - Log error and continue execution (per-item failures)
2. log_and_raise() - Log error with context and re-raise (fatal failures)
"""

import logging
from typing import Any


def log_and_continue(
    logger: logging.Logger,
    error: Exception,
    context: dict[str, Any],
    error_type: str = "Operation",
) -> None:
    """
    Log an error with structured context and continue execution gracefully.

    Use this when one failure should not halt the surrounding work
    (e.g., a single item mutation in a bulk operation).

    Args:
        logger: Logger instance from logging.getLogger(__name__)
        error: The caught exception
        context: Structured data about what failed (item_id, workflow_id, etc.)
        error_type: Human-readable description of the operation

    Example:
        try:
            result = await provider.invoke_action(project_id, action, item)
        except RemoteMutationError as e:
            log_and_continue(
                logger, e,
                context={"workflow_id": workflow.id, "item_id": item.item_id},
                error_type="Workflow action"
            )
    """
    logger.warning(
        f"{error_type} failed: {error}",
        extra={
            "error_type": error_type,
            "exception_class": error.__class__.__name__,
            "context": context,
        },
    )


def log_and_raise(
    logger: logging.Logger,
    error: Exception,
    context: dict[str, Any],
    error_type: str = "Operation",
) -> None:
    """
    Log an error with context and re-raise it.

    Use this for errors that should halt execution and bubble up.

    Args:
        logger: Logger instance
        error: The caught exception
        context: Structured data about what failed
        error_type: Human-readable description

    Raises:
        The original exception after logging

    Example:
        try:
            items = [item async for item in provider.fetch_items(project.id)]
        except RemoteUnavailableError as e:
            log_and_raise(logger, e, {"project_id": project.id}, "Item collection")
    """
    logger.error(
        f"{error_type} failed critically: {error}",
        exc_info=True,
        extra={
            "error_type": error_type,
            "exception_class": error.__class__.__name__,
            "context": context,
        },
    )
    raise error
