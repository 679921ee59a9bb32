# ABOUTME: Structured logging with run IDs for the Setup ArgoCD Hydrate action
# ABOUTME: Configures structlog processors and renderers for CI log output

"""
Structured logging with run identifiers.

=============================================================================
WHAT IS THIS FILE?
=============================================================================

This module configures structlog for the setup step:

1. STRUCTURED LOGGING: Every message is an event name plus key/value fields,
   rendered either as readable console lines or as JSON.

2. RUN IDs: Each log line carries the identifier of the workflow run, so
   lines from the setup step can be matched with the rest of a CI run when
   logs are shipped to an aggregator.

=============================================================================
WHY STRUCTURED LOGGING IN A CI STEP?
=============================================================================

Console output:
    2024-01-15T10:30:00Z [info] Downloading archive url=https://github.com/...

JSON output (ARGOCD_HYDRATE_JSON_LOGS=true):
    {"event": "Downloading archive", "url": "https://...", "run_id": "7712"}

The console form is what people read in the Actions UI; the JSON form is
for pipelines that collect step logs.

=============================================================================
WHERE DOES THE RUN ID COME FROM?
=============================================================================

On a runner, GITHUB_RUN_ID is set and is used verbatim. Elsewhere (local
runs, tests) an 8-character id is generated on first use. The id is held in
a ContextVar so tests can set and reset it without global state leaking.
"""

# =============================================================================
# IMPORTS
# =============================================================================
#
# Standard library:
# - logging: Get log level constants (DEBUG, INFO, etc.) as integers
# - uuid: Generate run IDs outside a runner
# - ContextVar: Context-local storage for the run ID
#
# Third-party:
# - structlog: Structured logging with JSON output and processors
# =============================================================================

from __future__ import annotations

import logging
import uuid
from contextvars import ContextVar
from typing import TYPE_CHECKING, Any

import structlog

if TYPE_CHECKING:
    from collections.abc import MutableMapping


# =============================================================================
# RUN ID MANAGEMENT
# =============================================================================

run_id: ContextVar[str] = ContextVar("run_id", default="")


def get_run_id() -> str:
    """
    Get the current run ID or generate a new one.

    Returns:
        The run ID set via set_run_id(), or a new 8-character id.

    Example:
        >>> get_run_id()
        'a3f8c2d1'
    """
    rid = run_id.get()
    if not rid:
        rid = str(uuid.uuid4())[:8]
        run_id.set(rid)
    return rid


def set_run_id(rid: str) -> None:
    """
    Set the run ID for the current context.

    Called once at startup with GITHUB_RUN_ID. Passing "" makes the next
    get_run_id() call generate a fresh id.
    """
    run_id.set(rid)


def add_run_id(
    logger: structlog.types.WrappedLogger,  # noqa: ARG001 - Required by structlog Processor API
    method_name: str,  # noqa: ARG001 - Required by structlog Processor API
    event_dict: MutableMapping[str, Any],
) -> MutableMapping[str, Any]:
    """
    Structlog processor adding the run ID to every event.

    Processors receive (logger, method_name, event_dict) and return the
    possibly modified event_dict; logger and method_name are unused here.
    """
    event_dict["run_id"] = get_run_id()
    return event_dict


# =============================================================================
# LOGGING CONFIGURATION
# =============================================================================


def configure_logging(
    level: str = "INFO",
    json_output: bool = False,
) -> None:
    """
    Configure structured logging.

    Call it once at startup; calling it again reconfigures logging (the
    entry point does this after settings are loaded).

    PROCESSOR PIPELINE:
    -------------------
    1. merge_contextvars: Adds any bound context variables
    2. add_log_level: Adds "level" field
    3. TimeStamper: Adds ISO-format timestamp
    4. add_run_id: Adds the workflow run ID
    5. Renderer: JSON or console text

    Args:
        level: "DEBUG", "INFO", "WARNING", "ERROR" or "CRITICAL".
        json_output: If True, emit one JSON object per line.
    """
    processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        add_run_id,
    ]

    if json_output:
        processors.append(structlog.processors.JSONRenderer())
    else:
        # The Actions log viewer does not interpret every ANSI sequence the
        # dev renderer emits for exceptions, so colours stay off.
        processors.append(structlog.dev.ConsoleRenderer(colors=False))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, level.upper(), logging.INFO)
        ),
        context_class=dict,
        # Runner captures stdout; workflow commands (::warning:: etc.) are
        # printed to the same stream so ordering is preserved.
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
