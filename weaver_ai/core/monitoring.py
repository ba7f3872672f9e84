"""
Monitoring and Tracing Configuration Module.

This module provides integration with Pydantic Logfire for tracing agent and
tool runs:
- Run start/completion records with duration
- Error tracking with the framework error tree
- Spans wrapping each run (see ``agent_core.runtime.middleware``)

Logfire is only configured when instrumentation is enabled in settings and a
token is present. Every helper degrades to a debug log line when Logfire is
unavailable, so telemetry can never break a run.
"""

import logging
from contextlib import AbstractContextManager, nullcontext
from typing import Any, Optional

import logfire

from weaver_ai.core.config import get_settings

logger = logging.getLogger(__name__)

_configured = False
_failed = False


def initialize_logfire() -> bool:
    """
    Initialize Pydantic Logfire for monitoring and tracing.

    Returns:
        True when Logfire was configured by this call or an earlier one.
        A failed configuration is not retried.
    """
    global _configured, _failed
    if _configured:
        return True
    if _failed:
        return False

    settings = get_settings()
    if not settings.instrumentation_enabled:
        logger.info("Instrumentation is disabled. Set WEAVER_AI_INSTRUMENTATION_ENABLED=true to enable.")
        return False

    cfg = settings.logfire
    if not cfg.token:
        logger.warning(
            "Instrumentation is enabled but LOGFIRE_TOKEN is not set. "
            "Spans are recorded locally only. Set LOGFIRE_TOKEN to export them."
        )

    try:
        logfire.configure(
            token=cfg.token,
            send_to_logfire="if-token-present",
            service_name=cfg.service_name,
            service_version=cfg.service_version,
            environment=cfg.environment,
            sampling=logfire.SamplingOptions(head=cfg.sample_rate),
        )
    except Exception as e:
        logger.error(f"Failed to initialize Logfire: {e}", exc_info=True)
        _failed = True
        return False

    _configured = True
    logger.info(
        f"Logfire monitoring initialized: "
        f"project={cfg.project_name}, "
        f"environment={cfg.environment}, "
        f"service={cfg.service_name}"
    )
    return True


def run_span(component: str, run_id: str, group_id: str) -> AbstractContextManager[Any]:
    """
    Open a Logfire span for one run.

    Args:
        component: Name of the owning component type
        run_id: The run identifier
        group_id: Identifier shared by all nested runs of one top-level invocation

    Returns:
        A context manager; a null context when the span cannot be created.
    """
    try:
        return logfire.span("{component} run", component=component, run_id=run_id, group_id=group_id)
    except Exception:
        logger.debug(f"Could not open Logfire span: component={component} run_id={run_id}")
        return nullcontext()


def log_run_started(run_id: str, component: str, parent_id: Optional[str] = None) -> None:
    """
    Log the start of a run.

    Args:
        run_id: The unique identifier for the run
        component: The owning component type
        parent_id: Identifier of the parent run for nested invocations
    """
    try:
        logfire.info("Run started", run_id=run_id, component=component, parent_id=parent_id)
    except Exception:
        logger.debug(f"Could not log run start to Logfire: run_id={run_id}")


def log_run_completed(run_id: str, status: str, duration_ms: float) -> None:
    """
    Log the completion of a run.

    Args:
        run_id: The unique identifier for the run
        status: The completion status (succeeded, failed, cancelled)
        duration_ms: The duration of the run in milliseconds
    """
    try:
        logfire.info("Run completed", run_id=run_id, status=status, duration_ms=duration_ms)
    except Exception:
        logger.debug(f"Could not log run completion to Logfire: run_id={run_id}")


def log_error(error_type: str, error_message: str, context: Optional[dict] = None) -> None:
    """
    Log an error with context for debugging.

    Args:
        error_type: Type of error
        error_message: Error message
        context: Additional context dictionary
    """
    try:
        logfire.error("{error_type}: {error_message}", error_type=error_type, error_message=error_message, **(context or {}))
    except Exception:
        logger.debug(f"Could not log error to Logfire: {error_type}")
