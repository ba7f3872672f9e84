"""Execution runtime for agent and tool invocations.

 The runtime governs the lifecycle of a single invocation:

 - ``RunContext`` / ``Run``: reentrancy guard, nested contexts, lifecycle
   events, error wrapping.
 - ``CancellationSource`` / ``CancellationToken``: cooperative cancellation.
 - ``MiddlewarePipeline``: ordered interceptors wrapped around every run.
 - ``Invokable`` / ``RunState``: base class and run state of owners.

 The main entry point is ``enter`` (or an owner's ``run`` method, which calls
 it).
 """

from .cancellation import CancellationSource, CancellationToken
from .context import Run, RunContext, enter, get_current_context
from .middleware import (
    MiddlewareEntry,
    MiddlewarePipeline,
    create_telemetry_middleware,
    identity_middleware,
)
from .models import Invokable, RunSnapshot, RunState

__all__ = [
    "CancellationSource",
    "CancellationToken",
    "Invokable",
    "MiddlewareEntry",
    "MiddlewarePipeline",
    "Run",
    "RunContext",
    "RunSnapshot",
    "RunState",
    "create_telemetry_middleware",
    "enter",
    "get_current_context",
    "identity_middleware",
]
