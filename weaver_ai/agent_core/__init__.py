"""Agent execution core.

This package contains the "engine room" shared by every agent and tool.

Design overview
---------------

- ``runtime``: every invocation runs inside a ``RunContext``. The context
  rejects reentrant calls on the same owner, forwards a cooperative
  cancellation token to nested invocations, wraps foreign errors exactly once
  and passes the work through an ordered ``MiddlewarePipeline``.
- ``emitter``: hierarchical event bus; the run context reports ``start``,
  ``success``/``error`` and ``finish`` on the owner's emitter.
- ``schema``: normalization of declarative schemas, compiled validators and
  defensive JSON parsing.
- ``agents`` / ``tools``: base classes for concrete components.

Typical usage
-------------

1. Subclass ``BaseAgent`` or ``BaseTool`` and implement ``_run``.
2. Call ``component.run(input, options)`` and await the returned ``Run``.
3. Optionally attach middleware with ``Run.middleware(...)`` before awaiting.
"""

from .agents import AgentMeta, AgentRunOptions, BaseAgent, BaseMemory
from .emitter import Emitter, Event
from .errors import (
    AgentError,
    EmitterError,
    FrameworkError,
    ReentrancyError,
    RunCancelledError,
    SchemaCompileError,
    SchemaConversionError,
    ToolError,
    ToolInputValidationError,
    ToolOutputValidationError,
    ToolValidationError,
)
from .runtime import (
    CancellationSource,
    CancellationToken,
    MiddlewarePipeline,
    Run,
    RunContext,
    RunState,
)
from .schema import (
    ValidatorOptions,
    compile_validator,
    create_schema_validator,
    parse_broken_json,
    to_json_schema,
)
from .tools import BaseTool, ToolRegistry, ToolRunOptions

__all__ = [
    "AgentError",
    "AgentMeta",
    "AgentRunOptions",
    "BaseAgent",
    "BaseMemory",
    "BaseTool",
    "CancellationSource",
    "CancellationToken",
    "Emitter",
    "EmitterError",
    "Event",
    "FrameworkError",
    "MiddlewarePipeline",
    "ReentrancyError",
    "Run",
    "RunCancelledError",
    "RunContext",
    "RunState",
    "SchemaCompileError",
    "SchemaConversionError",
    "ToolError",
    "ToolInputValidationError",
    "ToolOutputValidationError",
    "ToolRegistry",
    "ToolRunOptions",
    "ToolValidationError",
    "ValidatorOptions",
    "compile_validator",
    "create_schema_validator",
    "parse_broken_json",
    "to_json_schema",
]
