"""Weaver-AI.

This package contains the execution core used by Weaver-AI agents and tools.

High-level architecture
-----------------------

The codebase is organized around two subsystems:

- **Agent execution**: the lifecycle of a single agent or tool invocation.
  Every invocation runs inside a ``RunContext`` that guards against reentrant
  calls, propagates a cooperative cancellation token to nested invocations,
  wraps foreign errors into a single error taxonomy and passes through an
  ordered middleware pipeline.
- **Schema validation**: declarative schemas (JSON Schema mappings or pydantic
  models) are normalized into canonical JSON Schema, compiled into validators
  with coercion/default rules, and used to check tool input. Malformed model
  output is recovered with a defensive JSON parser.

Core subpackages
----------------

- ``weaver_ai.agent_core``:

  - ``runtime``: run context, cancellation tokens and middleware.
  - ``emitter``: hierarchical event bus used for lifecycle events.
  - ``schema``: normalizer, validator compiler and defensive parser.
  - ``agents`` / ``tools``: base classes consumed by concrete agents and tools.

- ``weaver_ai.core``:

  - Settings, logging configuration and Logfire telemetry.
"""
