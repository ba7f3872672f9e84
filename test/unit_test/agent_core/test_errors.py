from __future__ import annotations

import pytest

from weaver_ai.agent_core.errors import (
    AgentError,
    FrameworkError,
    ReentrancyError,
    RunCancelledError,
    SchemaCompileError,
    SchemaConversionError,
    ToolError,
    ToolInputValidationError,
    ToolValidationError,
)


def test_framework_error_defaults() -> None:
    err = FrameworkError()
    assert str(err) == "Framework error has occurred."
    assert err.errors == []
    assert err.is_fatal is False
    assert err.is_retryable is True


def test_get_cause_returns_innermost_error() -> None:
    root = KeyError("missing")
    err = AgentError("outer", [ToolError("middle", [root])])
    assert err.get_cause() is root


def test_explain_renders_cause_tree() -> None:
    err = AgentError("outer", [ValueError("inner")])
    assert err.explain().splitlines() == ["AgentError: outer", "  ↳ ValueError: inner"]


def test_dump_is_serializable_dict() -> None:
    err = AgentError("outer", [ToolError("middle", [ValueError("inner")])], context={"run_id": "r1"})
    dumped = err.dump()

    assert dumped["type"] == "AgentError"
    assert dumped["context"] == {"run_id": "r1"}
    assert dumped["errors"][0]["type"] == "ToolError"
    assert dumped["errors"][0]["errors"][0] == {"type": "ValueError", "message": "inner"}


def test_ensure_keeps_framework_errors_and_wraps_others() -> None:
    original = AgentError("already")
    assert FrameworkError.ensure(original) is original

    foreign = RuntimeError("foreign")
    wrapped = FrameworkError.ensure(foreign)
    assert type(wrapped) is FrameworkError
    assert wrapped.errors == [foreign]


def test_reentrancy_error_is_fatal_and_not_retryable() -> None:
    err = ReentrancyError()
    assert str(err) == "Owner is already running!"
    assert err.is_fatal is True
    assert err.is_retryable is False


def test_run_cancelled_error_keeps_reason() -> None:
    err = RunCancelledError(reason="user abort")
    assert err.reason == "user abort"
    assert err.is_retryable is False


def test_schema_conversion_error_is_a_value_error() -> None:
    with pytest.raises(ValueError):
        raise SchemaConversionError("cannot convert")


def test_schema_compile_error_lists_problems() -> None:
    err = SchemaCompileError("inconsistent", problems=["a", "b"])
    assert err.problems == ["a", "b"]
    assert err.is_fatal is True


def test_tool_validation_errors_are_recoverable() -> None:
    err = ToolInputValidationError("bad input", violations=["x"])
    assert isinstance(err, ToolValidationError)
    assert err.violations == ["x"]
    assert err.is_fatal is False
    assert err.is_retryable is True


def test_tool_error_is_an_agent_error() -> None:
    assert issubclass(ToolError, AgentError)
