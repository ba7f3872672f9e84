"""Error taxonomy for the agent execution core.

Every error raised by the core derives from ``FrameworkError``. Errors that do
not belong to this taxonomy are wrapped exactly once at the ``RunContext``
boundary (see ``agent_core.runtime.context``) so that a failing top-level run
surfaces a single ``AgentError`` whose ``errors`` keep the original cause.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional, Sequence


class FrameworkError(Exception):
    """Base class for every error raised by the execution core.

    Attributes:
        errors: Underlying causes, outermost first.
        is_fatal: Whether the calling layer should give up.
        is_retryable: Whether retrying the same operation can succeed.
        context: Free-form diagnostic data.
    """

    def __init__(
        self,
        message: str = "Framework error has occurred.",
        errors: Optional[Iterable[BaseException]] = None,
        *,
        is_fatal: bool = False,
        is_retryable: bool = True,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.errors: List[BaseException] = list(errors or [])
        self.is_fatal = is_fatal
        self.is_retryable = is_retryable
        self.context: Dict[str, Any] = dict(context or {})

    def __str__(self) -> str:
        return self.message

    def get_cause(self) -> BaseException:
        """Return the innermost error of the first cause chain."""
        current: BaseException = self
        while isinstance(current, FrameworkError) and current.errors:
            current = current.errors[0]
        return current

    def explain(self) -> str:
        """Render the error and its causes as an indented tree."""
        lines: List[str] = []

        def _walk(err: BaseException, depth: int) -> None:
            prefix = "  " * depth + ("↳ " if depth else "")
            lines.append(f"{prefix}{type(err).__name__}: {err}")
            if isinstance(err, FrameworkError):
                for child in err.errors:
                    _walk(child, depth + 1)

        _walk(self, 0)
        return "\n".join(lines)

    def dump(self) -> Dict[str, Any]:
        """Serializable representation used for logging and telemetry."""
        return {
            "type": type(self).__name__,
            "message": self.message,
            "is_fatal": self.is_fatal,
            "is_retryable": self.is_retryable,
            "context": self.context,
            "errors": [
                err.dump() if isinstance(err, FrameworkError) else {"type": type(err).__name__, "message": str(err)}
                for err in self.errors
            ],
        }

    @staticmethod
    def ensure(error: BaseException) -> "FrameworkError":
        """Return ``error`` unchanged when it already belongs to the taxonomy."""
        if isinstance(error, FrameworkError):
            return error
        return FrameworkError(str(error), [error])


class AgentError(FrameworkError):
    """Uncaught failure of invoked work, named after the failing component."""


class ToolError(AgentError):
    """Uncaught failure inside a tool invocation."""


class ReentrancyError(FrameworkError):
    """The owner already has an active run; the new call is rejected."""

    def __init__(self, message: str = "Owner is already running!", **kwargs: Any) -> None:
        kwargs.setdefault("is_fatal", True)
        kwargs.setdefault("is_retryable", False)
        super().__init__(message, **kwargs)


class RunCancelledError(FrameworkError):
    """Raised by work that observes a signalled cancellation token."""

    def __init__(self, message: str = "Run has been cancelled.", reason: Any = None, **kwargs: Any) -> None:
        kwargs.setdefault("is_retryable", False)
        super().__init__(message, **kwargs)
        self.reason = reason


class SchemaConversionError(FrameworkError, ValueError):
    """A schema dialect that cannot be expressed as declarative JSON Schema."""

    def __init__(self, message: str, errors: Optional[Iterable[BaseException]] = None, **kwargs: Any) -> None:
        kwargs.setdefault("is_fatal", True)
        kwargs.setdefault("is_retryable", False)
        super().__init__(message, errors, **kwargs)


class SchemaCompileError(FrameworkError):
    """A canonical schema is internally inconsistent and cannot be compiled."""

    def __init__(
        self,
        message: str,
        errors: Optional[Iterable[BaseException]] = None,
        *,
        problems: Optional[Sequence[str]] = None,
        **kwargs: Any,
    ) -> None:
        kwargs.setdefault("is_fatal", True)
        kwargs.setdefault("is_retryable", False)
        super().__init__(message, errors, **kwargs)
        self.problems: List[str] = list(problems or [])


class ToolValidationError(FrameworkError):
    """Tool input or output failed schema validation.

    Recoverable by the calling layer, e.g. by feeding ``violations`` back to
    the model. The core never retries on its own.
    """

    def __init__(self, message: str, violations: Optional[Sequence[Any]] = None, **kwargs: Any) -> None:
        kwargs.setdefault("is_fatal", False)
        kwargs.setdefault("is_retryable", True)
        super().__init__(message, **kwargs)
        self.violations: List[Any] = list(violations or [])


class ToolInputValidationError(ToolValidationError):
    """Tool input does not satisfy the tool's input schema."""


class ToolOutputValidationError(ToolValidationError):
    """Tool output does not satisfy the tool's output schema."""


class EmitterError(FrameworkError):
    """One or more event handlers failed during ``Emitter.emit``."""
