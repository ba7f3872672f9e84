"""Base abstraction for tools.

A tool declares its input as a schema (JSON Schema mapping, pydantic model or
``TypeAdapter``). The schema is normalized and compiled once; every call
validates its input against it before ``_run`` executes. Invalid input raises
``ToolInputValidationError`` carrying the violation list, which the calling
layer can feed back to the model.

Tools run inside a ``RunContext`` like agents. When a tool is awaited inside an
agent's ``_run`` it becomes a nested run and inherits the agent's
cancellation token.
"""

from __future__ import annotations

import re
from abc import abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Generic, Optional, Tuple, TypeVar

from pydantic import BaseModel, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from ..emitter import Emitter
from ..errors import ToolError, ToolInputValidationError, ToolOutputValidationError
from ..runtime.cancellation import CancellationToken
from ..runtime.context import Run, RunContext, enter
from ..runtime.models import Invokable
from ..schema.normalizer import SchemaLike, is_model_class, to_json_schema
from ..schema.repair import parse_broken_json
from ..schema.validator import SchemaValidator, ValidatorOptions, Violation, create_schema_validator

TOutput = TypeVar("TOutput")


def to_namespace_segment(name: str) -> str:
    """Event namespace segment for a tool name; unsupported characters become ``_``."""
    return re.sub(r"[^A-Za-z0-9_\-]", "_", name) or "_"


@dataclass
class ToolRunOptions:
    """Per-call options. ``signal`` is an externally issued cancellation token."""

    signal: Optional[CancellationToken] = None


class BaseTool(Invokable, Generic[TOutput]):
    """Abstract base class for tools.

    Subclasses must define ``name`` and ``description`` and implement
    ``input_schema`` and ``_run``. ``output_schema`` is optional.
    """

    name: str
    description: str = ""
    error_class = ToolError

    def __init__(self, *, validator_options: Optional[ValidatorOptions] = None, emitter: Optional[Emitter] = None) -> None:
        self.validator_options = validator_options or ValidatorOptions()
        self.emitter = emitter or Emitter.root.child(namespace=["tool", to_namespace_segment(self.name)], creator=self)
        self._validator: Optional[SchemaValidator] = None
        self._output_validator: Optional[SchemaValidator] = None

    @abstractmethod
    def input_schema(self) -> SchemaLike:
        """Declarative schema of the tool input."""

    def output_schema(self) -> Optional[SchemaLike]:
        """Declarative schema of the tool output, ``None`` to skip output validation."""
        return None

    @property
    def validator(self) -> SchemaValidator:
        """Compiled input validator. Compiled on first access."""
        if self._validator is None:
            self._validator = create_schema_validator(self.input_schema(), self.validator_options)
        return self._validator

    def prompt_data(self) -> Dict[str, Any]:
        """Name, description and canonical input schema, as presented to a model."""
        return {
            "name": self.name,
            "description": self.description,
            "input_schema": to_json_schema(self.input_schema()),
        }

    def validate_input(self, value: Any) -> Any:
        """
        Validate and prepare tool input.

        Returns:
            The input with defaults/coercions applied; an instance of the
            input model when the schema is a pydantic model.

        Raises:
            ToolInputValidationError: With the list of violations.
        """
        if isinstance(value, BaseModel):
            value = value.model_dump(mode="json")
        result = self.validator(value)
        if not result.valid:
            raise ToolInputValidationError(
                f"The received tool input does not match the expected schema: {_summarize(result.violations)}",
                result.violations,
                context={"tool": self.name},
            )
        return _to_native(self.input_schema(), result.value, self.name)

    def parse_output(self, text: Optional[str], pair: Optional[Tuple[str, str]] = ("{", "}")) -> Any:
        """Recover a JSON value from raw tool or model output; ``None`` when impossible."""
        return parse_broken_json(text, pair=pair)

    def run(self, input: Any, options: Optional[ToolRunOptions] = None) -> Run[TOutput]:
        """
        Start a run of this tool.

        Returns:
            An awaitable ``Run``. Awaiting it raises ``ToolInputValidationError``
            for invalid input and ``ToolError`` for failures of ``_run``.
        """
        opts = options or ToolRunOptions()

        async def _work(context: RunContext) -> TOutput:
            validated = self.validate_input(input)
            output = await self._run(validated, opts, context)
            self._validate_output(output)
            return output

        return enter(self, _work, token=opts.signal, params=(input, opts))

    @abstractmethod
    async def _run(self, input: Any, options: ToolRunOptions, context: RunContext) -> TOutput:
        """Tool logic; ``input`` is already validated."""

    def _validate_output(self, output: Any) -> None:
        schema = self.output_schema()
        if schema is None:
            return
        if self._output_validator is None:
            self._output_validator = create_schema_validator(schema, self.validator_options)
        candidate = output.model_dump(mode="json") if isinstance(output, BaseModel) else output
        result = self._output_validator(candidate)
        if not result.valid:
            raise ToolOutputValidationError(
                f"The tool output does not match the expected schema: {_summarize(result.violations)}",
                result.violations,
                context={"tool": self.name},
            )


def _summarize(violations: list[Violation]) -> str:
    return "; ".join(f"{v.path or '/'}: {v.reason}" for v in violations)


def _to_native(schema: SchemaLike, value: Any, tool_name: str) -> Any:
    try:
        if is_model_class(schema):
            return schema.model_validate(value)
        if isinstance(schema, TypeAdapter):
            return schema.validate_python(value)
    except PydanticValidationError as e:
        violations = [
            Violation(path="/" + "/".join(str(p) for p in err["loc"]) if err["loc"] else "", reason=err["msg"], keyword=err["type"])
            for err in e.errors()
        ]
        raise ToolInputValidationError(
            f"The received tool input does not match the expected schema: {_summarize(violations)}",
            violations,
            errors=[e],
            context={"tool": tool_name},
        ) from e
    return value
