from __future__ import annotations

from typing import Any, Dict, Optional

import pytest
from pydantic import BaseModel, Field

from weaver_ai.agent_core.errors import (
    SchemaConversionError,
    ToolError,
    ToolInputValidationError,
    ToolOutputValidationError,
)
from weaver_ai.agent_core.runtime.context import RunContext
from weaver_ai.agent_core.schema.validator import ValidatorOptions
from weaver_ai.agent_core.tools.base import BaseTool, ToolRunOptions


class SearchInput(BaseModel):
    query: str = Field(..., description="Search query")
    limit: int = Field(default=3, description="Maximum number of results")


class SearchTool(BaseTool[Dict[str, Any]]):
    name = "search"
    description = "Searches a fixed corpus"

    def input_schema(self) -> type[SearchInput]:
        return SearchInput

    async def _run(self, input: SearchInput, options: ToolRunOptions, context: RunContext) -> Dict[str, Any]:
        if input.query == "fail":
            raise ConnectionError("backend unavailable")
        return {"results": [input.query] * input.limit}


class DictTool(BaseTool[str]):
    name = "dict_tool"

    def __init__(self, output: Any = "ok", **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.output = output

    def input_schema(self) -> dict:
        return {
            "type": "object",
            "properties": {"n": {"type": "integer"}, "mode": {"type": "string", "default": "fast"}},
            "required": ["n"],
        }

    def output_schema(self) -> Optional[dict]:
        return {"type": "string"}

    async def _run(self, input: Any, options: ToolRunOptions, context: RunContext) -> str:
        return self.output if self.output != "echo" else f"{input['n']}-{input['mode']}"


class BrokenSchemaTool(BaseTool[None]):
    name = "broken"

    def input_schema(self) -> Any:
        return {"type": "object", "properties": {"x": {"type": "string", "check": object()}}}

    async def _run(self, input: Any, options: ToolRunOptions, context: RunContext) -> None:
        return None


@pytest.mark.asyncio
async def test_pydantic_input_is_validated_and_defaults_applied() -> None:
    tool = SearchTool()
    assert await tool.run({"query": "cats"}) == {"results": ["cats", "cats", "cats"]}


@pytest.mark.asyncio
async def test_pydantic_model_instance_is_accepted_as_input() -> None:
    tool = SearchTool()
    assert await tool.run(SearchInput(query="dogs", limit=1)) == {"results": ["dogs"]}


@pytest.mark.asyncio
async def test_invalid_input_raises_validation_error_with_violations() -> None:
    tool = SearchTool()

    with pytest.raises(ToolInputValidationError) as exc_info:
        await tool.run({"limit": 2})

    assert [v.path for v in exc_info.value.violations] == ["/query"]
    assert exc_info.value.is_retryable is True
    assert tool.is_running is False


@pytest.mark.asyncio
async def test_coercion_applies_before_run() -> None:
    tool = DictTool(output="echo")
    assert await tool.run({"n": "7"}) == "7-fast"


@pytest.mark.asyncio
async def test_failure_is_wrapped_into_tool_error() -> None:
    tool = SearchTool()

    with pytest.raises(ToolError) as exc_info:
        await tool.run({"query": "fail"})

    assert "SearchTool" in str(exc_info.value)
    assert isinstance(exc_info.value.get_cause(), ConnectionError)


@pytest.mark.asyncio
async def test_output_is_validated_against_output_schema() -> None:
    tool = DictTool(output=123)
    tool.validator_options = ValidatorOptions(coerce_types=False)

    with pytest.raises(ToolOutputValidationError):
        await tool.run({"n": 1})


def test_validate_input_returns_prepared_value() -> None:
    tool = DictTool()
    assert tool.validate_input({"n": 1}) == {"n": 1, "mode": "fast"}


def test_prompt_data_contains_canonical_schema() -> None:
    data = SearchTool().prompt_data()

    assert data["name"] == "search"
    assert data["description"] == "Searches a fixed corpus"
    assert data["input_schema"]["required"] == ["query"]
    assert set(data["input_schema"]["properties"]) == {"query", "limit"}


def test_unconvertible_schema_fails_on_validator_access() -> None:
    with pytest.raises(SchemaConversionError):
        _ = BrokenSchemaTool().validator


def test_parse_output_recovers_embedded_json() -> None:
    tool = DictTool()
    assert tool.parse_output('Here you go: {"n": 2,} thanks') == {"n": 2}
    assert tool.parse_output("no json") is None


def test_tool_emitter_is_namespaced_by_name() -> None:
    assert SearchTool().emitter.namespace == ["tool", "search"]


def test_tool_name_with_unsupported_characters_gets_safe_namespace() -> None:
    class DottedTool(SearchTool):
        name = "web search.v2"

    tool = DottedTool()

    assert tool.emitter.namespace == ["tool", "web_search_v2"]
    assert tool.name == "web search.v2"
