from __future__ import annotations

"""Tool registry.

The registry maps a tool name to its implementation. Registering a tool
compiles its input validator immediately, so a broken schema fails with
``SchemaCompileError`` (or ``SchemaConversionError``) at registration time
instead of during a run.
"""

import logging
from typing import Dict, List

from .base import BaseTool

logger = logging.getLogger(__name__)


class ToolRegistry:
    """
    In-memory mapping of tool names to implementations.

    Notes:
        - ``register`` overwrites any existing mapping for the tool name.
        - ``get`` will raise ``KeyError`` if the tool is missing.
    """

    def __init__(self) -> None:
        """Initialize an empty tool registry."""
        self._tools: Dict[str, BaseTool] = {}

    def register(self, tool: BaseTool) -> None:
        """
        Register a tool implementation.

        Args:
            tool: The tool instance to register.

        Raises:
            SchemaConversionError: If the input schema cannot be converted.
            SchemaCompileError: If the input schema is inconsistent.
        """
        _ = tool.validator
        if tool.name in self._tools:
            logger.debug(f"Replacing registered tool: {tool.name}")
        self._tools[tool.name] = tool

    def unregister(self, name: str) -> None:
        self._tools.pop(name, None)

    def get(self, name: str) -> BaseTool:
        """
        Retrieve a registered tool by name.

        Raises:
            KeyError: If no tool is registered with the given name.
        """
        return self._tools[name]

    def has(self, name: str) -> bool:
        return name in self._tools

    def names(self) -> List[str]:
        return list(self._tools)

    def prompt_data(self) -> List[dict]:
        """Prompt data of every registered tool, in registration order."""
        return [tool.prompt_data() for tool in self._tools.values()]
