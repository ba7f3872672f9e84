"""Tool base class and registry.

 - ``BaseTool``: schema-validated invokable with nested run support.
 - ``ToolRegistry``: name → tool mapping; compiles validators at registration.
 """

from .base import BaseTool, ToolRunOptions
from .registry import ToolRegistry

__all__ = ["BaseTool", "ToolRegistry", "ToolRunOptions"]
