# eloqua_toolbox/tools/__init__.py - Tool framework and registry

from eloqua_toolbox.tools.base import BaseTool, ToolConfig, ToolExecutionContext, ToolResult
from eloqua_toolbox.tools.registry import ToolRegistry, build_tool_registry, execute_tool

__all__ = [
    "BaseTool",
    "ToolConfig",
    "ToolExecutionContext",
    "ToolResult",
    "ToolRegistry",
    "build_tool_registry",
    "execute_tool",
]
