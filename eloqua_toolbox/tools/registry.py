from __future__ import annotations

import logging
from typing import Any

from eloqua_toolbox.tools.base import BaseTool, ToolCategory, ToolExecutionContext, ToolResult

logger = logging.getLogger(__name__)


class ToolRegistry:
    """Tools keyed by id. Built once at startup and passed to whoever needs it."""

    def __init__(self) -> None:
        self._tools: dict[str, BaseTool] = {}

    def register(self, tool: BaseTool) -> None:
        if tool.config.id in self._tools:
            raise ValueError(f"Tool '{tool.config.id}' is already registered")
        self._tools[tool.config.id] = tool

    def get(self, tool_id: str) -> BaseTool | None:
        return self._tools.get(tool_id)

    def get_all(self) -> list[BaseTool]:
        return list(self._tools.values())

    def get_all_by_category(self, category: ToolCategory) -> list[BaseTool]:
        return [tool for tool in self._tools.values() if tool.config.category == category]

    def get_tools_for_route(self, path: str) -> list[BaseTool]:
        return [tool for tool in self._tools.values() if tool.config.path == path]

    def navigation(self, category: ToolCategory | None = None) -> list[dict[str, Any]]:
        tools = self.get_all_by_category(category) if category else self.get_all()
        return [
            tool.config.model_dump(include={"id", "name", "description", "icon", "path", "category", "features"})
            for tool in tools
        ]


def build_tool_registry() -> ToolRegistry:
    # Imported here so tool modules can import the framework without cycles.
    from eloqua_toolbox.tools.form_bulk_submit import FormBulkSubmitTool

    registry = ToolRegistry()
    registry.register(FormBulkSubmitTool())
    return registry


async def execute_tool(
    registry: ToolRegistry,
    tool_id: str,
    context: ToolExecutionContext,
    parameters: dict[str, Any] | None = None,
) -> ToolResult:
    tool = registry.get(tool_id)
    if tool is None:
        return ToolResult(success=False, error=f"Tool '{tool_id}' not found")

    try:
        context.show_progress(f"Executing {tool.config.name}...")

        if tool.config.requires_auth and context.session is None:
            result = ToolResult(success=False, error=f"{tool.config.name} requires an authenticated session")
        elif not tool.validate_parameters(parameters):
            result = ToolResult(success=False, error="Invalid parameters provided")
        else:
            result = await tool.execute(context, parameters or {})

        if result.success:
            context.show_success(result.message or "Operation completed successfully")
        else:
            context.show_error(result.error or "Operation failed")
        return result
    except Exception as exc:  # noqa: BLE001
        logger.exception("Tool execution failed", extra={"tool_id": tool_id})
        message = str(exc) or "Unknown error"
        context.show_error(message)
        return ToolResult(success=False, error=message, internal_error=True)
    finally:
        context.hide_progress()
