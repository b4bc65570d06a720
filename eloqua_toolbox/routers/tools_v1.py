from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, Field

from eloqua_toolbox.routers._responses import DataEnvelope, ErrorEnvelope, tool_result_response
from eloqua_toolbox.tools import ToolExecutionContext, ToolRegistry, execute_tool
from eloqua_toolbox.utils.exceptions import ForbiddenError, NotFoundError, ValidationError

router = APIRouter()


class ExecuteToolRequest(BaseModel):
    parameters: dict[str, Any] = Field(default_factory=dict)


def get_tool_registry(request: Request) -> ToolRegistry:
    return request.app.state.tool_registry


@router.get("/tools", response_model=DataEnvelope)
async def list_tools(
    category: str | None = None,
    registry: ToolRegistry = Depends(get_tool_registry),
):
    tools = registry.navigation(category)
    return DataEnvelope(data={"tools": tools, "count": len(tools)})


@router.get(
    "/tools/{tool_id}/schema",
    response_model=DataEnvelope,
    responses={404: {"model": ErrorEnvelope}},
)
async def get_tool_schema(tool_id: str, registry: ToolRegistry = Depends(get_tool_registry)):
    tool = registry.get(tool_id)
    if tool is None:
        raise NotFoundError("Tool", tool_id)
    return DataEnvelope(data={"tool": tool.config.model_dump(), "parameters": tool.get_parameter_schema()})


@router.post(
    "/tools/{tool_id}/execute",
    response_model=DataEnvelope,
    responses={
        400: {"model": ErrorEnvelope},
        403: {"model": ErrorEnvelope},
        404: {"model": ErrorEnvelope},
        422: {"model": ErrorEnvelope},
    },
)
async def execute_tool_v1(
    tool_id: str,
    payload: ExecuteToolRequest,
    registry: ToolRegistry = Depends(get_tool_registry),
):
    tool = registry.get(tool_id)
    if tool is None:
        raise NotFoundError("Tool", tool_id)
    # This surface carries no Eloqua session.
    if tool.config.requires_auth:
        raise ForbiddenError(f"{tool.config.name} requires an authenticated session")
    if not tool.validate_parameters(payload.parameters):
        raise ValidationError("Invalid parameters provided")

    result = await execute_tool(registry, tool_id, ToolExecutionContext(), payload.parameters)
    return tool_result_response(result)
