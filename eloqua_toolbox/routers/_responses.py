# eloqua_toolbox/routers/_responses.py - shared API response envelopes

from typing import Any

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from eloqua_toolbox.tools import ToolResult


class DataEnvelope(BaseModel):
    data: Any


class ErrorEnvelope(BaseModel):
    error: str


def error_response(message: str, status_code: int) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def tool_result_response(result: ToolResult) -> DataEnvelope | JSONResponse:
    if result.success:
        return DataEnvelope(data=result.model_dump())
    message = result.error or "Operation failed"
    if not result.internal_error:
        return error_response(message, 400)
    if result.data is None:
        return error_response(message, 500)
    # Job ran but aborted; keep the partial results.
    return JSONResponse(
        status_code=500,
        content={"error": message, "data": jsonable_encoder(result.data)},
    )
