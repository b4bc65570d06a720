# eloqua_toolbox/main.py - FastAPI app entry point

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from eloqua_toolbox.routers import health, tools_v1
from eloqua_toolbox.tools import build_tool_registry


async def http_exception_handler(_: Request, exc: HTTPException):
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})


def create_app() -> FastAPI:
    app = FastAPI(
        title="eloqua-admin-toolbox",
        description="Eloqua administration tools: form bulk submission",
        version="0.1.0",
    )
    app.add_exception_handler(HTTPException, http_exception_handler)

    # One registry per process, shared by reference through app.state
    app.state.tool_registry = build_tool_registry()

    app.include_router(health.router, tags=["health"])
    app.include_router(tools_v1.router, prefix="/api/v1", tags=["tools-v1"])
    return app


app = create_app()
