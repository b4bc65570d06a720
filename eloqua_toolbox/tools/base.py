from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Literal

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

ToolCategory = Literal["assets", "operations", "analysis", "management", "data-export"]


class ToolConfig(BaseModel):
    id: str
    name: str
    description: str
    icon: str
    path: str
    category: ToolCategory
    features: list[str]
    requires_auth: bool
    version: str


class ToolResult(BaseModel):
    success: bool
    data: Any | None = None
    error: str | None = None
    message: str | None = None
    # Set when the failure is a crash rather than bad input; never serialized.
    internal_error: bool = Field(default=False, exclude=True)


def _log_progress(message: str) -> None:
    logger.info(message)


def _log_error(message: str) -> None:
    logger.warning(message)


def _noop() -> None:
    return None


@dataclass
class ToolExecutionContext:
    """Callbacks and ambient state handed to a tool for one execution.

    ``session`` is the opaque current Eloqua session (credentials are managed
    elsewhere); tools with ``requires_auth`` refuse to run without one.
    """

    session: Any | None = None
    cancel_event: asyncio.Event | None = None
    show_progress: Callable[[str], None] = field(default=_log_progress)
    hide_progress: Callable[[], None] = field(default=_noop)
    show_error: Callable[[str], None] = field(default=_log_error)
    show_success: Callable[[str], None] = field(default=_log_progress)


class BaseTool(ABC):
    def __init__(self, config: ToolConfig) -> None:
        self.config = config

    @abstractmethod
    async def execute(self, context: ToolExecutionContext, parameters: dict[str, Any]) -> ToolResult:
        ...

    @abstractmethod
    def validate_parameters(self, parameters: dict[str, Any] | None) -> bool:
        ...

    @abstractmethod
    def get_parameter_schema(self) -> dict[str, Any]:
        ...
