from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from syndicate.schemas.messages import ToolDefinition


class Tool(ABC):
    """Protocol describing a callable capability exposed to the model."""

    name: str

    def __init__(self, name: str) -> None:
        self.name = name

    @abstractmethod
    def definition(self) -> ToolDefinition:
        """Describe the tool so the model knows how to call it."""

    @abstractmethod
    async def execute(self, args: str) -> Any:
        """Run the tool with raw JSON arguments and return a serializable result."""
