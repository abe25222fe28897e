from __future__ import annotations

import asyncio
import inspect
from typing import Any, Callable, Type

from pydantic import BaseModel, ValidationError

from syndicate.errors import ToolExecutionError
from syndicate.schemas.messages import ToolDefinition
from syndicate.tools.base import Tool
from syndicate.tools.schema import generate_schema


class FunctionTool(Tool):
    """Expose a plain function as a tool.

    The function receives the validated ``args_model`` instance. Coroutine
    functions are awaited; regular functions run in a worker thread so a slow
    tool does not block sibling calls dispatched in the same turn.
    """

    def __init__(
        self,
        name: str,
        description: str,
        func: Callable[[Any], Any],
        args_model: Type[BaseModel],
    ) -> None:
        super().__init__(name=name)
        self.description = description
        self.func = func
        self.args_model = args_model
        self._parameters = generate_schema(args_model)

    def definition(self) -> ToolDefinition:
        return ToolDefinition(
            name=self.name,
            description=self.description,
            parameters=self._parameters,
        )

    async def execute(self, args: str) -> Any:
        try:
            parsed = self.args_model.model_validate_json(args or "{}")
        except ValidationError as exc:
            raise ToolExecutionError(self.name, f"invalid arguments for tool {self.name}: {exc}") from exc

        if inspect.iscoroutinefunction(self.func) or inspect.iscoroutinefunction(getattr(self.func, "__call__", None)):
            return await self.func(parsed)
        result = await asyncio.to_thread(self.func, parsed)
        # Partials and other wrappers can still hand back a coroutine.
        if inspect.isawaitable(result):
            result = await result
        return result
