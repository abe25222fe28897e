from __future__ import annotations

import asyncio
import threading
from typing import Dict, Iterable, List, Sequence

import structlog
from pydantic_core import PydanticSerializationError, to_json

from syndicate.errors import (
    ConfigurationError,
    NoChoicesError,
    RequestValidationError,
    ToolExecutionError,
    ToolNotFoundError,
    ToolRoundLimitError,
    TransportError,
)
from syndicate.memory.sequence import repair_sequence
from syndicate.memory.transcript import Memory
from syndicate.schemas.messages import (
    FINISH_REASON_TOOL_CALLS,
    ROLE_ASSISTANT,
    ROLE_TOOL,
    ROLE_USER,
    ChatCompletionRequest,
    ChatCompletionResponse,
    Message,
    ResponseFormat,
    ToolCall,
    ToolDefinition,
    system_role_for,
)
from syndicate.tools.base import Tool
from syndicate.utils.llm_clients import LLMClient

logger = structlog.get_logger(__name__)

DEFAULT_TIMEOUT = 30.0


class Agent:
    """LLM-backed agent holding a system prompt, tools and a private memory.

    A call to :meth:`chat` runs one turn: the user message is stored, the
    model is queried, requested tools are executed concurrently and their
    results fed back until the model answers in plain text. The whole turn,
    however many tool rounds it takes, runs under a single deadline.

    The memory and the tool registry are guarded by one lock so ``chat`` may
    be invoked concurrently with ``add_tool`` or with other ``chat`` calls.
    """

    def __init__(
        self,
        client: LLMClient,
        name: str,
        memory: Memory,
        model: str,
        system_prompt: str = "",
        temperature: float = 0.0,
        timeout: float | None = DEFAULT_TIMEOUT,
        tools: Iterable[Tool] | None = None,
        response_format: ResponseFormat | None = None,
        max_tool_rounds: int | None = None,
    ) -> None:
        _validate_required(client=client, name=name, memory=memory, model=model)
        if max_tool_rounds is not None and max_tool_rounds < 0:
            raise ConfigurationError("max_tool_rounds cannot be negative")

        self._name = name
        self.client = client
        self.model = model
        self.temperature = temperature
        self.timeout = timeout
        self.response_format = response_format
        self.max_tool_rounds = max_tool_rounds
        self._memory = memory
        self._system_prompt = system_prompt
        self._tools: Dict[str, Tool] = {}
        self._lock = threading.RLock()
        self._log = logger.bind(agent=name)
        for tool in tools or []:
            self.add_tool(tool)

    @property
    def name(self) -> str:
        return self._name

    @property
    def memory(self) -> Memory:
        return self._memory

    @property
    def system_prompt(self) -> str:
        with self._lock:
            return self._system_prompt

    def set_system_prompt(self, prompt: str) -> None:
        with self._lock:
            self._system_prompt = prompt

    def add_tool(self, tool: Tool) -> None:
        """Register ``tool``; a tool with the same name is replaced."""
        definition = tool.definition()
        with self._lock:
            self._tools[definition.name] = tool

    def tool_definitions(self) -> List[ToolDefinition]:
        with self._lock:
            return self._prepare_tools()

    async def chat(
        self,
        user_name: str,
        input: str,
        image_urls: Sequence[str] | None = None,
        additional_messages: Sequence[Message] | None = None,
        timeout: float | None = None,
    ) -> str:
        """Run one turn for ``input`` and return the model's final answer.

        ``additional_messages`` are appended after the agent's own history on
        the first request of the turn. ``timeout`` overrides the agent's
        default deadline; expiry raises :class:`TimeoutError`.
        """
        if not user_name:
            raise RequestValidationError("user name is required")
        if not input:
            raise RequestValidationError("input is required")

        with self._lock:
            self._memory.add(
                Message(
                    role=ROLE_USER,
                    name=user_name,
                    content=input,
                    image_urls=tuple(image_urls or ()),
                )
            )
            messages = self._prepare_messages()
            tools = self._prepare_tools()
        messages.extend(additional_messages or ())

        deadline = timeout if timeout is not None else self.timeout
        async with asyncio.timeout(deadline):
            return await self._complete(messages, tools)

    async def process(self, user_name: str, input: str, *additional_messages: Sequence[Message]) -> str:
        """Run a turn with several batches of extra context, in order."""
        extra: List[Message] = []
        for batch in additional_messages:
            extra.extend(batch)
        return await self.chat(user_name, input, additional_messages=extra)

    async def _complete(self, messages: List[Message], tools: List[ToolDefinition]) -> str:
        rounds = 0
        while True:
            response = await self._request_completion(messages, tools)
            choice = response.choices[0]

            if choice.finish_reason == FINISH_REASON_TOOL_CALLS and choice.message.tool_calls:
                if self.max_tool_rounds is not None and rounds >= self.max_tool_rounds:
                    raise ToolRoundLimitError(self.max_tool_rounds)
                rounds += 1
                await self._handle_tool_calls(choice.message)
                with self._lock:
                    messages = self._prepare_messages()
                continue

            content = choice.message.content
            with self._lock:
                self._memory.add(Message(role=ROLE_ASSISTANT, content=content, name=self._name))
            return content

    async def _request_completion(
        self, messages: List[Message], tools: List[ToolDefinition]
    ) -> ChatCompletionResponse:
        request = ChatCompletionRequest(
            model=self.model,
            messages=messages,
            tools=tools,
            temperature=self.temperature,
            response_format=self.response_format,
        )
        self._log.debug(
            "chat_completion_requested",
            model=self.model,
            messages=len(messages),
            tools=len(tools),
        )
        try:
            response = await self.client.create_chat_completion(request)
        except Exception as exc:
            self._log.error("chat_completion_failed", error=str(exc))
            raise TransportError(f"error in chat completion: {exc}") from exc

        if not response.choices:
            raise NoChoicesError("no response choices available")
        self._log.debug(
            "chat_completion_received",
            finish_reason=response.choices[0].finish_reason,
            prompt_tokens=response.usage.prompt_tokens,
            completion_tokens=response.usage.completion_tokens,
            total_tokens=response.usage.total_tokens,
        )
        return response

    async def _handle_tool_calls(self, request: Message) -> None:
        calls = list(request.tool_calls)
        with self._lock:
            registry = dict(self._tools)

        self._log.info("tool_calls_dispatched", tools=[call.name for call in calls])
        results = await asyncio.gather(
            *(self._run_tool_call(call, registry) for call in calls),
            return_exceptions=True,
        )
        # Results are inspected in issue order; the first failure aborts the turn.
        for call, result in zip(calls, results):
            if isinstance(result, BaseException):
                self._log.warning("tool_call_failed", tool=call.name, call_id=call.id, error=str(result))
                raise result

        with self._lock:
            self._memory.add(
                Message(
                    role=ROLE_ASSISTANT,
                    content=request.content,
                    name=self._name,
                    tool_calls=tuple(calls),
                )
            )
            for call, content in zip(calls, results):
                self._memory.add(
                    Message(
                        role=ROLE_TOOL,
                        content=content,
                        name=call.name,
                        tool_call_id=call.id,
                    )
                )

    async def _run_tool_call(self, call: ToolCall, registry: Dict[str, Tool]) -> str:
        tool = registry.get(call.name)
        if tool is None:
            raise ToolNotFoundError(call.name)

        try:
            result = await tool.execute(call.args)
        except ToolExecutionError:
            raise
        except Exception as exc:
            raise ToolExecutionError(call.name, f"error executing tool {call.name}: {exc}") from exc

        try:
            return to_json(result).decode("utf-8")
        except PydanticSerializationError as exc:
            raise ToolExecutionError(call.name, f"error marshalling tool result: {exc}") from exc

    def _prepare_messages(self) -> List[Message]:
        messages: List[Message] = []
        if self._system_prompt:
            messages.append(Message(role=system_role_for(self.model), content=self._system_prompt))
        messages.extend(repair_sequence(self._memory.get()))
        return messages

    def _prepare_tools(self) -> List[ToolDefinition]:
        return [tool.definition() for tool in self._tools.values()]


def _validate_required(**fields: object) -> None:
    missing = [name for name, value in fields.items() if value is None or value == ""]
    if missing:
        raise ConfigurationError(f"missing required agent fields: {', '.join(missing)}")
