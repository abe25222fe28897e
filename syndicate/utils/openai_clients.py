from __future__ import annotations

from typing import Any, Dict, List

import structlog
from openai import AsyncAzureOpenAI, AsyncOpenAI

from syndicate.schemas.messages import (
    FINISH_REASON_STOP,
    FINISH_REASON_TOOL_CALLS,
    ROLE_SYSTEM,
    ROLE_TOOL,
    ROLE_USER,
    ChatCompletionRequest,
    ChatCompletionResponse,
    Choice,
    Message,
    ResponseFormat,
    ToolCall,
    ToolDefinition,
    Usage,
)
from syndicate.utils.llm_clients import LLMClient

logger = structlog.get_logger(__name__)

DEEPSEEK_BASE_URL = "https://api.deepseek.com"


def to_openai_message(message: Message) -> Dict[str, Any]:
    payload: Dict[str, Any] = {"role": message.role}

    if message.image_urls and message.role == ROLE_USER:
        parts: List[Dict[str, Any]] = []
        if message.content:
            parts.append({"type": "text", "text": message.content})
        parts.extend({"type": "image_url", "image_url": {"url": url}} for url in message.image_urls)
        payload["content"] = parts
    elif message.tool_calls and not message.content:
        payload["content"] = None
    else:
        payload["content"] = message.content

    if message.name and message.role != ROLE_TOOL:
        payload["name"] = message.name
    if message.tool_calls:
        payload["tool_calls"] = [
            {
                "id": call.id,
                "type": "function",
                "function": {"name": call.name, "arguments": call.args},
            }
            for call in message.tool_calls
        ]
    if message.role == ROLE_TOOL:
        payload["tool_call_id"] = message.tool_call_id
    return payload


def to_openai_tools(tools: List[ToolDefinition]) -> List[Dict[str, Any]]:
    return [
        {
            "type": "function",
            "function": {
                "name": tool.name,
                "description": tool.description,
                "parameters": tool.parameters,
                "strict": True,
            },
        }
        for tool in tools
    ]


def to_openai_response_format(response_format: ResponseFormat) -> Dict[str, Any]:
    payload: Dict[str, Any] = {"type": response_format.type}
    if response_format.json_schema is not None:
        payload["json_schema"] = {
            "name": response_format.json_schema.name,
            "schema": response_format.json_schema.schema,
            "strict": response_format.json_schema.strict,
        }
    return payload


def from_openai_response(resp: Any) -> ChatCompletionResponse:
    choices: List[Choice] = []
    for choice in resp.choices or []:
        raw = choice.message
        tool_calls = tuple(
            ToolCall(id=tc.id, name=tc.function.name, args=tc.function.arguments or "{}")
            for tc in (raw.tool_calls or [])
        )
        finish_reason = choice.finish_reason or FINISH_REASON_STOP
        if tool_calls:
            finish_reason = FINISH_REASON_TOOL_CALLS
        choices.append(
            Choice(
                message=Message(
                    role=raw.role,
                    content=raw.content or "",
                    tool_calls=tool_calls,
                ),
                finish_reason=finish_reason,
            )
        )

    usage = Usage()
    if resp.usage is not None:
        usage = Usage(
            prompt_tokens=resp.usage.prompt_tokens,
            completion_tokens=resp.usage.completion_tokens,
            total_tokens=resp.usage.total_tokens,
        )
    return ChatCompletionResponse(choices=choices, usage=usage)


class OpenAIClient(LLMClient):
    """Chat completions over the official async OpenAI SDK."""

    provider = "openai"

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        client: Any | None = None,
    ) -> None:
        self.client = client or AsyncOpenAI(api_key=api_key, base_url=base_url)

    @classmethod
    def azure(cls, api_key: str, endpoint: str, api_version: str = "2024-10-21") -> "OpenAIClient":
        instance = cls(
            client=AsyncAzureOpenAI(
                api_key=api_key,
                azure_endpoint=endpoint,
                api_version=api_version,
            )
        )
        instance.provider = "azure"
        return instance

    def build_kwargs(self, request: ChatCompletionRequest) -> Dict[str, Any]:
        kwargs: Dict[str, Any] = {
            "model": request.model,
            "messages": [to_openai_message(m) for m in request.messages],
            "temperature": request.temperature,
        }
        if request.tools:
            kwargs["tools"] = to_openai_tools(request.tools)
        if request.response_format is not None:
            kwargs["response_format"] = to_openai_response_format(request.response_format)
        return kwargs

    def parse_response(self, resp: Any) -> ChatCompletionResponse:
        return from_openai_response(resp)

    async def create_chat_completion(self, request: ChatCompletionRequest) -> ChatCompletionResponse:
        try:
            resp = await self.client.chat.completions.create(**self.build_kwargs(request))
        except Exception:
            logger.error("chat_completion_failed", provider=self.provider, model=request.model)
            raise
        return self.parse_response(resp)


class DeepSeekClient(OpenAIClient):
    """DeepSeek reasoning models over their OpenAI-compatible endpoint.

    Tools, temperature and response format are not supported and are left
    out of the request; system prompts are sent as user messages.
    """

    provider = "deepseek"

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str = DEEPSEEK_BASE_URL,
        client: Any | None = None,
    ) -> None:
        super().__init__(api_key=api_key, base_url=base_url, client=client)

    def build_kwargs(self, request: ChatCompletionRequest) -> Dict[str, Any]:
        messages = []
        for message in request.messages:
            role = ROLE_USER if message.role.lower() == ROLE_SYSTEM else message.role
            messages.append({"role": role, "content": message.content})
        return {"model": request.model, "messages": messages}

    def parse_response(self, resp: Any) -> ChatCompletionResponse:
        parsed = from_openai_response(resp)
        for choice in parsed.choices:
            choice.finish_reason = FINISH_REASON_STOP
        return parsed
