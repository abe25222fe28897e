from __future__ import annotations

from abc import ABC, abstractmethod
from collections import deque
from typing import Deque, Iterable, List, Union

from syndicate.schemas.messages import (
    FINISH_REASON_STOP,
    FINISH_REASON_TOOL_CALLS,
    ROLE_ASSISTANT,
    ROLE_USER,
    ChatCompletionRequest,
    ChatCompletionResponse,
    Choice,
    Message,
    ToolCall,
    Usage,
)


class LLMClient(ABC):
    """Lightweight interface so agents can swap between real and stub models."""

    @abstractmethod
    async def create_chat_completion(self, request: ChatCompletionRequest) -> ChatCompletionResponse:
        """Send ``request`` to the model service and return its completion.

        Implementations must return at least one choice or raise, and must
        report ``tool_calls`` as the finish reason whenever the message
        carries tool calls.
        """


class EchoLLMClient(LLMClient):
    """Fallback implementation used for local runs without external APIs."""

    async def create_chat_completion(self, request: ChatCompletionRequest) -> ChatCompletionResponse:
        last_user = next(
            (m for m in reversed(request.messages) if m.role == ROLE_USER),
            None,
        )
        content = last_user.content.strip() if last_user else ""
        return ChatCompletionResponse(
            choices=[
                Choice(
                    message=Message(role=ROLE_ASSISTANT, content=content),
                    finish_reason=FINISH_REASON_STOP,
                )
            ],
            usage=Usage(),
        )


ScriptedReply = Union[ChatCompletionResponse, Exception]


class ScriptedLLMClient(LLMClient):
    """Replays queued responses in order and records every request it receives.

    Queued exceptions are raised instead of returned.
    """

    def __init__(self, replies: Iterable[ScriptedReply] = ()) -> None:
        self._replies: Deque[ScriptedReply] = deque(replies)
        self.requests: List[ChatCompletionRequest] = []

    def queue(self, reply: ScriptedReply) -> None:
        self._replies.append(reply)

    async def create_chat_completion(self, request: ChatCompletionRequest) -> ChatCompletionResponse:
        self.requests.append(request)
        if not self._replies:
            raise RuntimeError("scripted client has no reply queued")
        reply = self._replies.popleft()
        if isinstance(reply, Exception):
            raise reply
        return reply


def text_response(content: str) -> ChatCompletionResponse:
    """Single-choice completion that ends the turn with ``content``."""
    return ChatCompletionResponse(
        choices=[Choice(message=Message(role=ROLE_ASSISTANT, content=content))]
    )


def tool_call_response(*calls: ToolCall) -> ChatCompletionResponse:
    """Single-choice completion asking for ``calls`` to be executed."""
    return ChatCompletionResponse(
        choices=[
            Choice(
                message=Message(role=ROLE_ASSISTANT, tool_calls=tuple(calls)),
                finish_reason=FINISH_REASON_TOOL_CALLS,
            )
        ]
    )
