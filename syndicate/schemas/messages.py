from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

ROLE_SYSTEM = "system"
ROLE_DEVELOPER = "developer"
ROLE_USER = "user"
ROLE_ASSISTANT = "assistant"
ROLE_TOOL = "tool"

FINISH_REASON_STOP = "stop"
FINISH_REASON_LENGTH = "length"
FINISH_REASON_TOOL_CALLS = "tool_calls"

# Reasoning models reject the "system" role and expect "developer" instead.
REASONER_MODELS = frozenset(
    {
        "o1",
        "o1-2024-12-17",
        "o1-mini",
        "o1-mini-2024-09-12",
        "o1-preview",
        "o1-preview-2024-09-12",
        "o3-mini",
        "o3-mini-2025-01-31",
    }
)


def system_role_for(model: str) -> str:
    """Role used for the leading instruction message sent to ``model``."""
    if model.lower() in REASONER_MODELS:
        return ROLE_DEVELOPER
    return ROLE_SYSTEM


@dataclass(frozen=True)
class ToolCall:
    """Tool invocation requested by the model."""

    id: str
    name: str
    args: str = "{}"


@dataclass(frozen=True)
class ToolDefinition:
    """Name, description and parameter schema advertised to the model."""

    name: str
    description: str
    parameters: Any = None


@dataclass(frozen=True)
class Message:
    """Single turn exchanged between the user, an agent, or a tool."""

    role: str
    content: str = ""
    name: str = ""
    tool_calls: Tuple[ToolCall, ...] = ()
    tool_call_id: str = ""
    image_urls: Tuple[str, ...] = ()

    def requests_tools(self) -> bool:
        return self.role == ROLE_ASSISTANT and bool(self.tool_calls)


@dataclass(frozen=True)
class JSONSchema:
    name: str
    schema: Dict[str, Any]
    strict: bool = True


@dataclass(frozen=True)
class ResponseFormat:
    """Structured-output constraint forwarded to providers that support it."""

    type: str = "json_schema"
    json_schema: Optional[JSONSchema] = None


@dataclass
class ChatCompletionRequest:
    model: str
    messages: List[Message]
    tools: List[ToolDefinition] = field(default_factory=list)
    temperature: float = 0.0
    response_format: Optional[ResponseFormat] = None


@dataclass
class Usage:
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


@dataclass
class Choice:
    message: Message
    finish_reason: str = FINISH_REASON_STOP


@dataclass
class ChatCompletionResponse:
    """Provider-neutral completion result."""

    choices: List[Choice] = field(default_factory=list)
    usage: Usage = field(default_factory=Usage)
