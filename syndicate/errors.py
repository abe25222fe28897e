from __future__ import annotations


class SyndicateError(Exception):
    """Base class for every error raised by agents and the orchestrator."""


class ConfigurationError(SyndicateError):
    """An agent or orchestrator was constructed with missing or invalid fields."""


class RequestValidationError(SyndicateError):
    """A chat or pipeline call was missing a required argument."""


class AgentNotFoundError(SyndicateError):
    def __init__(self, agent_name: str) -> None:
        super().__init__(f"agent not found: {agent_name}")
        self.agent_name = agent_name


class ToolNotFoundError(SyndicateError):
    def __init__(self, tool_name: str) -> None:
        super().__init__(f"tool {tool_name} not found")
        self.tool_name = tool_name


class TransportError(SyndicateError):
    """The LLM client failed to produce a completion."""


class NoChoicesError(SyndicateError):
    """The LLM service answered without any completion choice."""


class ToolExecutionError(SyndicateError):
    def __init__(self, tool_name: str, message: str) -> None:
        super().__init__(message)
        self.tool_name = tool_name


class ToolRoundLimitError(SyndicateError):
    def __init__(self, limit: int) -> None:
        super().__init__(f"tool call rounds exceeded limit of {limit}")
        self.limit = limit


class PipelineError(SyndicateError):
    def __init__(self, agent_name: str, cause: BaseException) -> None:
        super().__init__(f"error in agent {agent_name}: {cause}")
        self.agent_name = agent_name
