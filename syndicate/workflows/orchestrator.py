from __future__ import annotations

import threading
from typing import Dict, Iterable, List, Sequence, Tuple

import structlog

from syndicate.agents.base import Agent
from syndicate.errors import (
    AgentNotFoundError,
    ConfigurationError,
    PipelineError,
    RequestValidationError,
)
from syndicate.memory.transcript import Memory, Transcript
from syndicate.schemas.messages import ROLE_ASSISTANT, ROLE_USER, Message

logger = structlog.get_logger(__name__)


class Syndicate:
    """Sequential controller threading a shared history through named agents.

    Each agent keeps its private memory; the syndicate only records, in its
    global history, what every agent was asked and what it answered. Agent
    responses are stored as ``"[<agent>]: <text>"`` so that, once replayed to
    a different agent, each line can be attributed to its author.
    """

    def __init__(
        self,
        agents: Iterable[Agent],
        pipeline: Sequence[str] = (),
        global_history: Memory | None = None,
    ) -> None:
        self._agents: Dict[str, Agent] = {}
        for agent in agents:
            if agent is None:
                raise ConfigurationError("agent cannot be None")
            if not agent.name:
                raise ConfigurationError("agent name cannot be empty")
            self._agents[agent.name] = agent

        for agent_name in pipeline:
            if agent_name not in self._agents:
                raise ConfigurationError(f"agent {agent_name} not found in syndicate")

        self._pipeline: Tuple[str, ...] = tuple(pipeline)
        self._history = global_history if global_history is not None else Transcript()
        self._lock = threading.RLock()

    @property
    def pipeline(self) -> Tuple[str, ...]:
        return self._pipeline

    def find_agent(self, name: str) -> Agent | None:
        with self._lock:
            return self._agents.get(name)

    def agent_names(self) -> List[str]:
        with self._lock:
            return list(self._agents)

    def global_history(self) -> List[Message]:
        with self._lock:
            return self._history.get()

    async def execute_agent(
        self,
        agent_name: str,
        user_name: str,
        input: str,
        image_urls: Sequence[str] | None = None,
        additional_messages: Sequence[Message] | None = None,
        use_global_history: bool = True,
    ) -> str:
        if not user_name:
            raise RequestValidationError("user name is required")
        if not input:
            raise RequestValidationError("input is required")

        agent = self.find_agent(agent_name)
        if agent is None:
            raise AgentNotFoundError(agent_name)

        context: List[Message] = []
        if use_global_history:
            context.extend(self.global_history())
        context.extend(additional_messages or ())

        response = await agent.chat(
            user_name,
            input,
            image_urls=image_urls,
            additional_messages=context,
        )

        with self._lock:
            self._history.add(Message(role=ROLE_USER, content=input, name=user_name))
            self._history.add(
                Message(
                    role=ROLE_ASSISTANT,
                    content=f"[{agent_name}]: {response}",
                    name=agent_name,
                )
            )
        return response

    async def execute_pipeline(
        self,
        user_name: str,
        input: str,
        image_urls: Sequence[str] | None = None,
    ) -> str:
        """Feed ``input`` through every pipeline agent and return the last answer.

        Images are only attached to the first step. The first failing step
        aborts the run; entries already written to the global history stay.
        """
        if not self._pipeline:
            raise ConfigurationError("no pipeline defined in syndicate")
        if not user_name:
            raise RequestValidationError("user name is required")
        if not input:
            raise RequestValidationError("input is required")

        current_input = input
        current_images = image_urls
        for step, agent_name in enumerate(self._pipeline):
            logger.info("pipeline_step_started", step=step, agent=agent_name)
            try:
                current_input = await self.execute_agent(
                    agent_name,
                    user_name,
                    current_input,
                    image_urls=current_images,
                )
            except Exception as exc:
                logger.error("pipeline_step_failed", step=step, agent=agent_name, error=str(exc))
                raise PipelineError(agent_name, exc) from exc
            current_images = None
        return current_input
