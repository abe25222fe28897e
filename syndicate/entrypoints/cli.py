from __future__ import annotations

import argparse
import asyncio
import os
from pathlib import Path
from typing import List

from syndicate.agents.base import Agent
from syndicate.errors import ConfigurationError
from syndicate.memory.transcript import Transcript
from syndicate.schemas.messages import ROLE_ASSISTANT
from syndicate.telemetry.logging import setup_logging
from syndicate.utils.llm_clients import EchoLLMClient, LLMClient
from syndicate.utils.openai_clients import DeepSeekClient, OpenAIClient
from syndicate.utils.settings import AppConfig, load_config
from syndicate.workflows.orchestrator import Syndicate


def build_client(config: AppConfig) -> LLMClient:
    llm = config.llm
    if llm.provider == "echo":
        return EchoLLMClient()

    api_key = os.environ.get(llm.api_key_env)
    if not api_key:
        raise ConfigurationError(f"environment variable {llm.api_key_env} is not set")
    if llm.provider == "openai":
        return OpenAIClient(api_key=api_key, base_url=llm.base_url)
    if llm.provider == "azure":
        if not llm.endpoint:
            raise ConfigurationError("azure provider requires llm.endpoint")
        return OpenAIClient.azure(api_key=api_key, endpoint=llm.endpoint, api_version=llm.api_version)
    if llm.provider == "deepseek":
        if llm.base_url:
            return DeepSeekClient(api_key=api_key, base_url=llm.base_url)
        return DeepSeekClient(api_key=api_key)
    raise ConfigurationError(f"unknown llm provider: {llm.provider}")


def build_agents(config: AppConfig, client: LLMClient, base_dir: Path) -> List[Agent]:
    agents = []
    for name, agent_config in config.agents.items():
        timeout = agent_config.timeout_seconds
        agents.append(
            Agent(
                client=client,
                name=name,
                memory=Transcript(),
                model=agent_config.model or config.llm.model,
                system_prompt=agent_config.resolve_prompt(base_dir),
                temperature=(
                    agent_config.temperature
                    if agent_config.temperature is not None
                    else config.llm.temperature
                ),
                timeout=timeout if timeout is not None else config.workflow.timeout_seconds,
                max_tool_rounds=config.workflow.max_tool_rounds,
            )
        )
    return agents


def main() -> None:
    parser = argparse.ArgumentParser(description="Run the configured agent pipeline.")
    parser.add_argument("task", help="Request passed to the first agent of the pipeline.")
    parser.add_argument("--env", default="base", help="Config environment (base, offline, ...).")
    parser.add_argument("--config-dir", default="configs", help="Directory holding <env>.yaml files.")
    parser.add_argument("--user", default="user", help="Name recorded for the requesting user.")
    parser.add_argument("--image", action="append", default=[], help="Image URL for the first agent.")
    args = parser.parse_args()

    config = load_config(args.env, args.config_dir)
    setup_logging(config.logging.level, config.logging.format)
    client = build_client(config)
    syndicate = Syndicate(
        agents=build_agents(config, client, Path(args.config_dir)),
        pipeline=config.workflow.pipeline,
    )
    answer = asyncio.run(syndicate.execute_pipeline(args.user, args.task, image_urls=args.image))
    for message in syndicate.global_history():
        if message.role == ROLE_ASSISTANT:
            print(f"\n{message.content}")
    print(f"\n[final]\n{answer}")


if __name__ == "__main__":
    main()
