import pytest

from syndicate.entrypoints.cli import build_agents, build_client
from syndicate.errors import ConfigurationError
from syndicate.utils.llm_clients import EchoLLMClient
from syndicate.utils.openai_clients import DeepSeekClient
from syndicate.utils.settings import load_config
from syndicate.workflows.orchestrator import Syndicate

BASE = """
llm:
  provider: echo
  model: echo-model
  temperature: 0.3
agents:
  first:
    system_prompt: Repeat the request.
  second:
    prompt_path: second.md
    model: other-model
    timeout_seconds: 5
workflow:
  pipeline: [first, second]
  timeout_seconds: 12
  max_tool_rounds: 2
logging:
  level: DEBUG
"""


@pytest.fixture
def config(tmp_path):
    (tmp_path / "base.yaml").write_text(BASE, encoding="utf-8")
    (tmp_path / "second.md").write_text("Repeat again.", encoding="utf-8")
    return load_config("base", tmp_path)


def test_build_agents_applies_overrides(config, tmp_path):
    client = build_client(config)
    agents = {agent.name: agent for agent in build_agents(config, client, tmp_path)}

    assert isinstance(client, EchoLLMClient)
    assert agents["first"].model == "echo-model"
    assert agents["first"].timeout == 12
    assert agents["first"].temperature == 0.3
    assert agents["second"].model == "other-model"
    assert agents["second"].timeout == 5
    assert agents["second"].system_prompt == "Repeat again."
    assert agents["second"].max_tool_rounds == 2


@pytest.mark.asyncio
async def test_offline_pipeline_runs_end_to_end(config, tmp_path):
    client = build_client(config)
    syndicate = Syndicate(
        agents=build_agents(config, client, tmp_path),
        pipeline=config.workflow.pipeline,
    )

    answer = await syndicate.execute_pipeline("alice", "ping")

    assert answer == "ping"
    assert len(syndicate.global_history()) == 4


def test_remote_provider_requires_api_key(config, monkeypatch):
    monkeypatch.delenv("DEEPSEEK_API_KEY", raising=False)
    config.llm.provider = "deepseek"
    config.llm.api_key_env = "DEEPSEEK_API_KEY"

    with pytest.raises(ConfigurationError, match="DEEPSEEK_API_KEY"):
        build_client(config)

    monkeypatch.setenv("DEEPSEEK_API_KEY", "sk-test")
    assert isinstance(build_client(config), DeepSeekClient)


def test_unknown_provider(config, monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    config.llm.provider = "mystery"

    with pytest.raises(ConfigurationError, match="unknown llm provider"):
        build_client(config)
