from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import BaseModel, Field, model_validator


class LLMConfig(BaseModel):
    provider: str = "openai"
    model: str
    temperature: float = 0.0
    api_key_env: str = "OPENAI_API_KEY"
    base_url: Optional[str] = None
    endpoint: Optional[str] = None
    api_version: str = "2024-10-21"


class AgentPromptConfig(BaseModel):
    system_prompt: Optional[str] = None
    prompt_path: Optional[str] = None
    model: Optional[str] = None
    temperature: Optional[float] = None
    timeout_seconds: Optional[float] = None

    @model_validator(mode="after")
    def _single_prompt_source(self) -> "AgentPromptConfig":
        if self.system_prompt is not None and self.prompt_path is not None:
            raise ValueError("set either system_prompt or prompt_path, not both")
        return self

    def resolve_prompt(self, base_dir: Path) -> str:
        if self.prompt_path is None:
            return self.system_prompt or ""
        path = Path(self.prompt_path)
        if not path.is_absolute():
            path = base_dir / path
        return path.read_text(encoding="utf-8")


class WorkflowConfig(BaseModel):
    pipeline: List[str] = Field(default_factory=list)
    timeout_seconds: float = 30.0
    max_tool_rounds: Optional[int] = None


class LoggingConfig(BaseModel):
    level: str = "INFO"
    format: str = "console"


class AppConfig(BaseModel):
    llm: LLMConfig
    agents: Dict[str, AgentPromptConfig]
    workflow: WorkflowConfig
    logging: LoggingConfig


def load_config(env: str = "base", config_dir: str | Path = "configs") -> AppConfig:
    root = Path(config_dir)
    base = _read_yaml(root / "base.yaml")
    if env != "base":
        override_path = root / f"{env}.yaml"
        if override_path.exists():
            base = _merge_dicts(base, _read_yaml(override_path))
    return AppConfig(
        llm=LLMConfig(**base["llm"]),
        agents={k: AgentPromptConfig(**(v or {})) for k, v in base.get("agents", {}).items()},
        workflow=WorkflowConfig(**base.get("workflow", {})),
        logging=LoggingConfig(**base.get("logging", {"level": "INFO"})),
    )


def _read_yaml(path: Path) -> Dict[str, Any]:
    return yaml.safe_load(path.read_text(encoding="utf-8")) or {}


def _merge_dicts(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            merged[key] = _merge_dicts(base[key], value)
        else:
            merged[key] = value
    return merged
