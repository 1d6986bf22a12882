"""Provider 与模型配置。

本模块将“逻辑模型名”与“OpenRouter 模型 ID”解耦：

- 逻辑名（logical_name）：命令行或配置里使用的简短别名，例如 "sonnet"。
- provider_model：OpenRouter 实际接受的模型 ID，例如 "anthropic/claude-3.5-sonnet"。

不在别名表里的名字原样透传，因此任何 OpenRouter 模型 ID 都可以直接使用。"""

from dataclasses import dataclass
from typing import Dict


@dataclass
class ModelConfig:
    """单个逻辑模型的配置。"""

    logical_name: str
    provider_model: str


@dataclass
class ProviderConfig:
    """Provider 的整体配置。"""

    name: str
    base_url: str
    models: Dict[str, ModelConfig]


def _models(*pairs) -> Dict[str, ModelConfig]:
    return {name: ModelConfig(logical_name=name, provider_model=model) for name, model in pairs}


OPENROUTER_CONFIG = ProviderConfig(
    name="openrouter",
    base_url="https://openrouter.ai/api/v1",
    models=_models(
        ("sonnet", "anthropic/claude-3.5-sonnet"),
        ("haiku", "anthropic/claude-3-haiku"),
        ("gpt-4o", "openai/gpt-4o"),
        ("gpt-4o-mini", "openai/gpt-4o-mini"),
        ("llama", "meta-llama/llama-3.1-70b-instruct"),
    ),
)


def resolve_model(name: str) -> str:
    """逻辑名 -> OpenRouter 模型 ID；别名不区分大小写，未知名称原样返回。"""

    cfg = OPENROUTER_CONFIG.models.get(name.lower())
    return cfg.provider_model if cfg else name
