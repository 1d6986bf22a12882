"""Chat Core 顶层包。

该包提供面向 OpenRouter chat/completions 接口的客户端核心，
包括配置加载、领域模型、请求间隔与并发准入控制、SSE 流式解析、
交互式会话与批量并行提交等能力。
"""

from chat_core.agents.chat_session import ChatSession, SessionConfig
from chat_core.tasks import BatchConfig, run_batch

__all__ = ["BatchConfig", "ChatSession", "SessionConfig", "run_batch"]
