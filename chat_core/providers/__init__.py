"""LLM Provider 集成层。

该包下的模块负责：
- 定义 Transport 协议与 send() 的结果类型 (base)。
- 维护模型别名配置 (registry)。
- 提供 OpenRouter 的具体实现 (openrouter_client)。
"""

from typing import Optional

from chat_core.concurrency.rate_limiter import RateLimiter
from chat_core.config.settings import settings
from chat_core.providers.base import ChatTransport, CompletedResponse, SendResult, StreamingResponse
from chat_core.providers.openrouter_client import OpenRouterClient


def create_transport(cfg=None, *, min_interval: Optional[float] = None) -> OpenRouterClient:
    """根据配置创建 Transport 实例，min_interval 可覆盖配置中的请求间隔。"""

    cfg = cfg or settings
    interval = cfg.min_request_interval if min_interval is None else min_interval
    return OpenRouterClient(cfg, rate_limiter=RateLimiter(interval))


__all__ = [
    "ChatTransport",
    "CompletedResponse",
    "OpenRouterClient",
    "SendResult",
    "StreamingResponse",
    "create_transport",
]
