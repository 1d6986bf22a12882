"""统一的对话与结果数据模型。

本模块定义了 chat_core 内部共享的标准数据结构：

- Message: 一条对话消息（system/user/assistant），创建后不可变。
- RequestEnvelope: 发给 chat/completions 的完整请求（历史快照 + 模型 + 是否流式）。
- ResponseEnvelope: 非流式响应解析后的统一结果。
- StreamFragment: 流式响应中一帧解码出的增量文本（或结束信号）。

HTTP 适配层（OpenRouterClient）只依赖这些模型，
并负责在 API JSON（见 wire.py）和这些模型之间做转换。
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Literal, Optional, Tuple


# 消息角色（与 OpenAI 兼容接口的 role 字段对应）
Role = Literal["system", "user", "assistant"]


@dataclass(frozen=True)
class Message:
    """一条对话消息，既可用于请求，也可用于响应。"""

    role: Role
    content: str

    def to_payload(self) -> Dict[str, str]:
        return {"role": self.role, "content": self.content}


@dataclass(frozen=True)
class RequestEnvelope:
    """一次完整的聊天请求。

    messages 是提交时刻的历史快照（tuple），之后对会话的追加
    不会影响已经提交的请求。
    """

    model: str
    messages: Tuple[Message, ...]
    stream: bool = False

    def __post_init__(self) -> None:
        # 传入 list 时也固化为 tuple，保证值语义
        object.__setattr__(self, "messages", tuple(self.messages))

    def to_payload(self) -> Dict[str, Any]:
        return {
            "model": self.model,
            "messages": [m.to_payload() for m in self.messages],
            "stream": self.stream,
        }


@dataclass(frozen=True)
class Usage:
    """服务端返回的 token 统计信息。"""

    prompt_tokens: int
    completion_tokens: int
    total_tokens: int


@dataclass(frozen=True)
class ResponseEnvelope:
    """非流式调用的最终结果。

    - id / model: 服务端返回的请求 ID 与实际使用的模型。
    - usage: token 统计。
    - message: 助手回复。
    - raw: 原始响应 JSON，用于调试或日志记录，不参与比较。
    """

    id: str
    model: str
    usage: Usage
    message: Message
    raw: Optional[dict] = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class StreamFragment:
    """流式响应中的单个增量。

    text 为 None 表示该帧没有新内容（keep-alive、无法解析的帧等）；
    is_final 为 True 表示收到了结束标记 [DONE]。
    """

    text: Optional[str] = None
    is_final: bool = False
    finish_reason: Optional[str] = None
    usage: Optional[Usage] = None


NOOP_FRAGMENT = StreamFragment()
FINAL_FRAGMENT = StreamFragment(is_final=True)
