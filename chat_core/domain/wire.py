"""chat/completions 的线上 JSON 结构（v1）。

用 pydantic 显式声明响应体与流式帧的结构，代替按路径逐层 .get() 的探测：
缺失的可选字段走 None 分支，结构不符时由 pydantic 抛出校验错误，
再由上层映射为 MalformedResponse（非流式）或 no-op（流式单帧）。
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from chat_core.domain.models import Message, ResponseEnvelope, Usage


WIRE_VERSION = 1


class _WireModel(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)


class WireUsage(_WireModel):
    prompt_tokens: int
    completion_tokens: int
    total_tokens: int

    def to_usage(self) -> Usage:
        return Usage(
            prompt_tokens=self.prompt_tokens,
            completion_tokens=self.completion_tokens,
            total_tokens=self.total_tokens,
        )


# ---- 非流式 ----


class WireMessage(_WireModel):
    role: str = "assistant"
    content: Optional[str] = None


class WireChoice(_WireModel):
    message: WireMessage
    finish_reason: Optional[str] = None


class ChatCompletionV1(_WireModel):
    """非流式响应体：{id, model, usage, choices:[{message}]}。"""

    id: str
    model: str
    usage: WireUsage
    choices: List[WireChoice] = Field(min_length=1)

    def to_envelope(self, raw: Optional[dict] = None) -> ResponseEnvelope:
        msg = self.choices[0].message
        # 工具调用等场景下 content 可能为 null，按空串处理
        return ResponseEnvelope(
            id=self.id,
            model=self.model,
            usage=self.usage.to_usage(),
            message=Message(role="assistant", content=msg.content or ""),
            raw=raw,
        )


# ---- 流式 ----


class WireDelta(_WireModel):
    role: Optional[str] = None
    content: Optional[str] = None


class WireStreamChoice(_WireModel):
    delta: WireDelta = Field(default_factory=WireDelta)
    finish_reason: Optional[str] = None


class StreamChunkV1(_WireModel):
    """单帧流式 payload：{choices:[{delta:{content?}, finish_reason?}], usage?}。"""

    choices: List[WireStreamChoice] = Field(default_factory=list)
    usage: Optional[WireUsage] = None


ChatCompletion = ChatCompletionV1
StreamChunk = StreamChunkV1
