"""交互式（顺序）对话会话。

一个 ChatSession 持有一份 ConversationState，每一轮：

1. 以“历史快照 + 本轮用户消息”构造 RequestEnvelope；
2. 交给 Transport 发送（Transport 内部受 RateLimiter 约束）；
3. 非流式直接取回复，流式则逐帧读取并把增量推给 on_text；
4. 成功后把用户消息和完整的助手回复依次追加到历史。

每轮的上下文依赖上一轮的回复，所以同一会话同一时刻只允许一个请求在途：
用 capacity=1 的 AdmissionGate 保护整轮过程，后来的调用方排队等待，
或在 blocking=False 时直接得到 SessionBusyError。
"""

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional
from uuid import uuid4

from chat_core.concurrency.admission import AdmissionGate
from chat_core.config.settings import settings
from chat_core.domain.conversation import ConversationState
from chat_core.domain.exceptions import SessionBusyError, ValidationError
from chat_core.domain.models import Message, RequestEnvelope, ResponseEnvelope, Usage
from chat_core.infrastructure.logging.logger import logger
from chat_core.providers.base import ChatTransport, StreamingResponse


@dataclass
class SessionConfig:
    model: str
    stream: bool = True
    system_prompt: Optional[str] = None

    @classmethod
    def from_settings(cls, cfg=settings) -> "SessionConfig":
        return cls(model=cfg.default_model, stream=cfg.stream, system_prompt=cfg.system_prompt)


@dataclass
class TurnResult:
    """一轮对话的结果。response 仅在非流式模式下存在。"""

    user_message: Message
    assistant_message: Message
    usage: Optional[Usage] = None
    response: Optional[ResponseEnvelope] = None
    elapsed_seconds: float = 0.0


class ChatSession:
    def __init__(
        self,
        transport: ChatTransport,
        config: Optional[SessionConfig] = None,
        state: Optional[ConversationState] = None,
    ):
        self._transport = transport
        self._config = config or SessionConfig.from_settings()
        self._state = state if state is not None else ConversationState()
        self._gate = AdmissionGate(capacity=1)
        self._session_id = f"s-{uuid4().hex}"
        if self._config.system_prompt and len(self._state) == 0:
            self._state.append(Message(role="system", content=self._config.system_prompt))

    @property
    def state(self) -> ConversationState:
        return self._state

    @property
    def config(self) -> SessionConfig:
        return self._config

    @property
    def busy(self) -> bool:
        return self._gate.busy

    def ask(
        self,
        prompt: str,
        *,
        on_text: Optional[Callable[[str], None]] = None,
        blocking: bool = True,
    ) -> TurnResult:
        """发送一轮用户输入并等待完整回复。

        Args:
            prompt: 用户输入
            on_text: 回复文本增量回调（流式时逐段调用，非流式时调用一次）
            blocking: 已有请求在途时是否排队等待

        Returns:
            TurnResult

        Raises:
            SessionBusyError: blocking=False 且已有请求在途
            各种 domain.exceptions 中定义的异常（历史保持不变）
        """
        if not prompt or not prompt.strip():
            raise ValidationError(code="EMPTY_PROMPT", message="prompt must not be empty")
        if not self._gate.acquire(blocking=blocking):
            raise SessionBusyError()
        try:
            return self._run_turn(prompt, on_text)
        finally:
            self._gate.release()

    def _run_turn(self, prompt: str, on_text: Optional[Callable[[str], None]]) -> TurnResult:
        start_time = time.time()
        log_ctx: Dict[str, Any] = {
            "trace_id": f"tr-{uuid4().hex}",
            "session_id": self._session_id,
        }
        user_msg = Message(role="user", content=prompt)
        envelope = RequestEnvelope(
            model=self._config.model,
            messages=self._state.snapshot() + (user_msg,),
            stream=self._config.stream,
        )

        result = self._transport.send(envelope)
        response: Optional[ResponseEnvelope] = None
        if isinstance(result, StreamingResponse):
            text = result.collect(on_text)
            usage = result.usage
        else:
            response = result.envelope
            text = response.message.content
            usage = response.usage
            if on_text is not None and text:
                on_text(text)

        assistant_msg = Message(role="assistant", content=text)
        self._state.append(user_msg)
        self._state.append(assistant_msg)

        elapsed = time.time() - start_time
        fields: Dict[str, Any] = {"elapsed_seconds": round(elapsed, 2), "history_length": len(self._state)}
        if usage:
            fields["total_tokens"] = usage.total_tokens
        self._log(logging.INFO, "Completed chat turn", log_ctx, **fields)
        return TurnResult(
            user_message=user_msg,
            assistant_message=assistant_msg,
            usage=usage,
            response=response,
            elapsed_seconds=elapsed,
        )

    @staticmethod
    def _log(level: int, message: str, log_ctx: Dict[str, Any], **fields: Any) -> None:
        payload = dict(log_ctx)
        payload.update(fields)
        logger.log(level, message, extra={"extra": payload})
