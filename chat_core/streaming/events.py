"""单帧 SSE 事件解码。"""

import logging
from typing import Iterable, Iterator, List, Optional

from pydantic import ValidationError as SchemaError

from chat_core.domain.models import FINAL_FRAGMENT, NOOP_FRAGMENT, StreamFragment
from chat_core.domain.wire import StreamChunk
from chat_core.infrastructure.logging.logger import log_event


DATA_FIELD = "data:"
DONE_TOKEN = "[DONE]"


class EventDecoder:
    """把一帧解码为 StreamFragment。

    - "data: [DONE]" -> is_final=True, text=None
    - "data: {...}"  -> 读取 choices[0].delta.content，缺失时 text=None
    - 无 data 行、注释帧、JSON/结构不符的帧 -> no-op 片段

    单帧解析失败只记 DEBUG 日志，不抛异常：交互式客户端宁可丢掉
    一帧，也不应让一个已经成功的流中途中断。
    """

    def decode(self, frame: str) -> StreamFragment:
        payload = self._extract_data(frame)
        if payload is None:
            return NOOP_FRAGMENT
        if payload.strip() == DONE_TOKEN:
            return FINAL_FRAGMENT
        try:
            chunk = StreamChunk.model_validate_json(payload)
        except SchemaError as exc:
            log_event(
                logging.DEBUG,
                "Skipped undecodable stream frame",
                frame_preview=payload[:120],
                error_count=exc.error_count(),
            )
            return NOOP_FRAGMENT

        usage = chunk.usage.to_usage() if chunk.usage else None
        if not chunk.choices:
            return StreamFragment(usage=usage) if usage else NOOP_FRAGMENT
        choice = chunk.choices[0]
        return StreamFragment(
            text=choice.delta.content,
            finish_reason=choice.finish_reason,
            usage=usage,
        )

    def decode_all(self, frames: Iterable[str]) -> Iterator[StreamFragment]:
        """逐帧解码，遇到结束标记后停止。"""

        for frame in frames:
            fragment = self.decode(frame)
            yield fragment
            if fragment.is_final:
                return

    @staticmethod
    def _extract_data(frame: str) -> Optional[str]:
        lines: List[str] = []
        for line in frame.split("\n"):
            line = line.rstrip("\r")
            if not line.startswith(DATA_FIELD):
                # 空行、":" 开头的注释（OpenRouter 的 keep-alive）及 event:/id: 等字段
                continue
            value = line[len(DATA_FIELD):]
            if value.startswith(" "):
                value = value[1:]
            lines.append(value)
        if not lines:
            return None
        return "\n".join(lines)
