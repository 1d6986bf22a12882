"""流式响应解析：字节 chunk -> 帧（frames）-> 增量片段（events）。"""

from typing import Iterable, Iterator

from chat_core.domain.models import StreamFragment
from chat_core.streaming.events import EventDecoder
from chat_core.streaming.frames import FrameAssembler, iter_frames


def iter_fragments(chunks: Iterable[bytes]) -> Iterator[StreamFragment]:
    """把原始字节 chunk 序列解码为 StreamFragment 序列。"""

    return EventDecoder().decode_all(FrameAssembler().frames(chunks))


__all__ = ["EventDecoder", "FrameAssembler", "iter_frames", "iter_fragments"]
