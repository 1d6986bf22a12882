"""把分块到达的字节流还原为完整的 SSE 帧。

服务端以 "data: ...\\n\\n" 的形式推送事件，但网络读取的分块边界是任意的：
一个帧可能被拆到多个 chunk 中，分隔符 "\\n\\n" 本身也可能横跨两个 chunk，
逐行读取的朴素实现在这种情况下会出错。FrameAssembler 的做法是：

1. 把新 chunk 追加到缓冲区末尾，统一换行符为 \\n；
2. 按空行切分，除最后一段外都是完整帧；
3. 最后一段（可能是半个帧）留在缓冲区，与下一个 chunk 拼接后重新切分；
4. 流结束时，缓冲区中剩余的非空内容作为最后一帧输出。

帧只在完整后才做 UTF-8 解码，因此被截断的多字节字符也能正确还原。
"""

from typing import Iterable, Iterator, List


FRAME_DELIMITER = b"\n\n"


class FrameAssembler:
    """增量帧组装器。

    既可以通过 feed()/flush() 手动推送，也可以用 frames() 包装一个
    字节 chunk 的可迭代对象，得到惰性的帧序列。
    """

    def __init__(self, encoding: str = "utf-8"):
        self._encoding = encoding
        self._buffer = b""

    def feed(self, chunk: bytes) -> List[str]:
        """追加一个 chunk，返回由此变得完整的帧（可能为空列表）。"""

        if not chunk:
            return []
        buf = self._buffer + chunk
        # 末尾单独的 \r 可能是被拆开的 \r\n，留到下一次再统一
        if buf.endswith(b"\r"):
            head, tail = buf[:-1], b"\r"
        else:
            head, tail = buf, b""
        head = head.replace(b"\r\n", b"\n")
        parts = head.split(FRAME_DELIMITER)
        self._buffer = parts.pop() + tail
        return [self._decode(p) for p in parts]

    def flush(self) -> List[str]:
        """流结束：缓冲区非空时作为最后一帧返回。"""

        rest, self._buffer = self._buffer, b""
        if not rest:
            return []
        return [self._decode(rest.replace(b"\r\n", b"\n"))]

    @property
    def pending(self) -> bytes:
        return self._buffer

    def frames(self, chunks: Iterable[bytes]) -> Iterator[str]:
        for chunk in chunks:
            yield from self.feed(chunk)
        yield from self.flush()

    def _decode(self, raw: bytes) -> str:
        return raw.decode(self._encoding, errors="replace")


def iter_frames(chunks: Iterable[bytes]) -> Iterator[str]:
    """便捷函数：用新的 FrameAssembler 把 chunk 序列转为帧序列。"""

    return FrameAssembler().frames(chunks)
