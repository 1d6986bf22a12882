"""Transport 抽象接口与 send() 的返回类型。

上层（ChatSession / 批量任务）不直接依赖 httpx，而是依赖此协议：

- send(envelope) 发起一次 chat/completions 请求；
- 非流式返回 CompletedResponse（已解析完毕的 ResponseEnvelope）；
- 流式返回 StreamingResponse（惰性的 StreamFragment 序列）。

两种结果走同一个入口，调用方按类型分支即可。
"""

from typing import Callable, Iterator, List, Optional, Protocol, Union

import httpx

from chat_core.domain.exceptions import NetworkError, StreamConsumedError
from chat_core.domain.models import RequestEnvelope, ResponseEnvelope, StreamFragment, Usage
from chat_core.streaming import iter_fragments


class CompletedResponse:
    """非流式调用结果。"""

    is_stream = False

    def __init__(self, envelope: ResponseEnvelope):
        self.envelope = envelope

    @property
    def text(self) -> str:
        return self.envelope.message.content


class StreamingResponse:
    """流式调用结果：只能从头完整读取一次，不能中途恢复。

    迭代结束、出错或调用 close() 时关闭底层 HTTP 响应。
    读取过程中的网络错误转换为 NetworkError。
    """

    is_stream = True

    def __init__(self, response: httpx.Response):
        self._response = response
        self._started = False
        self._closed = False
        self.finish_reason: Optional[str] = None
        self.usage: Optional[Usage] = None

    def __iter__(self) -> Iterator[StreamFragment]:
        if self._started:
            raise StreamConsumedError()
        self._started = True
        return self._iterate()

    def _iterate(self) -> Iterator[StreamFragment]:
        try:
            for fragment in iter_fragments(self._response.iter_bytes()):
                if fragment.finish_reason:
                    self.finish_reason = fragment.finish_reason
                if fragment.usage:
                    self.usage = fragment.usage
                yield fragment
        except httpx.RequestError as e:
            raise NetworkError(message=str(e)) from e
        finally:
            self.close()

    def collect(self, on_text: Optional[Callable[[str], None]] = None) -> str:
        """读完整个流并返回拼接后的文本；on_text 会收到每个增量。"""

        parts: List[str] = []
        for fragment in self:
            if fragment.text:
                parts.append(fragment.text)
                if on_text is not None:
                    on_text(fragment.text)
        return "".join(parts)

    def close(self) -> None:
        if not self._closed:
            self._closed = True
            self._response.close()

    def __enter__(self) -> "StreamingResponse":
        return self

    def __exit__(self, *exc) -> bool:
        self.close()
        return False


SendResult = Union[CompletedResponse, StreamingResponse]


class ChatTransport(Protocol):
    """chat/completions 传输层协议。

    实现者需要提供：
    - name: Provider 名称，用于日志。
    - send(envelope): 执行一次请求（受 RateLimiter 约束，不自动重试）。
    """

    name: str

    def send(self, envelope: RequestEnvelope) -> SendResult:
        ...
