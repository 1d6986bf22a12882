"""测试交互式 ChatSession。"""

import threading

import httpx
import pytest

from chat_core.agents.chat_session import ChatSession, SessionConfig
from chat_core.domain.exceptions import ApiRejected, SessionBusyError, ValidationError
from chat_core.domain.models import Message, ResponseEnvelope, Usage
from chat_core.providers.base import CompletedResponse, StreamingResponse


def completed(text):
    return CompletedResponse(
        ResponseEnvelope(
            id="gen-1",
            model="fake-model",
            usage=Usage(prompt_tokens=1, completion_tokens=1, total_tokens=2),
            message=Message(role="assistant", content=text),
        )
    )


def streamed(*pieces):
    body = b"".join(
        b'data: {"choices": [{"delta": {"content": "%s"}}]}\n\n' % p.encode() for p in pieces
    ) + b"data: [DONE]\n\n"
    # 每 7 字节切一块，模拟任意的网络分块
    chunks = [body[i:i + 7] for i in range(0, len(body), 7)]
    return StreamingResponse(httpx.Response(200, content=iter(chunks)))


class FakeTransport:
    """模拟的 Transport，按顺序返回预置结果。"""

    name = "fake"

    def __init__(self, *results):
        self._results = list(results)
        self.envelopes = []

    def send(self, envelope):
        self.envelopes.append(envelope)
        result = self._results.pop(0)
        if isinstance(result, Exception):
            raise result
        return result


def test_two_sequential_turns():
    transport = FakeTransport(completed("r1"), completed("r2"))
    session = ChatSession(transport, SessionConfig(model="fake-model", stream=False))

    first = session.ask("Hello")
    second = session.ask("How are you?")

    assert first.assistant_message.content == "r1"
    assert second.usage.total_tokens == 2
    assert [(m.role, m.content) for m in session.state] == [
        ("user", "Hello"),
        ("assistant", "r1"),
        ("user", "How are you?"),
        ("assistant", "r2"),
    ]
    first_env, second_env = transport.envelopes
    assert [m.content for m in first_env.messages] == ["Hello"]
    assert [m.content for m in second_env.messages] == ["Hello", "r1", "How are you?"]
    assert first_env.model == "fake-model"
    assert first_env.stream is False


def test_streamed_turn_pushes_fragments():
    transport = FakeTransport(streamed("Hi", " there", "!"))
    session = ChatSession(transport, SessionConfig(model="m", stream=True))
    seen = []
    result = session.ask("Hello", on_text=seen.append)
    assert seen == ["Hi", " there", "!"]
    assert result.assistant_message.content == "Hi there!"
    assert result.response is None
    assert session.state.last().content == "Hi there!"
    assert transport.envelopes[0].stream is True


def test_non_stream_turn_calls_sink_once():
    session = ChatSession(FakeTransport(completed("whole")), SessionConfig(model="m", stream=False))
    seen = []
    session.ask("q", on_text=seen.append)
    assert seen == ["whole"]


def test_failed_turn_leaves_history_untouched():
    transport = FakeTransport(ApiRejected(status=429, body="rate limited"), completed("ok"))
    session = ChatSession(transport, SessionConfig(model="m", stream=False))
    with pytest.raises(ApiRejected):
        session.ask("first")
    assert len(session.state) == 0
    assert not session.busy

    session.ask("second")
    assert [m.content for m in session.state] == ["second", "ok"]
    assert [m.content for m in transport.envelopes[1].messages] == ["second"]


def test_system_prompt_leads_history():
    transport = FakeTransport(completed("ok"))
    session = ChatSession(transport, SessionConfig(model="m", stream=False, system_prompt="be brief"))
    session.ask("hi")
    roles = [m.role for m in transport.envelopes[0].messages]
    assert roles == ["system", "user"]
    assert len(session.state) == 3


def test_empty_prompt_rejected():
    session = ChatSession(FakeTransport(), SessionConfig(model="m"))
    with pytest.raises(ValidationError):
        session.ask("   ")


def test_second_caller_is_told_to_wait():
    started = threading.Event()
    proceed = threading.Event()

    class BlockingTransport(FakeTransport):
        def send(self, envelope):
            started.set()
            proceed.wait(2.0)
            return super().send(envelope)

    transport = BlockingTransport(completed("one"), completed("two"))
    session = ChatSession(transport, SessionConfig(model="m", stream=False))
    t = threading.Thread(target=session.ask, args=("first",))
    t.start()
    assert started.wait(2.0)
    assert session.busy
    with pytest.raises(SessionBusyError):
        session.ask("second", blocking=False)
    proceed.set()
    t.join()

    # 排队等待的调用能看到上一轮完整的历史
    session.ask("second")
    assert [m.content for m in transport.envelopes[1].messages] == ["first", "one", "second"]
