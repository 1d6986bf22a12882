import dataclasses

import pytest

from chat_core.domain.conversation import ConversationState
from chat_core.domain.models import Message, RequestEnvelope


def test_append_preserves_order():
    state = ConversationState()
    state.append(Message(role="user", content="a"))
    state.append(Message(role="assistant", content="b"))
    assert [m.content for m in state] == ["a", "b"]
    assert len(state) == 2
    assert state.last().role == "assistant"


def test_snapshot_isolation():
    state = ConversationState()
    state.append(Message(role="user", content="hi"))
    snap = state.snapshot()
    state.append(Message(role="assistant", content="hello"))
    assert len(snap) == 1
    assert snap[0].content == "hi"
    assert len(state.snapshot()) == 2


def test_envelope_holds_value_copy():
    state = ConversationState([Message(role="user", content="q")])
    env = RequestEnvelope(model="m", messages=state.snapshot(), stream=False)
    state.append(Message(role="assistant", content="a"))
    assert len(env.messages) == 1
    assert env.to_payload() == {
        "model": "m",
        "messages": [{"role": "user", "content": "q"}],
        "stream": False,
    }


def test_envelope_freezes_lists():
    msgs = [Message(role="user", content="q")]
    env = RequestEnvelope(model="m", messages=msgs)
    msgs.append(Message(role="user", content="later"))
    assert isinstance(env.messages, tuple)
    assert len(env.messages) == 1


def test_message_is_immutable():
    msg = Message(role="user", content="hi")
    with pytest.raises(dataclasses.FrozenInstanceError):
        msg.content = "changed"


def test_empty_state():
    state = ConversationState()
    assert state.last() is None
    assert state.snapshot() == ()
