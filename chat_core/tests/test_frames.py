from chat_core.streaming import iter_fragments
from chat_core.streaming.frames import FrameAssembler


STREAM = (
    b'data: {"choices": [{"index": 0, "delta": {"role": "assistant", "content": "Hel"}}]}\n\n'
    b": OPENROUTER PROCESSING\n\n"
    b'data: {"choices": [{"index": 0, "delta": {"content": "lo, "}}]}\n\n'
    b'data: {"choices": [{"index": 0, "delta": {}}]}\n\n'
    b'data: {"choices": [{"index": 0, "delta": {"content": "w\xc3\xb6rld"}, "finish_reason": "stop"}]}\n\n'
    b"data: [DONE]\n\n"
)
EXPECTED = "Hello, wörld"


def _text(chunks):
    return "".join(f.text for f in iter_fragments(chunks) if f.text)


def test_unsplit_stream():
    assert _text([STREAM]) == EXPECTED


def test_every_two_way_split():
    for i in range(len(STREAM) + 1):
        assert _text([STREAM[:i], STREAM[i:]]) == EXPECTED, i


def test_splits_around_each_delimiter():
    positions = []
    start = 0
    while True:
        pos = STREAM.find(b"\n\n", start)
        if pos < 0:
            break
        positions.append(pos)
        start = pos + 1
    assert positions
    for pos in positions:
        for offset in (-1, 0, 1, 2):
            cut = pos + offset
            for second in (cut + 1, cut + 3):
                chunks = [STREAM[:cut], STREAM[cut:second], STREAM[second:]]
                assert _text(chunks) == EXPECTED, (cut, second)


def test_byte_by_byte():
    chunks = [STREAM[i:i + 1] for i in range(len(STREAM))]
    assert _text(chunks) == EXPECTED


def test_feed_buffers_partial_frame():
    fa = FrameAssembler()
    assert fa.feed(b"data: one\n") == []
    assert fa.pending == b"data: one\n"
    assert fa.feed(b"\ndata: tw") == ["data: one"]
    assert fa.feed(b"o\n\n") == ["data: two"]
    assert fa.pending == b""
    assert fa.flush() == []


def test_trailing_frame_without_delimiter_is_emitted():
    fa = FrameAssembler()
    frames = list(fa.frames([b"data: a\n\n", b'data: {"x": 1}']))
    assert frames == ["data: a", 'data: {"x": 1}']


def test_trailing_blank_remainder_is_tolerated():
    frames = list(FrameAssembler().frames([b"data: a\n\n\n"]))
    assert frames == ["data: a", "\n"]
    fragments = list(iter_fragments([b'data: {"choices": [{"delta": {"content": "a"}}]}\n\n\n']))
    assert [f.text for f in fragments] == ["a", None]


def test_crlf_delimiter_split_across_chunks():
    frames = list(FrameAssembler().frames([b"data: x\r\n\r", b"\ndata: y\r\n\r\n"]))
    assert frames == ["data: x", "data: y"]


def test_empty_chunks_are_ignored():
    fa = FrameAssembler()
    assert fa.feed(b"") == []
    assert list(fa.frames([b"", b"data: z\n\n", b""])) == ["data: z"]


def test_frames_after_done_are_not_decoded():
    stream = (
        b'data: {"choices": [{"delta": {"content": "a"}}]}\n\n'
        b"data: [DONE]\n\n"
        b'data: {"choices": [{"delta": {"content": "late"}}]}\n\n'
    )
    fragments = list(iter_fragments([stream]))
    assert fragments[-1].is_final
    assert _text([stream]) == "a"
