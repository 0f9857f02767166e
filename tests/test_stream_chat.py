import io

import stream_chat


def test_iter_frames_groups_event_and_data():
    lines = [
        "event: token",
        'data: {"content":"Hel"}',
        "",
        "event: end",
        "data: Stream completed",
        "",
    ]
    assert list(stream_chat.iter_frames(iter(lines))) == [
        ("token", '{"content":"Hel"}'),
        ("end", "Stream completed"),
    ]


class FakeResponse:
    def __init__(self, status_code, lines=(), body=None):
        self.status_code = status_code
        self._lines = list(lines)
        self._body = body
        self.encoding = None

    def __enter__(self):
        return self

    def __exit__(self, *a):
        return False

    def json(self):
        return self._body

    def raise_for_status(self):
        pass

    def iter_lines(self, chunk_size=None, decode_unicode=False):
        yield from self._lines


def test_stream_chat_prints_tokens(monkeypatch):
    calls = []
    lines = [
        "event: token",
        'data: {"content":"Hel"}',
        "",
        "event: token",
        'data: {"content":"lo"}',
        "",
        "event: end",
        "data: Stream completed",
        "",
    ]

    def fake_post(url, **kw):
        calls.append((url, kw))
        return FakeResponse(200, lines)

    monkeypatch.setattr(stream_chat.requests, "post", fake_post)
    out = io.StringIO()

    rc = stream_chat.stream_chat("http://relay", [{"role": "user", "content": "hi"}], endpoint="http://b", out=out)

    assert rc == 0
    assert out.getvalue() == "Hello\n"
    url, kw = calls[0]
    assert url == "http://relay/api/stream"
    assert kw["json"] == {"messages": [{"role": "user", "content": "hi"}], "endpoint": "http://b"}


def test_stream_chat_error_frame_is_failure(monkeypatch):
    lines = ["event: error", 'data: {"error":"Failed to connect to LLM server"}', ""]
    monkeypatch.setattr(stream_chat.requests, "post", lambda url, **kw: FakeResponse(200, lines))
    assert stream_chat.stream_chat("http://relay", [{"role": "user", "content": "hi"}], out=io.StringIO()) == 1


def test_stream_chat_rejected_request(monkeypatch):
    resp = FakeResponse(400, body={"error": "Messages array is required"})
    monkeypatch.setattr(stream_chat.requests, "post", lambda url, **kw: resp)
    assert stream_chat.stream_chat("http://relay", [], out=io.StringIO()) == 2
