from chatrelay.llm.events import RelayEvent


def test_token_frame():
    assert RelayEvent.token("Hel").to_frame() == 'event: token\ndata: {"content":"Hel"}\n\n'


def test_token_frame_keeps_non_ascii_and_escapes_newlines():
    assert RelayEvent.token("é\n").to_frame() == 'event: token\ndata: {"content":"é\\n"}\n\n'


def test_end_frame():
    assert RelayEvent.end().to_frame() == "event: end\ndata: Stream completed\n\n"


def test_error_frame():
    frame = RelayEvent.error("Failed to connect to LLM server").to_frame()
    assert frame == 'event: error\ndata: {"error":"Failed to connect to LLM server"}\n\n'


def test_terminal_kinds():
    assert not RelayEvent.token("x").terminal
    assert RelayEvent.end().terminal
    assert RelayEvent.error("x").terminal
