import itertools

from chatrelay.gateway.normalize import normalize_messages
from chatrelay.schemas import ConversationMessage, coerce_messages


def m(role, content="x"):
    return ConversationMessage(role=role, content=content)


def roles(msgs):
    return [x.role for x in msgs]


def test_empty_conversation():
    assert normalize_messages([]) == []


def test_single_user_message_passes_through():
    msgs = [m("user", "hi")]
    assert normalize_messages(msgs) == msgs


def test_system_moved_first_and_extras_dropped():
    msgs = [m("user", "a"), m("system", "first"), m("assistant", "b"), m("system", "second")]
    out = normalize_messages(msgs)
    assert roles(out) == ["system", "user", "assistant"]
    assert out[0].content == "first"


def test_consecutive_users_get_empty_assistant_between():
    out = normalize_messages([m("user", "a"), m("user", "b")])
    assert [(x.role, x.content) for x in out] == [("user", "a"), ("assistant", ""), ("user", "b")]


def test_consecutive_assistants_get_empty_user_between():
    out = normalize_messages([m("assistant", "a"), m("assistant", "b")])
    assert [(x.role, x.content) for x in out] == [("assistant", "a"), ("user", ""), ("assistant", "b")]


def test_unknown_roles_are_dropped():
    out = normalize_messages([m("user", "a"), m("tool", "t"), m("assistant", "b")])
    assert roles(out) == ["user", "assistant"]


def test_dropped_role_does_not_reset_alternation():
    out = normalize_messages([m("user", "a"), m("tool", "t"), m("user", "b")])
    assert roles(out) == ["user", "assistant", "user"]


def test_idempotent_on_normalized_input():
    msgs = [m("system"), m("user"), m("assistant"), m("user")]
    once = normalize_messages(msgs)
    assert once == msgs
    assert normalize_messages(once) == once


def test_alternation_and_single_system_for_all_short_inputs():
    for n in range(0, 6):
        for combo in itertools.product(["system", "user", "assistant", "other"], repeat=n):
            out = normalize_messages([m(r) for r in combo])
            body = [x for x in out if x.role != "system"]

            for a, b in zip(body, body[1:]):
                assert a.role != b.role, combo

            sys_count = roles(out).count("system")
            if "system" in combo:
                assert sys_count == 1
                assert out[0].role == "system"
            else:
                assert sys_count == 0

            # normalizing twice changes nothing
            assert normalize_messages(out) == out


def test_coerce_messages_skips_unusable_entries():
    raw = [
        {"role": "user", "content": "hi"},
        "not an object",
        {"content": "no role"},
        {"role": 3, "content": "numeric role"},
        {"role": "assistant"},
    ]
    out = coerce_messages(raw)
    assert [(x.role, x.content) for x in out] == [("user", "hi"), ("assistant", "")]


def test_coerce_messages_turns_content_into_text():
    raw = [
        {"role": "user", "content": None},
        {"role": "user", "content": ["x", {"type": "text", "text": "y"}, {"type": "image_url"}]},
        {"role": "assistant", "content": 5},
        {"role": "user", "content": {"k": "v"}},
    ]
    out = coerce_messages(raw)
    assert [(x.role, x.content) for x in out] == [
        ("user", ""),
        ("user", "xy"),
        ("assistant", "5"),
        ("user", '{"k": "v"}'),
    ]
