from __future__ import annotations

from typing import Iterable, List, Optional

from chatrelay.schemas import ConversationMessage

_OPPOSITE = {"user": "assistant", "assistant": "user"}


def normalize_messages(messages: Iterable[ConversationMessage]) -> List[ConversationMessage]:
    """
    Shape a conversation for backends that insist on strict turn order.

    - keeps only the first system message and moves it to the front
    - drops messages whose role is not system/user/assistant
    - inserts an empty message of the other role between two same-role turns
    """
    system: Optional[ConversationMessage] = None
    rest: List[ConversationMessage] = []

    for msg in messages:
        if msg.role == "system":
            if system is None:
                system = msg
            continue
        rest.append(msg)

    out: List[ConversationMessage] = []
    if system is not None:
        out.append(system)

    last_role: Optional[str] = None
    for msg in rest:
        if msg.role not in _OPPOSITE:
            continue
        if msg.role == last_role:
            out.append(ConversationMessage(role=_OPPOSITE[msg.role], content=""))
        out.append(msg)
        last_role = msg.role

    return out
