from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict, Literal

EventKind = Literal["token", "end", "error"]

END_PAYLOAD = "Stream completed"


def _compact(obj: Dict[str, Any]) -> str:
    return json.dumps(obj, ensure_ascii=False, separators=(",", ":"))


@dataclass(frozen=True)
class RelayEvent:
    """One unit of relay output; each becomes exactly one SSE frame."""

    kind: EventKind
    text: str = ""

    @classmethod
    def token(cls, text: str) -> "RelayEvent":
        return cls("token", text)

    @classmethod
    def end(cls) -> "RelayEvent":
        return cls("end")

    @classmethod
    def error(cls, message: str) -> "RelayEvent":
        return cls("error", message)

    @property
    def terminal(self) -> bool:
        return self.kind != "token"

    def to_frame(self) -> str:
        if self.kind == "token":
            payload = _compact({"content": self.text})
        elif self.kind == "end":
            payload = END_PAYLOAD
        else:
            payload = _compact({"error": self.text})
        return f"event: {self.kind}\ndata: {payload}\n\n"
