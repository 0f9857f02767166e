import json
from typing import Any, List

from pydantic import BaseModel, ValidationError, field_validator


class ConversationMessage(BaseModel):
    # role stays a plain string here; unknown roles are dropped by the normalizer
    role: str
    content: str = ""

    model_config = {"frozen": True}

    @field_validator("content", mode="before")
    @classmethod
    def content_as_text(cls, v: Any) -> str:
        """
        Null content becomes "", OpenAI-style part lists are joined on their
        text parts, any other JSON value is kept as its JSON text.
        """
        if v is None:
            return ""
        if isinstance(v, str):
            return v
        if isinstance(v, list):
            parts = []
            for part in v:
                if isinstance(part, str):
                    parts.append(part)
                elif isinstance(part, dict) and isinstance(part.get("text"), str):
                    parts.append(part["text"])
            return "".join(parts)
        return json.dumps(v, ensure_ascii=False)


def coerce_messages(raw: List[Any]) -> List[ConversationMessage]:
    """
    Builds ConversationMessage objects from a raw JSON array.
    Entries that are not objects with a string role are skipped.
    """
    out: List[ConversationMessage] = []
    for item in raw:
        if not isinstance(item, dict):
            continue
        try:
            out.append(ConversationMessage.model_validate(item))
        except ValidationError:
            continue
    return out
