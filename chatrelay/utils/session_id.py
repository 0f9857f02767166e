import re
import uuid

MAX_SESSION_ID = 64


def new_session_id() -> str:
    """Short random id used to correlate the log lines of one relay session."""
    return uuid.uuid4().hex[:12]


def normalize_session_id(session_id: str) -> str:
    """
    Normalize a client supplied correlation id (X-Request-ID).

    - trims whitespace
    - lowercase
    - removes illegal characters
    - length limited
    Falls back to a fresh id when nothing usable is left.
    """

    if not session_id:
        return new_session_id()

    sid = session_id.strip().lower()

    # allow only safe chars
    sid = re.sub(r"[^a-z0-9_\-]", "", sid)

    # enforce max length
    sid = sid[:MAX_SESSION_ID]

    if not sid:
        sid = new_session_id()

    return sid
