"""
Relay error taxonomy.

Only InvalidRequest reaches the client as an HTTP status. Backend failures
become a single `error` SSE frame; everything else is absorbed by the relay.
"""


class RelayError(Exception):
    def __init__(self, message: str, http_status: int = 500):
        self.message = message
        self.http_status = http_status
        super().__init__(message)


class InvalidRequest(RelayError):
    """Malformed inbound request, answered with HTTP 400 before streaming."""

    def __init__(self, message: str = "Messages array is required"):
        super().__init__(message, http_status=400)


class BackendUnreachable(RelayError):
    """Connection to the backend failed or broke mid-stream."""


class BackendHTTPError(RelayError):
    """Backend answered with a non-success status."""

    def __init__(self, status_code: int):
        super().__init__(f"HTTP error! status: {status_code}")
        self.status_code = status_code


class MalformedBackendChunk(RelayError):
    """A `data: ` line whose payload is not valid JSON."""

    def __init__(self, line: str):
        super().__init__("Malformed backend chunk")
        self.line = line


class ClientDisconnected(RelayError):
    """The client went away; the backend call must be cancelled silently."""

    def __init__(self, message: str = "Client disconnected"):
        super().__init__(message)
