import logging
from pathlib import Path
from typing import Optional

import httpx
from fastapi import FastAPI, Request
from fastapi.responses import HTMLResponse, JSONResponse
from fastapi.staticfiles import StaticFiles

from chatrelay.config import RelayConfig, load_config
from chatrelay.errors import InvalidRequest, RelayError
from chatrelay.gateway.normalize import normalize_messages
from chatrelay.llm.relay import StreamRelay, StreamSession
from chatrelay.router.dispatch import select_endpoint
from chatrelay.schemas import coerce_messages
from chatrelay.transport import RelayResponse
from chatrelay.ui.chat import chat_page
from chatrelay.utils.session_id import normalize_session_id

logger = logging.getLogger(__name__)


def create_app(
    config: Optional[RelayConfig] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    """App factory; outside the CLI run it with `uvicorn chatrelay.main:create_app --factory`."""
    cfg = config or load_config()
    relay = StreamRelay(
        connect_timeout_s=cfg.connect_timeout_s,
        read_timeout_s=cfg.read_timeout_s,
        transport=transport,
    )

    app = FastAPI(title="chatrelay", version="0.1.0")
    app.state.config = cfg
    app.state.relay = relay

    @app.exception_handler(RelayError)
    async def relay_error(request: Request, exc: RelayError):
        return JSONResponse(status_code=exc.http_status, content={"error": exc.message})

    # ---------------------------------------------------------
    # Health
    # ---------------------------------------------------------
    @app.get("/health")
    def health():
        return {"ok": True}

    # ---------------------------------------------------------
    # Backend discovery
    # ---------------------------------------------------------
    @app.get("/api/endpoints")
    def endpoints():
        return {"endpoints": list(cfg.endpoints)}

    # ---------------------------------------------------------
    # Streaming relay
    # ---------------------------------------------------------
    @app.post("/api/stream")
    async def stream(request: Request):
        try:
            payload = await request.json()
        except ValueError:
            raise InvalidRequest()

        if not isinstance(payload, dict):
            raise InvalidRequest()

        raw = payload.get("messages")
        if not isinstance(raw, list) or not raw:
            raise InvalidRequest()

        messages = coerce_messages(raw)
        if not messages:
            raise InvalidRequest()

        requested = payload.get("endpoint")
        endpoint = select_endpoint(cfg.endpoints, requested if isinstance(requested, str) else None)

        session = StreamSession(
            endpoint=endpoint,
            messages=normalize_messages(messages),
            session_id=normalize_session_id(request.headers.get("x-request-id", "")),
        )
        logger.info("session %s: using endpoint %s", session.session_id, endpoint)

        return RelayResponse(relay, session, headers={"X-Request-ID": session.session_id})

    # ---------------------------------------------------------
    # UI
    # ---------------------------------------------------------
    static_dir = Path(cfg.static_dir) if cfg.static_dir else None
    if static_dir is not None and (static_dir / "index.html").is_file():
        app.mount("/", StaticFiles(directory=str(static_dir), html=True), name="static")
    else:

        @app.get("/", response_class=HTMLResponse)
        def ui_home():
            return chat_page(cfg.endpoints)

    return app
