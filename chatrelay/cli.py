import argparse
import logging
from typing import List, Optional

import uvicorn

from chatrelay.config import load_config
from chatrelay.main import create_app
from chatrelay.tls import generate_self_signed, write_credentials
from chatrelay.utils.log import setup_logging

logger = logging.getLogger("chatrelay.cli")


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="chatrelay", description="Stream chat completions from llama.cpp-style backends as SSE")
    ap.add_argument("endpoints", nargs="*", help="backend base URLs (http:// or https://); first is the default")
    ap.add_argument("--config", default=None, help="YAML config file")
    ap.add_argument("--host", default=None)
    ap.add_argument("--port", type=int, default=None)
    ap.add_argument("--no-tls", action="store_true", help="serve plain HTTP")
    return ap


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    cfg = load_config(path=args.config, endpoints=args.endpoints or None)
    setup_logging(cfg.log_level, json_format=cfg.log_json)

    host = args.host or cfg.host
    port = args.port or cfg.port
    use_tls = cfg.tls and not args.no_tls

    ssl_kwargs = {}
    if use_tls:
        key_pem, cert_pem = generate_self_signed()
        keyfile, certfile = write_credentials(key_pem, cert_pem)
        ssl_kwargs = {"ssl_keyfile": keyfile, "ssl_certfile": certfile}

    scheme = "https" if use_tls else "http"
    logger.info("%s server running on %s://%s:%d", scheme.upper(), scheme, host, port)
    logger.info("Available llama.cpp endpoints:")
    for i, ep in enumerate(cfg.endpoints, start=1):
        logger.info("  %d. %s%s", i, ep, " (default)" if i == 1 else "")
    if use_tls:
        logger.info("Note: you may need to accept the self-signed certificate in your browser.")

    uvicorn.run(create_app(cfg), host=host, port=port, log_level=cfg.log_level.lower(), **ssl_kwargs)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
