from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Dict, Iterable, Mapping, Optional, Sequence, Tuple

import yaml

DEFAULT_ENDPOINT = "http://127.0.0.1:9090"

# YAML file location (optional; env and CLI override it)
CONFIG_PATH_ENV = "RELAY_CONFIG"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class RelayConfig:
    endpoints: Tuple[str, ...] = (DEFAULT_ENDPOINT,)
    host: str = "0.0.0.0"
    port: int = 3000
    connect_timeout_s: float = 10.0
    # 0 disables the read timeout
    read_timeout_s: float = 300.0
    tls: bool = True
    static_dir: Optional[str] = None
    log_level: str = "INFO"
    log_json: bool = False

    @property
    def default_endpoint(self) -> str:
        return self.endpoints[0]


def parse_endpoints(values: Iterable[str]) -> Tuple[str, ...]:
    """
    Keep http(s) base URLs in the order given, without duplicates.
    Never returns an empty tuple.
    """
    out = []
    for v in values:
        v = str(v or "").strip()
        if not (v.startswith("http://") or v.startswith("https://")):
            continue
        if v not in out:
            out.append(v)
    return tuple(out) if out else (DEFAULT_ENDPOINT,)


def _as_bool(value: Any, default: bool) -> bool:
    if isinstance(value, bool):
        return value
    s = str(value).strip().lower()
    if s in _TRUE:
        return True
    if s in _FALSE:
        return False
    return default


def _load_yaml(path: Path) -> Dict[str, Any]:
    data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ValueError(f"config file {path} is not a mapping")
    return data


def _apply(cfg: RelayConfig, raw: Mapping[str, Any]) -> RelayConfig:
    updates: Dict[str, Any] = {}

    eps = raw.get("endpoints")
    if isinstance(eps, str):
        eps = eps.split(",")
    if eps:
        updates["endpoints"] = parse_endpoints(eps)

    if raw.get("host"):
        updates["host"] = str(raw["host"])
    if raw.get("port") not in (None, ""):
        updates["port"] = int(raw["port"])
    if raw.get("connect_timeout_s") not in (None, ""):
        updates["connect_timeout_s"] = float(raw["connect_timeout_s"])
    if raw.get("read_timeout_s") not in (None, ""):
        updates["read_timeout_s"] = float(raw["read_timeout_s"])
    if raw.get("tls") not in (None, ""):
        updates["tls"] = _as_bool(raw["tls"], cfg.tls)
    if raw.get("static_dir"):
        updates["static_dir"] = str(raw["static_dir"])
    if raw.get("log_level"):
        updates["log_level"] = str(raw["log_level"]).upper()
    if raw.get("log_json") not in (None, ""):
        updates["log_json"] = _as_bool(raw["log_json"], cfg.log_json)

    return replace(cfg, **updates)


def _from_env(env: Mapping[str, str]) -> Dict[str, Any]:
    return {
        "endpoints": env.get("RELAY_ENDPOINTS"),
        "host": env.get("HOST"),
        "port": env.get("PORT"),
        "connect_timeout_s": env.get("RELAY_CONNECT_TIMEOUT_S"),
        "read_timeout_s": env.get("RELAY_READ_TIMEOUT_S"),
        "tls": env.get("RELAY_TLS"),
        "static_dir": env.get("RELAY_STATIC_DIR"),
        "log_level": env.get("RELAY_LOG_LEVEL"),
        "log_json": env.get("RELAY_LOG_JSON"),
    }


def load_config(
    path: Optional[str] = None,
    endpoints: Optional[Sequence[str]] = None,
    env: Optional[Mapping[str, str]] = None,
) -> RelayConfig:
    """
    Defaults < YAML file < environment < explicit endpoint arguments.

    Endpoint arguments follow the command-line rule: if none of them is a
    valid http(s) URL the list falls back to the default endpoint.
    """
    env = os.environ if env is None else env
    cfg = RelayConfig()

    p = path or env.get(CONFIG_PATH_ENV)
    if p:
        cfg = _apply(cfg, _load_yaml(Path(p).expanduser()))

    cfg = _apply(cfg, _from_env(env))

    if endpoints:
        cfg = replace(cfg, endpoints=parse_endpoints(endpoints))

    return cfg
