import argparse
import json
import sys
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple

import requests


def read_jsonl(path: Path) -> List[Dict[str, Any]]:
    messages: List[Dict[str, Any]] = []
    for line in path.read_text(encoding="utf-8-sig").splitlines():
        line = line.strip()
        if not line:
            continue
        messages.append(json.loads(line))
    return messages


def iter_frames(lines: Iterator[str]) -> Iterator[Tuple[str, str]]:
    """Groups SSE lines into (event, data) pairs; a blank line ends a frame."""
    event, data = "message", ""
    for line in lines:
        if line == "":
            if data:
                yield event, data
            event, data = "message", ""
        elif line.startswith("event: "):
            event = line[len("event: "):]
        elif line.startswith("data: "):
            data += line[len("data: "):]
    if data:
        yield event, data


def stream_chat(
    base_url: str,
    messages: List[Dict[str, Any]],
    endpoint: Optional[str] = None,
    verify: bool = True,
    out=sys.stdout,
) -> int:
    body: Dict[str, Any] = {"messages": messages}
    if endpoint:
        body["endpoint"] = endpoint

    with requests.post(f"{base_url}/api/stream", json=body, stream=True, verify=verify, timeout=(10, None)) as r:
        if r.status_code == 400:
            print(f"Rejected: {r.json().get('error')}", file=sys.stderr)
            return 2
        r.raise_for_status()
        # text/event-stream carries no charset; requests would assume latin-1
        r.encoding = "utf-8"

        for event, data in iter_frames(r.iter_lines(chunk_size=None, decode_unicode=True)):
            if event == "token":
                out.write(json.loads(data).get("content", ""))
                out.flush()
            elif event == "end":
                out.write("\n")
                return 0
            elif event == "error":
                print(f"\n❌ {json.loads(data).get('error')}", file=sys.stderr)
                return 1

    # connection closed without a terminal frame
    return 1


def main() -> int:
    ap = argparse.ArgumentParser()
    ap.add_argument("--base-url", default="https://localhost:3000")
    ap.add_argument("--endpoint", default="", help="backend to use (must be one of /api/endpoints)")
    ap.add_argument("--message", action="append", help="user message; repeat for several turns")
    ap.add_argument("--system", default="")
    ap.add_argument("--jsonl", default="", help="conversation file, one {role, content} object per line")
    ap.add_argument("--insecure", action="store_true", help="accept the relay's self-signed certificate")
    ap.add_argument("--list-endpoints", action="store_true")

    args = ap.parse_args()
    verify = not args.insecure

    if args.list_endpoints:
        r = requests.get(f"{args.base_url}/api/endpoints", timeout=10, verify=verify)
        r.raise_for_status()
        for i, ep in enumerate(r.json().get("endpoints", []), start=1):
            print(f"{i}. {ep}{' (default)' if i == 1 else ''}")
        return 0

    messages: List[Dict[str, Any]] = []
    if args.system:
        messages.append({"role": "system", "content": args.system})
    if args.jsonl:
        path = Path(args.jsonl)
        if not path.exists():
            print(f"File not found: {path}", file=sys.stderr)
            return 2
        messages.extend(read_jsonl(path))
    for m in args.message or []:
        messages.append({"role": "user", "content": m})

    return stream_chat(args.base_url, messages, endpoint=args.endpoint or None, verify=verify)


if __name__ == "__main__":
    raise SystemExit(main())
