#!/usr/bin/env python3
"""Manual execution endpoint: registers a key and answers invokes against a running bridge."""

from __future__ import annotations

import sys
import json
import asyncio
import argparse
from typing import Any
from urllib.parse import urlencode

import websockets


def parse_args() -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Fake execution endpoint for the /endpoint socket")
    p.add_argument("--server", default="127.0.0.1:8000", help="host:port or ws://host:port")
    p.add_argument("--secure", action="store_true", help="Use wss://")
    p.add_argument("--key", default="shiro", help="Endpoint key to register")
    p.add_argument("--reply", default=None, help="Fixed result for every invoke (default: echo the payload)")
    p.add_argument("--ready-message", action="store_true", help="Register with a ready message instead of ?key=")
    p.add_argument("--ignore-pings", action="store_true", help="Never answer liveness pings (to watch eviction)")
    return p.parse_args()


def build_url(server: str, secure: bool, key: str | None) -> str:
    server = (server or "").strip().rstrip("/")
    if not server.startswith(("ws://", "wss://")):
        server = f"{'wss' if secure else 'ws'}://{server}"
    url = f"{server}/endpoint"
    return f"{url}?{urlencode({'key': key})}" if key else url


def answer(payload: Any, reply: str | None) -> dict[str, Any]:
    if reply is not None:
        return {"result": reply, "error": None}
    return {"result": {"echo": payload}, "error": None}


async def run(args: argparse.Namespace) -> int:
    url = build_url(args.server, args.secure, None if args.ready_message else args.key)
    print(f"connecting to {url}")
    try:
        async with websockets.connect(url) as ws:
            if args.ready_message:
                await ws.send(json.dumps({"type": "ready", "endpoint_key": args.key}))
            await ws.send(json.dumps({"type": "event", "level": "info", "args": [f"{args.key} online"]}))

            async for raw in ws:
                msg = json.loads(raw)
                msg_type = msg.get("type")
                if msg_type == "liveness-ping":
                    if not args.ignore_pings:
                        await ws.send(json.dumps({"type": "liveness-pong"}))
                    continue
                if msg_type == "invoke":
                    request_id = msg.get("request_id")
                    print(f"invoke {request_id}: {msg.get('payload')}")
                    reply = answer(msg.get("payload"), args.reply)
                    await ws.send(json.dumps({"type": "result", "request_id": request_id, **reply}))
                    continue
                print(f"server: {msg}")
    except websockets.exceptions.ConnectionClosed as exc:
        print(f"closed: code={exc.rcvd.code if exc.rcvd else None} reason={exc.rcvd.reason if exc.rcvd else ''}")
        return 0
    except OSError as exc:
        print(f"connection failed: {exc}", file=sys.stderr)
        return 1
    return 0


def main() -> None:
    args = parse_args()
    try:
        sys.exit(asyncio.run(run(args)))
    except KeyboardInterrupt:
        sys.exit(130)


if __name__ == "__main__":
    main()
