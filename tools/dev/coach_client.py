#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Interview Coach — Dev HTTP Client
---------------------------------
Console tool for talking to the coaching server over HTTP.

Two modes:
- smoke (default): health -> init -> message -> history -> clear ->
  history, checking each envelope and exiting non-zero on the first
  failure. Useful right after a deploy.
- repl: interactive chat. Type a message, the coach answers.
  /history prints the stored conversation, /clear resets the session,
  /quit exits.

    python3 tools/dev/coach_client.py --server http://127.0.0.1:8787/api
    python3 tools/dev/coach_client.py --repl --user dev-console-01
"""

from __future__ import annotations

import argparse
import sys
import time
from typing import Any, Dict, Optional

import requests

DEFAULT_SERVER = "http://127.0.0.1:8787/api"


class ClientError(Exception):
    """Raised when the server answers with an error envelope or bad status."""


# ---------------------------------------------------------------------------
# CLI argument parsing
# ---------------------------------------------------------------------------


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Interview Coach — Dev HTTP Client",
    )
    parser.add_argument(
        "--server",
        type=str,
        default=DEFAULT_SERVER,
        help=f"API base URL including prefix (default: {DEFAULT_SERVER})",
    )
    parser.add_argument(
        "--user",
        type=str,
        default=None,
        help="userId to use (default: test_user_<timestamp>).",
    )
    parser.add_argument(
        "--interview-type",
        type=str,
        default=None,
        choices=["general", "frontend", "backend", "fullstack"],
        help="interviewType sent with /session/init (workflow mode).",
    )
    parser.add_argument(
        "--repl",
        action="store_true",
        help="Interactive chat instead of the smoke test.",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=60.0,
        help="HTTP timeout in seconds (default: 60).",
    )
    return parser.parse_args()


# ---------------------------------------------------------------------------
# HTTP helpers
# ---------------------------------------------------------------------------


def call(
    method: str,
    url: str,
    *,
    timeout: float,
    json_body: Optional[Dict[str, Any]] = None,
    params: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """Send one request and return the decoded success envelope."""
    try:
        resp = requests.request(method, url, json=json_body, params=params, timeout=timeout)
    except requests.RequestException as exc:
        raise ClientError(f"{method} {url} failed: {exc}") from exc

    try:
        data = resp.json()
    except ValueError as exc:
        raise ClientError(f"{method} {url} returned non-JSON ({resp.status_code})") from exc

    if resp.status_code != 200 or not data.get("success"):
        raise ClientError(f"{method} {url} -> {resp.status_code}: {data.get('error')}")
    return data


# ---------------------------------------------------------------------------
# Modes
# ---------------------------------------------------------------------------


def run_smoke(args: argparse.Namespace, user_id: str) -> None:
    base = args.server.rstrip("/")
    t = args.timeout

    print("1. health")
    health = call("GET", f"{base}/health", timeout=t)
    print(f"   ok: version={health.get('version')}")

    print("2. session/init")
    init_body: Dict[str, Any] = {"userId": user_id}
    if args.interview_type:
        init_body["interviewType"] = args.interview_type
    session = call("POST", f"{base}/session/init", timeout=t, json_body=init_body)["session"]
    greeting = session["messages"][0]["content"]
    print(f"   ok: {len(session['messages'])} message(s); greeting: {greeting[:80]}...")

    print("3. chat")
    reply = call(
        "POST",
        f"{base}/chat",
        timeout=t,
        json_body={"userId": user_id, "message": "Hello! I'm preparing for a backend role."},
    )
    print(f"   ok: assistant: {reply['message']['content'][:100]}...")

    print("4. session/history")
    history = call("GET", f"{base}/session/history", timeout=t, params={"userId": user_id})
    count = len(history["messages"])
    if count != 3:
        raise ClientError(f"expected 3 messages after one turn, got {count}")
    print(f"   ok: {count} messages")

    print("5. session/clear")
    call("POST", f"{base}/session/clear", timeout=t, json_body={"userId": user_id})
    history = call("GET", f"{base}/session/history", timeout=t, params={"userId": user_id})
    if history["messages"]:
        raise ClientError("history not empty after clear")
    print("   ok: history empty after clear")

    print("\nAll checks passed.")


def run_repl(args: argparse.Namespace, user_id: str) -> None:
    base = args.server.rstrip("/")
    t = args.timeout

    print(f"[client] server : {base}")
    print(f"[client] user   : {user_id}")
    print("Type a message and press Enter. /history, /clear, /quit.\n")

    session = call("POST", f"{base}/session/init", timeout=t, json_body={"userId": user_id})["session"]
    for msg in session["messages"]:
        print(f"{msg['role']}: {msg['content']}\n")

    while True:
        try:
            text = input("You: ").strip()
        except (EOFError, KeyboardInterrupt):
            print("\nBye.")
            return

        if not text:
            continue
        if text.lower() in {"/quit", "/exit"}:
            print("Bye.")
            return

        try:
            if text.lower() == "/history":
                history = call("GET", f"{base}/session/history", timeout=t, params={"userId": user_id})
                for msg in history["messages"]:
                    print(f"  [{msg['messageId']}] {msg['role']}: {msg['content'][:100]}")
                print()
                continue
            if text.lower() == "/clear":
                call("POST", f"{base}/session/clear", timeout=t, json_body={"userId": user_id})
                session = call("POST", f"{base}/session/init", timeout=t, json_body={"userId": user_id})["session"]
                print(f"Coach: {session['messages'][0]['content']}\n")
                continue

            reply = call(
                "POST",
                f"{base}/chat",
                timeout=t,
                json_body={"userId": user_id, "message": text},
            )
        except ClientError as exc:
            print(f"Error: {exc}\n")
            continue

        print(f"Coach: {reply['message']['content']}\n")


def main() -> int:
    args = parse_args()
    user_id = args.user or f"test_user_{int(time.time() * 1000)}"

    try:
        if args.repl:
            run_repl(args, user_id)
        else:
            run_smoke(args, user_id)
    except ClientError as exc:
        print(f"\nFAILED: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
