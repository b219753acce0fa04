#!/usr/bin/env python3
"""
Chat Relay CLI

Small operator tool around the relay.

Commands:

1) serve
   - Start the HTTP relay with uvicorn (same app as
       uvicorn runtime.api.server:app).

2) session
   - Mint a ChatKit client secret with the configured WORKFLOW_ID and
     print {"client_secret": ...}.

3) chat
   - Run one conversation turn against ASSISTANT_ID and print the same
     JSON the /api/chat endpoint returns. Pass --thread-id to continue
     an existing conversation.

Configuration comes from the environment / .env (see configs/settings.py).
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Dict, Optional

# Ensure project root is on sys.path when running as a script
ROOT_DIR = Path(__file__).resolve().parent.parent
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from configs.settings import Settings, settings
from core.api.openai_client import OpenAIRelayClient
from exceptions.exceptions import RelayError
from runtime.agents.conversation_agent import ConversationAgent
from runtime.agents.session_agent import SessionAgent


def _print_json(data: Dict) -> None:
    print(json.dumps(data, indent=2, ensure_ascii=False))


# ---------------------------------------------------------------------------
# serve
# ---------------------------------------------------------------------------


def cmd_serve(host: str, port: int, reload: bool) -> None:
    """Run the relay app under uvicorn."""
    import uvicorn

    print(f"[Relay] Serving on http://{host}:{port}")
    uvicorn.run("runtime.api.server:app", host=host, port=port, reload=reload)


# ---------------------------------------------------------------------------
# session
# ---------------------------------------------------------------------------


async def _open_session(cfg: Settings) -> Dict:
    api_key, workflow_id = cfg.require_session_config()
    async with OpenAIRelayClient(
        api_key,
        beta=cfg.chatkit_beta,
        base_url=cfg.openai_base_url,
        timeout=cfg.upstream_timeout,
    ) as client:
        response = await SessionAgent(client, workflow_id, user=cfg.chatkit_user).open_session()
    return response.model_dump()


def cmd_session(cfg: Settings) -> None:
    _print_json(asyncio.run(_open_session(cfg)))


# ---------------------------------------------------------------------------
# chat
# ---------------------------------------------------------------------------


async def _chat(cfg: Settings, message: str, thread_id: Optional[str]) -> Dict:
    api_key, assistant_id = cfg.require_conversation_config()
    async with OpenAIRelayClient(
        api_key,
        beta=cfg.assistants_beta,
        base_url=cfg.openai_base_url,
        timeout=cfg.upstream_timeout,
    ) as client:
        agent = ConversationAgent(
            client,
            assistant_id,
            poll_interval=cfg.poll_interval,
            max_polls=cfg.max_polls,
        )
        response = await agent.handle_user_message(message, thread_id=thread_id)
    return response.model_dump(by_alias=True, exclude_none=True)


def cmd_chat(cfg: Settings, message: str, thread_id: Optional[str]) -> None:
    if not message.strip():
        raise SystemExit("[Relay] Message must not be empty")
    print(f"[Relay] Sending message (thread_id={thread_id or 'new'})...")
    _print_json(asyncio.run(_chat(cfg, message, thread_id)))


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Chat Relay CLI")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # serve
    p_serve = subparsers.add_parser("serve", help="Run the HTTP relay with uvicorn")
    p_serve.add_argument("--host", default="127.0.0.1", help="Bind address (default: 127.0.0.1)")
    p_serve.add_argument("--port", type=int, default=8000, help="Bind port (default: 8000)")
    p_serve.add_argument("--reload", action="store_true", help="Reload on code changes")

    # session
    subparsers.add_parser("session", help="Mint a ChatKit client secret")

    # chat
    p_chat = subparsers.add_parser("chat", help="Send one message and wait for the reply")
    p_chat.add_argument("message", help="User message text")
    p_chat.add_argument(
        "--thread-id",
        default=None,
        help="Continue an existing thread instead of creating one",
    )

    return parser


def main(argv: Optional[list[str]] = None, cfg: Optional[Settings] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    cfg = cfg or settings

    try:
        if args.command == "serve":
            cmd_serve(host=args.host, port=args.port, reload=args.reload)
        elif args.command == "session":
            cmd_session(cfg)
        elif args.command == "chat":
            cmd_chat(cfg, message=args.message, thread_id=args.thread_id)
        else:
            parser.error(f"Unknown command: {args.command}")
    except RelayError as e:
        print(f"[Relay] Error: {e.message}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
