"""
Non-interactive CLI for thinkchat.

Usage:
    thinkchat-chat "Summarize the latest docs"
    thinkchat-chat "Follow up" --chat-id 3f2a...
    echo "prompt" | thinkchat-chat - --json
    thinkchat-chat --list-chats
    thinkchat-chat "prompt" --env-file /path/to/custom.env
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="thinkchat-chat",
        description="Non-interactive CLI for thinkchat with structured AI thinking.",
    )
    parser.add_argument(
        "prompt",
        nargs="?",
        default=None,
        help="Chat prompt text, or '-' to read from stdin.",
    )
    parser.add_argument("--chat-id", default=None, help="Continue an existing stored chat.")
    parser.add_argument("--title", default=None, help="Title for a new chat.")
    parser.add_argument("-o", "--output", default=None, help="Write final response to file path.")
    parser.add_argument("--json", dest="json_output", action="store_true", help="Output structured JSON.")
    parser.add_argument("--list-chats", action="store_true", help="Print stored chats and exit.")
    parser.add_argument(
        "--env-file",
        default=None,
        help="Path to custom .env file (default: .env in current directory).",
    )
    return parser


def _load_env(env_file: Optional[str]) -> bool:
    """Load the .env file; a missing custom file is an error."""
    if env_file:
        path = Path(env_file)
        if not path.exists():
            print(f"Error: specified env file not found: {path}", file=sys.stderr)
            return False
        load_dotenv(dotenv_path=str(path), override=True)
    elif Path(".env").exists():
        load_dotenv(dotenv_path=".env")
    return True


def _print_thinking(turn) -> None:
    thinking = turn.ai_message.thinking if turn.ai_message else None
    if thinking is None:
        return
    print(f"\n[confidence: {thinking.confidence_level.value}]", file=sys.stderr)
    for step in thinking.reasoning_chain:
        print(f"  {step.step}. {step.description}", file=sys.stderr)
    for uncertainty in thinking.uncertainties:
        print(f"  ? {uncertainty.question}", file=sys.stderr)


async def list_chats(service, *, json_output: bool = False) -> int:
    """Print stored chats, most recent first."""
    chats = await service.load_chats_from_storage()
    if json_output:
        print(json.dumps({"chats": [c.to_dict() for c in chats]}, indent=2))
        return 0
    if not chats:
        print("No chats stored.", file=sys.stderr)
        return 1
    for chat in chats:
        tags = f" [{', '.join(sorted(chat.tags))}]" if chat.tags else ""
        print(f"{chat.id}  {chat.title}{tags}")
    return 0


async def run(args: argparse.Namespace) -> int:
    from thinkchat.application.chat.orchestrator import TurnState
    from thinkchat.infrastructure.app_factory import AppFactory

    service = AppFactory().create_chat_service()

    if args.list_chats:
        return await list_chats(service, json_output=args.json_output)

    # Resolve prompt
    prompt = args.prompt
    if prompt == "-" or (prompt is None and not sys.stdin.isatty()):
        prompt = sys.stdin.read().strip()
    if not prompt:
        print("Error: no prompt provided.", file=sys.stderr)
        return 2

    try:
        if args.chat_id:
            await service.load_chats_from_storage()
            if not service.store.has_chat(args.chat_id):
                print(f"Error: chat not found: {args.chat_id}", file=sys.stderr)
                return 2
            await service.load_contexts_from_storage()
            await service.activate_chat(args.chat_id)
            chat_id = args.chat_id
        else:
            chat_id = service.create_new_chat(args.title).id

        turn = await service.send_message(chat_id, prompt)
        await service.flush()

        if args.json_output:
            print(json.dumps(turn.to_dict(), indent=2))
        elif turn.state is TurnState.FAILED:
            print(turn.error, file=sys.stderr)
        elif args.output:
            Path(args.output).write_text(turn.ai_message.content, encoding="utf-8")
            print(f"Output written to {args.output}", file=sys.stderr)
        elif turn.ai_message is not None:
            print(turn.ai_message.content)
            _print_thinking(turn)

        return 1 if turn.state is TurnState.FAILED else 0
    except Exception as exc:
        print(f"Error: {exc}", file=sys.stderr)
        logging.getLogger(__name__).debug("CLI error details", exc_info=True)
        return 1


def main() -> None:
    parser = build_parser()
    args = parser.parse_args()
    if not _load_env(args.env_file):
        sys.exit(2)
    sys.exit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()
