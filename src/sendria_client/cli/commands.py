"""
Command-line interface for Sendria.

Usage:
    # List captured messages
    sendria-client list --page 1 --per-page 20

    # Show a message with its decomposed parts and attachments
    sendria-client show 42
    sendria-client show 42 --json

    # Decompose a local .eml file
    sendria-client parse message.eml

    # Delete one / all messages
    sendria-client delete 42
    sendria-client clear

    # Watch for new mail and extract links, tokens and amounts
    sendria-client monitor --interval 2

    # With environment variables
    export SENDRIA_URL="http://sendria.local:1080"
    export SENDRIA_USERNAME="admin" SENDRIA_PASSWORD="secret"
"""

import argparse
import json
import sys
import time
from pathlib import Path
from typing import List, Optional, Set

import structlog

from ..analysis import EMAIL_TYPES, EmailStats, analyze_message
from ..client import SendriaClient
from ..config import settings
from ..exceptions import SendriaError
from ..logging_config import setup_logging
from ..models.message import Message
from ..parsing.decomposer import decompose
from ..version import __version__

logger = structlog.get_logger(__name__)

PREVIEW_LENGTH = 150


# ============================================================================
# OUTPUT HELPERS
# ============================================================================

def _decomposition_to_dict(message: Message) -> dict:
    return {
        "parts": [part.model_dump() for part in message.parts],
        "attachments": [attachment.model_dump() for attachment in message.attachments],
    }


def _print_summary(message: Message) -> None:
    print(f"Message ID: {message.id}")
    print(f"Subject: {message.subject}")
    if message.from_:
        print(f"From: {message.from_[0].email}")
    if message.to:
        print(f"To: {', '.join(r.email for r in message.to)}")
    if message.created_at:
        print(f"Date: {message.created_at:%Y-%m-%d %H:%M:%S}")
    print(f"Size: {message.size} bytes")


def _print_decomposition(message: Message) -> None:
    print(f"\nMessage has {len(message.parts)} parts:")
    for index, part in enumerate(message.parts, start=1):
        print(f"  Part {index}: {part.raw_content_type} ({part.size} bytes)")

    if message.attachments:
        print(f"\nMessage has {len(message.attachments)} attachments:")
        for attachment in message.attachments:
            print(
                f"  - {attachment.filename or '<unnamed>'} "
                f"({attachment.raw_content_type}, {attachment.size} bytes)"
            )

    plain_text = message.plain_text()
    if plain_text:
        print(f"\nPlain text content:\n{plain_text}")


# ============================================================================
# COMMANDS
# ============================================================================

def cmd_list(client: SendriaClient, args: argparse.Namespace) -> int:
    message_list = client.list_messages(args.page, args.per_page)
    print(f"Found {len(message_list.messages)} messages (Total: {message_list.total})\n")
    for message in message_list.messages:
        _print_summary(message)
        print("---")
    return 0


def cmd_show(client: SendriaClient, args: argparse.Namespace) -> int:
    message = client.get_parsed_message(args.message_id)
    if args.json:
        payload = message.model_dump(mode="json", by_alias=True, exclude={"source"})
        print(json.dumps(payload, indent=2, ensure_ascii=False))
        return 0

    _print_summary(message)
    _print_decomposition(message)
    return 0


def cmd_parse(args: argparse.Namespace) -> int:
    raw_source = Path(args.path).read_bytes()
    parts, attachments = decompose(raw_source)
    message = Message(id=Path(args.path).name, parts=parts, attachments=attachments)
    print(json.dumps(_decomposition_to_dict(message), indent=2, ensure_ascii=False))
    return 0


def cmd_delete(client: SendriaClient, args: argparse.Namespace) -> int:
    client.delete_message(args.message_id)
    print(f"Deleted message {args.message_id}")
    return 0


def cmd_clear(client: SendriaClient, args: argparse.Namespace) -> int:
    client.delete_all_messages()
    print("Deleted all messages")
    return 0


def check_new_messages(
    client: SendriaClient, seen_ids: Set[str], stats: EmailStats
) -> List[dict]:
    """
    Analyze messages not seen before.

    Returns:
        One analysis dict per new message, oldest first
    """
    try:
        messages = client.list_messages(1, 50).messages
    except SendriaError as e:
        logger.warning("monitor_fetch_failed", error=str(e))
        return []

    results = []
    for message in reversed(messages):
        if message.id in seen_ids:
            continue
        seen_ids.add(message.id)

        try:
            message = client.get_parsed_message(message.id)
        except SendriaError as e:
            logger.warning("monitor_message_fetch_failed", message_id=message.id, error=str(e))
            continue

        analysis = analyze_message(message)
        stats.record(analysis["type"])
        results.append({"message": message, **analysis})
    return results


def _print_new_message(result: dict) -> None:
    message: Message = result["message"]
    print(f"\n[{time.strftime('%H:%M:%S')}] New {result['type']} email!")
    print(f"  Subject: {message.subject}")
    if message.from_:
        print(f"  From: {message.from_[0].email}")
    if message.to:
        print(f"  To: {message.to[0].email}")
    for key, value in result["details"].items():
        print(f"  {key.replace('_', ' ').capitalize()}: {value}")

    preview = message.plain_text()
    if preview:
        if len(preview) > PREVIEW_LENGTH:
            preview = preview[:PREVIEW_LENGTH] + "..."
        print(f"  Preview: {' '.join(preview.split())}")

    if message.attachments:
        print(f"  Attachments: {len(message.attachments)} file(s)")
        for attachment in message.attachments:
            print(
                f"     - {attachment.filename} "
                f"({attachment.raw_content_type}, {attachment.size} bytes)"
            )
    print("  ---")


def cmd_monitor(client: SendriaClient, args: argparse.Namespace) -> int:
    print(f"Email Test Monitor - Connected to {client.base_url}")
    print("Detects: verification links, password resets, welcome emails, invoices")
    print("Press Ctrl+C to stop")
    print("---")

    seen_ids: Set[str] = set()
    stats = EmailStats()
    try:
        while True:
            for result in check_new_messages(client, seen_ids, stats):
                _print_new_message(result)
            time.sleep(args.interval)
    except KeyboardInterrupt:
        print("\n\nStopping email monitor...")

    print("\n=== Email Statistics ===")
    print(f"Total emails monitored: {stats.total}")
    for email_type in EMAIL_TYPES:
        print(f"  {email_type}: {stats.counts[email_type]}")
    return 0


# ============================================================================
# ENTRY POINT
# ============================================================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sendria-client",
        description="Inspect and manage mail captured by a Sendria server",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--url", help=f"Sendria base URL (default: {settings.url})")
    parser.add_argument("--username", help="Basic auth username")
    parser.add_argument("--password", help="Basic auth password")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")

    subparsers = parser.add_subparsers(dest="command", required=True)

    list_parser = subparsers.add_parser("list", help="List captured messages")
    list_parser.add_argument("--page", type=int, default=1)
    list_parser.add_argument("--per-page", type=int, default=10)

    show_parser = subparsers.add_parser("show", help="Show a decomposed message")
    show_parser.add_argument("message_id")
    show_parser.add_argument("--json", action="store_true", help="Print JSON")

    parse_parser = subparsers.add_parser("parse", help="Decompose a local .eml file")
    parse_parser.add_argument("path")

    delete_parser = subparsers.add_parser("delete", help="Delete a message")
    delete_parser.add_argument("message_id")

    subparsers.add_parser("clear", help="Delete all messages")

    monitor_parser = subparsers.add_parser("monitor", help="Watch for new mail")
    monitor_parser.add_argument(
        "--interval", type=float, default=settings.poll_interval_seconds
    )

    return parser


COMMANDS = {
    "list": cmd_list,
    "show": cmd_show,
    "delete": cmd_delete,
    "clear": cmd_clear,
    "monitor": cmd_monitor,
}


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(log_level="DEBUG" if args.verbose else None)

    try:
        if args.command == "parse":
            return cmd_parse(args)

        with SendriaClient(
            base_url=args.url, username=args.username, password=args.password
        ) as client:
            return COMMANDS[args.command](client, args)
    except (SendriaError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
