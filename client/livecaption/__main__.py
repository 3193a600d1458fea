"""LiveCaption command line: python -m client.livecaption <command> ..."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from .app import LiveCaptionApp
from .audio.source import MicrophoneError
from .services.network import ApiError


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="LiveCaption operator and viewer client.")
    parser.add_argument("--home", type=Path, default=None, help="Settings directory (default: ~/.livecaption)")
    parser.add_argument("--server", default=None, help="API base URL; saved for later runs")
    parser.add_argument("--verbose", "-v", action="store_true", help="Log debug output")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("ping", help="Check the server is reachable")
    sub.add_parser("events", help="List recent events")

    create = sub.add_parser("create", help="Create an idle event")
    create.add_argument("name")
    create.add_argument("--glossary-file", type=Path, help="JSON object mapping source -> target terms")

    status = sub.add_parser("status", help="Change an event's status")
    status.add_argument("event_id")
    status.add_argument("status", choices=["idle", "live", "ended"])

    glossary = sub.add_parser("glossary", help="Replace or merge an event glossary")
    glossary.add_argument("event_id")
    glossary.add_argument("glossary_file", type=Path)
    glossary.add_argument("--merge", action="store_true", help="Merge into the existing glossary")

    record = sub.add_parser("record", help="Go live and stream microphone audio until Ctrl-C")
    record.add_argument("event_id")
    record.add_argument("--seconds", type=int, default=None, help="Segment length, 3-15 seconds")
    record.add_argument("--file", type=Path, default=None, help="Replay an audio file instead of the microphone")
    record.add_argument("--device", default=None, help="Input device name or index")

    follow = sub.add_parser("follow", help="Print captions as they arrive")
    follow.add_argument("event_id")
    follow.add_argument("--srt", type=Path, default=None, help="Also append captions to this SRT file")
    return parser


def _load_glossary(path: Path | None) -> dict[str, str]:
    if path is None:
        return {}
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"{path} must contain a JSON object")
    return {str(key): str(value) for key, value in data.items()}


async def run(args: argparse.Namespace) -> int:
    app = LiveCaptionApp(args.home)
    app.configure(server_url=args.server)
    if args.command == "record":
        app.configure(segment_seconds=args.seconds, device=args.device)
    try:
        if args.command == "ping":
            ok = await app.api_client.test_connection()
            print("ok" if ok else "unhealthy")
            return 0 if ok else 1
        if args.command == "events":
            for event in await app.api_client.list_events():
                print(f"{event['id']}  {event['status']:<6} {event['name']}")
        elif args.command == "create":
            event = await app.create_event(args.name, _load_glossary(args.glossary_file))
            print(event["id"])
        elif args.command == "status":
            await app.set_status(args.event_id, args.status)
        elif args.command == "glossary":
            await app.api_client.update_event(
                args.event_id, glossary=_load_glossary(args.glossary_file), merge_glossary=args.merge
            )
        elif args.command == "record":
            await app.record(args.event_id, args.file)
            if app.failed_chunks:
                print(f"{len(app.failed_chunks)} chunk(s) were lost", file=sys.stderr)
        elif args.command == "follow":
            await app.follow(args.event_id, args.srt)
    finally:
        await app.close()
    return 0


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    for noisy in ("httpx", "httpcore"):
        logging.getLogger(noisy).setLevel(logging.WARNING)
    try:
        return asyncio.run(run(args))
    except KeyboardInterrupt:
        return 130
    except (ApiError, MicrophoneError, ValueError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
