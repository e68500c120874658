"""
Command line front end: ``add-endnote <api_url> <admin_api_key> --post-ids …``.
"""

from __future__ import annotations

import argparse
import signal
import sys
import time
import traceback
from typing import List, Optional

from ghost_endnote.config import CONFIG_FILE, DEFAULT_CONTENT, DEFAULT_DELAY_MS, load_options
from ghost_endnote.migration_tool import EndnoteMigrationTool, PipelineState
from ghost_endnote.utils.errors import MigrationError


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="add-endnote",
        description="Add an endnote HTML block to posts in Ghost.",
    )
    parser.add_argument("api_url", nargs="?", help="URL to your Ghost API.")
    parser.add_argument("admin_api_key", nargs="?", help="Admin API key.")
    parser.add_argument(
        "--post-ids",
        help="Comma separated list of post IDs, inside single quotes, e.g. 'id1,id2,id3'.",
    )
    parser.add_argument(
        "--content",
        default=None,
        help=f'Content for the endnote block (defaults to "{DEFAULT_CONTENT}").',
    )
    parser.add_argument(
        "--delay-between-calls",
        type=int,
        default=None,
        help=f"The delay between API calls, in ms (defaults to {DEFAULT_DELAY_MS}).",
    )
    parser.add_argument("--config", default=CONFIG_FILE, help="Optional JSON config file.")
    parser.add_argument("-V", "--verbose", action="store_true", help="Show verbose output.")
    return parser


def parse_post_ids(raw: Optional[str]) -> Optional[List[str]]:
    if raw is None:
        return None
    return [item.strip() for item in raw.split(",") if item.strip()]


def print_errors(errors: List[BaseException], *, verbose: bool) -> None:
    print("[ERROR] Done with errors", file=sys.stderr)
    for err in errors:
        resource = getattr(err, "resource", None) or {}
        label = resource.get("title") or resource.get("id")
        prefix = f"{label}: " if label else ""
        print(f"  - {prefix}{err}", file=sys.stderr)
        if verbose and err.__traceback__ is not None:
            print("".join(traceback.format_exception(type(err), err, err.__traceback__)), file=sys.stderr)


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    timer = time.monotonic()

    try:
        options = load_options(
            args.config,
            {
                "api_url": args.api_url,
                "admin_api_key": args.admin_api_key,
                "post_ids": parse_post_ids(args.post_ids),
                "content": args.content,
                "delay_between_calls": args.delay_between_calls,
                "verbose": args.verbose or None,
            },
        )
    except MigrationError as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        return 2

    tool = EndnoteMigrationTool(options)
    # First Ctrl+C lets the in-flight edit finish; posts not yet started are skipped.
    previous = signal.signal(signal.SIGINT, lambda *_: tool.cancel())
    try:
        tool.run()
    except MigrationError:
        # Already recorded on the context; reported below.
        pass
    finally:
        signal.signal(signal.SIGINT, previous)

    ctx = tool.context
    if ctx.errors:
        print_errors(ctx.errors, verbose=tool.verbose)
    if ctx.updated:
        elapsed_ms = int((time.monotonic() - timer) * 1000)
        print(f"[OK] Successfully updated {len(ctx.updated)} posts in {elapsed_ms}ms.")
    if tool.state is PipelineState.CANCELLED:
        print("[WARNING] Run cancelled before every post was processed.", file=sys.stderr)
    if tool.state is PipelineState.FAILED:
        return 1
    return 1 if ctx.errors and not ctx.updated else 0
