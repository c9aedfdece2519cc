from __future__ import annotations

import argparse
import asyncio
import json
from typing import List, Optional

from app.core.config import settings
from app.core.progression.config import load_progression_config
from app.core.progression.services import ProgressionEngine
from app.core.progression.storage import RedisKeyValueStore
from app.core.security import create_access_token
from app.utils.redis_client import close_redis, get_redis


def build_engine() -> ProgressionEngine:
    return ProgressionEngine(
        RedisKeyValueStore(get_redis()),
        load_progression_config(settings.progression_config_path),
        key_prefix=settings.progress_key_prefix,
    )


async def _show(engine: ProgressionEngine, user_key: str) -> None:
    try:
        progress = await engine.load_progress(user_key)
        print(json.dumps(progress.to_storage(), indent=2, ensure_ascii=False))
    finally:
        await close_redis()


async def _reset(engine: ProgressionEngine, user_key: str) -> bool:
    try:
        return await engine.reset_progress(user_key)
    finally:
        await close_redis()


def cmd_issue_token(user_key: str) -> None:
    print(create_access_token(user_key=user_key))


def cmd_show(user_key: str, engine: Optional[ProgressionEngine] = None) -> None:
    asyncio.run(_show(engine or build_engine(), user_key))


def cmd_reset(user_key: str, engine: Optional[ProgressionEngine] = None) -> int:
    ok = asyncio.run(_reset(engine or build_engine(), user_key))
    print("reset" if ok else "reset failed")
    return 0 if ok else 1


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="PokeHunt progression operator commands"
    )
    subparsers = parser.add_subparsers(dest="command")

    token_parser = subparsers.add_parser(
        "issue-token", help="Print a bearer token for a user key"
    )
    token_parser.add_argument("user_key", help="User key, usually the email")

    show_parser = subparsers.add_parser(
        "show", help="Print the stored progress record"
    )
    show_parser.add_argument("user_key")

    reset_parser = subparsers.add_parser(
        "reset", help="Delete the stored progress record"
    )
    reset_parser.add_argument("user_key")

    args = parser.parse_args(argv)

    if args.command == "issue-token":
        cmd_issue_token(args.user_key)
    elif args.command == "show":
        cmd_show(args.user_key)
    elif args.command == "reset":
        return cmd_reset(args.user_key)
    else:
        parser.print_help()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
