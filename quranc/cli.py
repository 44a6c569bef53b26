"""
Command-line interface for the quran.com client.

Usage:
    quranc chapters --language 38
    quranc chapter 1
    quranc verses 2 --translation 131 --translation 20 --limit 5
    quranc verse 2 255
    quranc search "mercy" --size 5
    quranc cache-stats
    quranc --no-cache juzzah
"""

import argparse
import json
import logging
import sqlite3
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, List, Optional

from pydantic import BaseModel, ValidationError

from .config.settings import Settings, build_client, load_settings
from .errors import QuranCError
from .models import ReqOpt, SearchRequest, VerseTafsirReqOpt, VersesReqOpt
from .persist import BucketStore


_SIZE_UNITS = ("B", "KB", "MB", "GB", "TB")


def format_bytes(size: float) -> str:
    """Render a byte count with a binary unit suffix, e.g. 2048 → '2.0 KB'."""
    unit = 0
    while size >= 1024 and unit < len(_SIZE_UNITS) - 1:
        size /= 1024
        unit += 1
    return f"{size:.1f} {_SIZE_UNITS[unit]}"


def format_time(ts: int) -> str:
    """Local time of a unix timestamp; 0 means the bucket was never written."""
    if not ts:
        return "never"
    return datetime.fromtimestamp(ts).isoformat(sep=" ", timespec="seconds")


def to_jsonable(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, list):
        return [to_jsonable(v) for v in value]
    return value


def show_stats(db_path: Path) -> int:
    """
    Display cache statistics.

    Args:
        db_path: Path to the cache database
    """
    if not db_path.exists():
        print(f"❌ Cache database not found: {db_path}")
        return 1

    print(f"📊 Cache Statistics: {db_path}\n")

    with BucketStore(db_path) as store:
        stats = store.stats()

    print(f"{'Bucket':<25} {'Count':>10} {'Size':>12} {'Oldest':>20} {'Newest':>20}")
    print("=" * 90)

    total_count = 0
    total_bytes = 0
    for bucket, s in stats.items():
        total_count += s["count"]
        total_bytes += s["total_bytes"]
        print(
            f"{bucket:<25} {s['count']:>10,} {format_bytes(s['total_bytes']):>12} "
            f"{format_time(s['oldest_ts']):>20} {format_time(s['newest_ts']):>20}"
        )

    print("=" * 90)
    print(f"{'TOTAL':<25} {total_count:>10,} {format_bytes(total_bytes):>12}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="quranc",
        description="Query the quran.com API (responses cached locally)",
    )
    parser.add_argument("--host", type=str, help="API host (default: https://quran.com/api)")
    parser.add_argument("--timeout", type=float, help="Request timeout in seconds (default: 15)")
    parser.add_argument(
        "--cache",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Enable or disable the response cache",
    )
    parser.add_argument("--cache-path", type=Path, help="Cache database path")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    sub = parser.add_subparsers(dest="command", required=True)

    for name in ["recitations", "translations", "languages", "tafsiraat", "chapters"]:
        p = sub.add_parser(name, help=f"List {name}")
        p.add_argument("--language", type=int, default=0, help="Language id filter")

    p = sub.add_parser("chapter", help="Show a chapter")
    p.add_argument("chapter_id", type=int)
    p.add_argument("--language", type=int, default=0, help="Language id filter")

    p = sub.add_parser("chapter-info", help="Show a chapter's info")
    p.add_argument("chapter_id", type=int)
    p.add_argument("--language", type=int, default=0, help="Language id filter")

    p = sub.add_parser("verses", help="List the verses of a chapter")
    p.add_argument("chapter_id", type=int)
    p.add_argument("--language", type=str, default="", help="Language iso code")
    p.add_argument("--recitation", type=int, default=0)
    p.add_argument("--text-type", type=str, default="")
    p.add_argument("--page", type=int, default=0)
    p.add_argument("--limit", type=int, default=0)
    p.add_argument("--media", type=int, action="append", default=[])
    p.add_argument("--translation", type=int, action="append", default=[])

    p = sub.add_parser("verse", help="Show a verse")
    p.add_argument("chapter_id", type=int)
    p.add_argument("verse_id", type=int)

    sub.add_parser("juzzah", help="List juz divisions")

    p = sub.add_parser("verse-tafsir", help="Show the tafsirs of a verse")
    p.add_argument("chapter_id", type=int)
    p.add_argument("verse_id", type=int)
    p.add_argument("--tafsir", type=int, default=0, help="Tafsir id")

    p = sub.add_parser("search", help="Full-text search (never cached)")
    p.add_argument("query", type=str)
    p.add_argument("--language", type=str, default="")
    p.add_argument("--page", type=int, default=0)
    p.add_argument("--size", type=int, default=0)

    sub.add_parser("cache-stats", help="Show cache statistics")

    return parser


def apply_args(settings: Settings, args: argparse.Namespace) -> Settings:
    """Override settings with any flags given on the command line."""
    if args.host:
        settings.client.host = args.host
    if args.timeout is not None:
        settings.client.timeout = args.timeout
    if args.cache is not None:
        settings.cache.enabled = args.cache
    if args.cache_path is not None:
        settings.cache.path = str(args.cache_path)
    return settings


def run_command(api, args: argparse.Namespace) -> Any:
    cmd = args.command
    if cmd in ("recitations", "translations", "languages", "tafsiraat", "chapters"):
        return getattr(api, cmd)(ReqOpt(language_id=args.language))
    if cmd == "chapter":
        return api.chapter(args.chapter_id, ReqOpt(language_id=args.language))
    if cmd == "chapter-info":
        return api.chapter_info(args.chapter_id, ReqOpt(language_id=args.language))
    if cmd == "verses":
        opts = VersesReqOpt(
            language=args.language,
            recitation=args.recitation,
            text_type=args.text_type,
            page=args.page,
            limit=args.limit,
            media=args.media,
            translations=args.translation,
        )
        return api.verses(args.chapter_id, opts)
    if cmd == "verse":
        return api.verse(args.chapter_id, args.verse_id)
    if cmd == "juzzah":
        return api.juzzah()
    if cmd == "verse-tafsir":
        opts = VerseTafsirReqOpt.for_tafsir_id(args.tafsir) if args.tafsir else None
        return api.verse_tafsir(args.chapter_id, args.verse_id, opts)
    if cmd == "search":
        return api.search(SearchRequest(
            query=args.query,
            language=args.language,
            page=args.page,
            size=args.size,
        ))
    raise ValueError(f"unknown command: {cmd}")


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entrypoint."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        settings = apply_args(load_settings(), args)
        if args.command == "cache-stats":
            return show_stats(Path(settings.cache.path))
        api, store = build_client(settings)
    except (QuranCError, ValidationError, sqlite3.Error, OSError) as e:
        print(f"❌ {e}", file=sys.stderr)
        return 1

    try:
        result = run_command(api, args)
    except (QuranCError, ValueError) as e:
        print(f"❌ {e}", file=sys.stderr)
        return 1
    finally:
        if store is not None:
            store.close()

    print(json.dumps(to_jsonable(result), indent=2, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    sys.exit(main())
