"""Command-line interface for the ASD news digest."""

import argparse
import asyncio
import sys
from pathlib import Path

from .config.logging_setup import configure_logging
from .config.settings import Settings, get_settings
from .pipeline.update import UpdatePipeline
from .storage.interfaces import StorageError


def cmd_update(settings: Settings, args) -> int:
    result = asyncio.run(UpdatePipeline(settings).run_update_cycle())
    print(result.message)
    return 0 if result.success else 1


def cmd_fetch(settings: Settings, args) -> int:
    articles = asyncio.run(UpdatePipeline(settings).fetch_and_filter())
    print(f"\n=== Fresh articles ({len(articles)}) ===")
    for article in articles[:args.limit]:
        print(f"  [{article.source}] {article.title}")
        print(f"    {article.published_at}  {article.link}")
    return 0


def cmd_list(settings: Settings, args) -> int:
    try:
        articles = asyncio.run(UpdatePipeline(settings).list_articles())
    except StorageError as e:
        print(f"Could not read stored articles: {e}")
        return 1
    print(f"\n=== Stored articles ({len(articles)}) ===")
    for article in articles[:args.limit]:
        print(f"  {article.reliability or ''} [{article.category or '-'}] {article.title}")
        print(f"    {article.summary_text.splitlines()[0]}")
    return 0


def cmd_schedule(settings: Settings, args) -> int:
    from .scheduler import run_scheduler
    return asyncio.run(run_scheduler(settings, run_now=args.run_now))


def cmd_serve(settings: Settings, args) -> int:
    import uvicorn
    from .server import create_app

    uvicorn.run(create_app(settings), host=args.host, port=args.port)
    return 0


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        prog="asd-news",
        description="Fetch, summarize and store ASD news for parents"
    )
    parser.add_argument("--feeds", help="JSON file replacing the default feed list")
    parser.add_argument("--log-level", help="Log level (default from settings)")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # update
    subparsers.add_parser("update", help="Run one update cycle")

    # fetch
    p = subparsers.add_parser("fetch", help="Fetch and filter feeds without storing")
    p.add_argument("--limit", type=int, default=30, help="Max results")

    # list
    p = subparsers.add_parser("list", help="List stored articles")
    p.add_argument("--limit", type=int, default=50, help="Max results")

    # schedule
    p = subparsers.add_parser("schedule", help="Run the update daily on a cron schedule")
    p.add_argument("--run-now", action="store_true", help="Run one update immediately and exit")

    # serve
    p = subparsers.add_parser("serve", help="Serve the HTTP trigger endpoints")
    p.add_argument("--host", default="0.0.0.0")
    p.add_argument("--port", type=int, default=8000)

    args = parser.parse_args(argv)

    settings = get_settings()
    if args.feeds:
        settings = settings.model_copy(update={"feeds_file": Path(args.feeds)})
    configure_logging(args.log_level or settings.log_level)

    commands = {
        "update": cmd_update,
        "fetch": cmd_fetch,
        "list": cmd_list,
        "schedule": cmd_schedule,
        "serve": cmd_serve,
    }
    command = commands.get(args.command)
    if command is None:
        parser.print_help()
        return 1
    return command(settings, args)


if __name__ == "__main__":
    sys.exit(main())
