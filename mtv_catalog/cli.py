"""mtv-catalog 명령행 진입점

    mtv-catalog init-seeds
    mtv-catalog import-overrides overrides.yaml
    mtv-catalog resolve-channels
    mtv-catalog fetch-uploads
    mtv-catalog crawl-uploads [--max-playlists N]
    mtv-catalog fetch-video-details [-n N]
    mtv-catalog run-all [-n N]
    mtv-catalog stats
    mtv-catalog reset --confirm [--failed-only]
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from typing import Awaitable, Callable, List, Optional

from mtv_catalog.core.config import Settings, settings as default_settings
from mtv_catalog.core.context import AppContext
from mtv_catalog.core.exceptions import CatalogException
from mtv_catalog.core.logging import logger
from mtv_catalog.engine.result import StageReport
from mtv_catalog.services.impl.catalog_service import CatalogService

API_COMMANDS = {"resolve-channels", "fetch-uploads", "crawl-uploads", "fetch-video-details", "run-all"}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mtv-catalog",
        description="Build a YouTube-first catalog of Tamil music videos within the daily API quota",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("stats", help="Show catalog statistics and today's quota usage")
    sub.add_parser("init-seeds", help="Register the bundled seed channel names (no API calls)")

    overrides = sub.add_parser("import-overrides", help="Import seed → channel ID overrides (YAML or JSON)")
    overrides.add_argument("path", nargs="?", default=None, help="Override file (default: OVERRIDES_PATH)")

    sub.add_parser("resolve-channels", help="Resolve pending seeds to channel IDs")
    sub.add_parser("fetch-uploads", help="Fetch uploads playlist IDs for resolved channels")

    crawl = sub.add_parser("crawl-uploads", help="Crawl uploads playlists to discover videos")
    crawl.add_argument("--max-playlists", type=int, default=None)

    details = sub.add_parser("fetch-video-details", help="Fetch metadata for discovered videos")
    details.add_argument("-n", "--max", dest="max_videos", type=int, default=None)

    run_all = sub.add_parser("run-all", help="Run every stage in order")
    run_all.add_argument("-n", "--max-videos", dest="max_videos", type=int, default=None)

    reset = sub.add_parser("reset", help="Reset progress (seeds stay, resolutions and videos cleared)")
    reset.add_argument("--confirm", action="store_true", help="Confirm the reset")
    reset.add_argument("--failed-only", action="store_true", help="Only return failed/skipped seeds to pending")

    return parser


def print_report(report: StageReport) -> None:
    print(f"\n[{report.stage}]")
    for key, value in report.to_dict().items():
        if key != "stage":
            print(f"  {key}: {value}")


def print_stats(stats: dict) -> None:
    quota = stats.pop("quota", {})
    print("\nCATALOG STATS")
    for key, value in stats.items():
        print(f"  {key}: {value}")
    print("\nAPI quota (today)")
    for key, value in quota.items():
        print(f"  {key}: {value}")


async def run_command(args: argparse.Namespace, ctx: AppContext) -> int:
    service = CatalogService(ctx)
    command = args.command

    if command == "stats":
        print_stats(service.get_stats())
        return 0
    if command == "init-seeds":
        inserted = service.init_seeds()
        print(f"Initialized {inserted} new seed channels")
        return 0
    if command == "import-overrides":
        count = service.import_overrides(args.path)
        print(f"Imported {count} overrides")
        return 0
    if command == "reset":
        if not args.confirm:
            print("This will reset catalog progress. Add --confirm to proceed.")
            return 1
        print(f"Reset complete: {service.reset(failed_only=args.failed_only)}")
        return 0

    stage_runners: dict[str, Callable[[], Awaitable[StageReport]]] = {
        "resolve-channels": service.resolve_channels,
        "fetch-uploads": service.fetch_uploads,
        "crawl-uploads": lambda: service.crawl_uploads(args.max_playlists),
        "fetch-video-details": lambda: service.fetch_video_details(args.max_videos),
    }
    if command in stage_runners:
        print_report(await stage_runners[command]())
        return 0
    if command == "run-all":
        for report in await service.run_all(max_videos=args.max_videos):
            print_report(report)
        print_stats(service.get_stats())
        return 0

    raise ValueError(f"Unknown command: {command}")


async def _main(args: argparse.Namespace, settings: Settings) -> int:
    async with AppContext(settings) as ctx:
        return await run_command(args, ctx)


def main(argv: Optional[List[str]] = None, settings: Optional[Settings] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = settings or default_settings

    if args.command in API_COMMANDS and not settings.youtube_api_key:
        print("YOUTUBE_API_KEY is not set. Add it to the environment or a .env file.", file=sys.stderr)
        return 2

    try:
        return asyncio.run(_main(args, settings))
    except CatalogException as e:
        logger.error(f"Command '{args.command}' failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
