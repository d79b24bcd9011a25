import argparse
import asyncio
import logging
from datetime import date
from pathlib import Path

from gtfs_feed.data.config import get_settings
from gtfs_feed.data.feed_loader import get_table_counts, load_feed
from gtfs_feed.services.calendar_service import get_service_activations


async def run_inspect(gtfs_path: Path, query_date: date, reference_date: date | None) -> None:
    """Load a feed and print its table counts and active services."""
    feed = await load_feed(gtfs_path, reference_date)

    print("\nFeed loaded. Row counts:")
    for table, count in get_table_counts(feed).items():
        print(f"  {table}: {count:,}")

    activations = get_service_activations(feed, query_date)
    print(f"\nActive services on {query_date.isoformat()}:")
    for activation in activations:
        print(f"  {activation.service_id} ({activation.source.value})")
    if not activations:
        print("  (none)")


def main() -> None:
    settings = get_settings()

    parser = argparse.ArgumentParser(
        prog="gtfs-feed",
        description="Validate and inspect a GTFS feed",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    inspect_parser = subparsers.add_parser(
        "inspect",
        help="Load a feed and show table counts and active services",
    )
    inspect_parser.add_argument(
        "gtfs_path",
        type=Path,
        nargs="?",
        default=settings.feed_path,
        help="Path to GTFS directory or ZIP file (default: GTFS_FEED_PATH env var)",
    )
    inspect_parser.add_argument(
        "--date",
        type=date.fromisoformat,
        default=date.today(),
        help="Service date in YYYY-MM-DD format (default: today)",
    )
    inspect_parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )

    args = parser.parse_args()

    if args.gtfs_path is None:
        parser.error("gtfs_path is required when GTFS_FEED_PATH is not set")

    log_level = logging.DEBUG if args.verbose else settings.log_level.upper()
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    asyncio.run(run_inspect(args.gtfs_path, args.date, settings.reference_date))


if __name__ == "__main__":
    main()
