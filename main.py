"""
Entry point for the WordPress to Haven import tool.

Usage::

    AUTHOR_MAP="wp_user1:haven@email.com,wp_user2:other@email.com" \\
        python main.py /path/to/export.xml [--dry-run]

Posts by unmapped authors fall back to the first mapped user.
"""

import argparse
import sys

import requests

from haven_migrator.migration_tool import HavenImportTool
from haven_migrator.utils.errors import MigrationError

CONFIG_FILE = "config/migration_config.json"


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Import posts and media from a WordPress WXR export into Haven."
    )
    parser.add_argument("export", help="Path to the WordPress export XML")
    parser.add_argument(
        "--author-map",
        help="Comma-separated wp_username:haven_email pairs (default: $AUTHOR_MAP)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        default=None,
        help="Preview the import without creating any records (default: $DRY_RUN=1)",
    )
    parser.add_argument("--config", default=CONFIG_FILE, help="JSON configuration file")
    parser.add_argument("--limit", type=int, help="Import at most this many posts")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    """
    Main function to run the WordPress to Haven import tool.
    """
    args = parse_args(argv)
    tool = HavenImportTool(config_file=args.config)
    migration = tool.config["migration"]
    if args.author_map is not None:
        migration["author_map"] = args.author_map
    if args.dry_run is not None:
        migration["dry_run"] = args.dry_run
    if args.limit is not None:
        migration["limit"] = args.limit

    tool.log_message("Starting WordPress to Haven import.")
    try:
        tool.run(args.export)
    except MigrationError as e:
        tool.log_message(str(e), level="ERROR")
        return 1
    except requests.RequestException as e:
        error_details = e.response.text if getattr(e, "response", None) is not None else str(e)
        tool.log_message(f"Haven API error, import aborted: {error_details}", level="ERROR")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
