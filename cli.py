"""Lightweight CLI for catalog database operations.

Usage:
    catalog init-db                 # create catalog and preference tables (configured env)
    catalog init-db --alias catalog # create tables in a specific database
    catalog log-level DEBUG         # set log level in settings.toml
"""

import argparse
import logging
import re
import sys
from time import perf_counter

from settings_service import SETTINGS_PATH, _load_settings, reset_settings_cache

VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def cmd_init_db(args: argparse.Namespace) -> int:
    """Create the catalog and preference tables if they do not exist."""
    if not args.verbose:
        # Suppress library logs before config imports set up handlers
        logging.disable(logging.INFO)

    from config import DatabaseConfig
    from repositories.catalog_repo import CatalogRepository
    from repositories.preference_repo import PreferenceRepository

    t0 = perf_counter()
    try:
        db = DatabaseConfig(args.alias)
    except ValueError as e:
        print(f"error: {e}")
        return 1

    print(f"initializing {db.alias} ({db.path}) …", end=" ", flush=True)
    try:
        CatalogRepository(db).ensure_schema()
        PreferenceRepository(db).ensure_schema()
        ok = db.integrity_check()
    except Exception as e:
        elapsed = round((perf_counter() - t0) * 1000)
        print(f"error ({elapsed} ms): {e}")
        return 1
    finally:
        DatabaseConfig.dispose_all()

    elapsed = round((perf_counter() - t0) * 1000)
    if not ok:
        print(f"integrity check failed ({elapsed} ms)")
        return 1
    print(f"ok ({elapsed} ms)")
    return 0


def cmd_log_level(args: argparse.Namespace) -> int:
    """Get or set the log level in settings.toml."""
    settings = _load_settings(SETTINGS_PATH)
    current = settings["env"]["log_level"]

    if args.level is None:
        print(current)
        return 0

    level = args.level.upper()
    if level not in VALID_LOG_LEVELS:
        print(f"invalid level: {args.level} (expected one of {', '.join(VALID_LOG_LEVELS)})")
        return 1

    if level == current:
        print(f"already {level}")
        return 0

    content = SETTINGS_PATH.read_text()
    updated = re.sub(
        r'(log_level\s*=\s*)"[^"]*"',
        rf'\1"{level}"',
        content,
    )
    SETTINGS_PATH.write_text(updated)
    reset_settings_cache()
    print(f"{current} → {level}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="catalog", description="Catalog browser CLI tools")
    sub = parser.add_subparsers(dest="command")

    init_parser = sub.add_parser("init-db", help="Create catalog and preference tables")
    init_parser.add_argument("--alias", default=None, help="Database alias from [db_paths] (default: env alias)")
    init_parser.add_argument("-v", "--verbose", action="store_true", help="Show detailed logs")

    ll_parser = sub.add_parser("log-level", help="Get or set the log level in settings.toml")
    ll_parser.add_argument("level", nargs="?", default=None, help="Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)")
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "init-db":
        return cmd_init_db(args)
    if args.command == "log-level":
        return cmd_log_level(args)

    parser.print_help()
    return 0


if __name__ == "__main__":
    sys.exit(main())
