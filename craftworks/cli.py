#!/usr/bin/env python3
"""
Craftworks - Command line entry point.

Administrative commands around the data store:

    craftworks init-db                 # create the model relations
    craftworks cache-status            # which cache backend is active
    craftworks show Zone ID 27         # look up one entity by unique key
    craftworks list World Datacenter 1 # list entities by field
"""

import argparse
import json
import os
import sys
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from craftworks.common.logging import get_logger, setup_logging
from craftworks.core.config import get_cache_aside, get_persister, get_settings, get_store
from craftworks.core.errors import CraftworksError
from craftworks.core.session import session_scope

logger = get_logger(__name__)


def configure(env_file: Optional[str] = None) -> None:
    """
    Load .env and set up logging for the cli component.

    LOG_LEVEL and LOG_JSON_FORMAT win when set; otherwise the cli section of
    logging-config.yaml (and LOG_LEVEL_CLI) decides.
    """
    load_dotenv(env_file or Path.cwd() / ".env")
    settings = get_settings()
    setup_logging(
        level=settings.log_level.value if "LOG_LEVEL" in os.environ else None,
        json_format=settings.log_json if "LOG_JSON_FORMAT" in os.environ else None,
        component="cli",
    )


def _parse_value(raw: str):
    return int(raw) if raw.lstrip("-").isdigit() else raw


def cmd_init_db(args: argparse.Namespace) -> int:
    from craftworks.models import init_schema
    init_schema(get_store())
    print(f"Schema created in {get_settings().db_path}")
    return 0


def cmd_cache_status(args: argparse.Namespace) -> int:
    cache = get_cache_aside()
    if not cache.available:
        print("No cache backend available")
        return 1
    print(f"Cache backend: {cache.backend_name}")
    return 0


def cmd_show(args: argparse.Namespace) -> int:
    import craftworks.models  # noqa: F401  registers the model classes
    entity = get_persister().find_unique(args.type, args.field, _parse_value(args.value))
    print(json.dumps(entity.snapshot(), indent=2, default=str))
    return 0


def cmd_list(args: argparse.Namespace) -> int:
    import craftworks.models  # noqa: F401
    persister = get_persister()
    if args.field:
        entities = persister.find_all_by(args.type, args.field, _parse_value(args.value))
    else:
        entities = persister.find_all(args.type)
    print(json.dumps([entity.snapshot() for entity in entities], indent=2, default=str))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="craftworks", description="Craftworks data store tools")
    parser.add_argument("--env-file", help="Path to .env file (default: ./.env)")
    subparsers = parser.add_subparsers(dest="command", required=True)

    init_db = subparsers.add_parser("init-db", help="Create the model relations")
    init_db.set_defaults(func=cmd_init_db)

    status = subparsers.add_parser("cache-status", help="Show the active cache backend")
    status.set_defaults(func=cmd_cache_status)

    show = subparsers.add_parser("show", help="Show one entity by unique key")
    show.add_argument("type", help="Entity type, e.g. Zone")
    show.add_argument("field", help="Unique field, e.g. ID")
    show.add_argument("value", help="Field value")
    show.set_defaults(func=cmd_show)

    listing = subparsers.add_parser("list", help="List entities, optionally filtered by field")
    listing.add_argument("type", help="Entity type, e.g. World")
    listing.add_argument("field", nargs="?", help="Field to filter on")
    listing.add_argument("value", nargs="?", help="Field value")
    listing.set_defaults(func=cmd_list)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    if getattr(args, "field", None) and args.value is None:
        parser.error("value is required when field is given")

    configure(args.env_file)
    log = logger.bind(command=args.command)

    try:
        with session_scope():
            code = args.func(args)
    except CraftworksError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1
    log.debug("Command finished", data={"exit_code": code})
    return code


if __name__ == "__main__":
    sys.exit(main())
