"""Command-line entry point: serve the API and maintain the planner database."""

from __future__ import annotations

import argparse
import logging
import os
import sys
from typing import Optional, Sequence

from recurring_planner.core.clock import init_timezone
from recurring_planner.core.errors import InvalidZone, PlannerError

logger = logging.getLogger("recurring_planner")


def _serve(args: argparse.Namespace) -> int:
    import uvicorn

    if args.tz:
        # 日本語: アプリ生成前に環境変数へ反映 / English: Export before the app module builds its instance
        os.environ["PLANNER_TIMEZONE"] = args.tz
    init_timezone(args.tz)

    from recurring_planner.application import app

    uvicorn.run(app, host=args.host, port=args.port)
    return 0


def _backup(args: argparse.Namespace) -> int:
    from recurring_planner.core.db import current_database_url
    from recurring_planner.services.maintenance_service import backup_database, default_backup_path

    source_url = args.db or current_database_url()
    target = args.target or default_backup_path()
    try:
        backup_database(source_url, target)
    except FileExistsError as exc:
        logger.error("%s", exc)
        return 1
    logger.info("Backup completed: %s", target)
    return 0


def _clear(args: argparse.Namespace) -> int:
    from recurring_planner.core.db import create_session
    from recurring_planner.services.maintenance_service import clear_database

    if not args.yes:
        answer = input("Delete every template, occurrence and todo? [y/N] ")
        if answer.strip().lower() not in {"y", "yes"}:
            logger.info("Aborted")
            return 1

    with create_session() as db:
        clear_database(db)
    logger.info("Database cleared")
    return 0


def _seed(args: argparse.Namespace) -> int:
    from recurring_planner.core.db import create_session
    from recurring_planner.services.maintenance_service import load_seed_file, seed_from_data

    if not os.path.exists(args.file):
        logger.error("Seed file not found: %s", args.file)
        return 1

    data = load_seed_file(args.file)
    with create_session() as db:
        for message in seed_from_data(db, data):
            logger.info("%s", message)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="recurring_planner", description="Recurring planner service and maintenance")
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Run the JSON API with uvicorn")
    serve.add_argument("--tz", default=None, help="IANA time zone (overrides PLANNER_TIMEZONE)")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)
    serve.set_defaults(handler=_serve)

    backup = subparsers.add_parser("backup", help="Copy the database into a SQLite file")
    backup.add_argument("--db", default=None, help="Source DATABASE_URL (defaults to the configured one)")
    backup.add_argument("--target", default=None, help="Target file (default backup_YYYY_MM_DD.db)")
    backup.set_defaults(handler=_backup)

    clear = subparsers.add_parser("clear", help="Delete all rows")
    clear.add_argument("--yes", action="store_true", help="Do not ask for confirmation")
    clear.set_defaults(handler=_clear)

    seed = subparsers.add_parser("seed", help="Load templates and todos from a TOML file")
    seed.add_argument("--file", default="seed.toml", help="Path to the seed file")
    seed.set_defaults(handler=_seed)

    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    args = build_parser().parse_args(argv)

    try:
        if args.command != "serve":
            init_timezone()
        return args.handler(args)
    except InvalidZone as exc:
        logger.error("%s", exc)
        return 2
    except PlannerError as exc:
        logger.error("%s", exc)
        return 1


if __name__ == "__main__":
    sys.exit(main())
