from __future__ import annotations

import argparse
import json
import logging
import sys
from signal import SIGINT, signal
from typing import TYPE_CHECKING, Any

from dotenv import load_dotenv

from fleetsync.app import (
    announce_flight_ready_job,
    cleanup_old_news,
    confirm_rumor_job,
    override_ship_source,
    probe_slug,
    refresh_provider_cache,
    run_cleanup,
    sync_rumors_job,
    sync_ships_job,
)
from fleetsync.config import configure_logging
from fleetsync.domain.errors import LockContentionError, ValidationError
from fleetsync.domain.model import PreferredSource

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from types import FrameType

log = logging.getLogger(__name__)

EXIT_INVALID = 2
EXIT_ALREADY_RUNNING = 3


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Synchronise and reconcile ship data")
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log at DEBUG level (overrides FLEETSYNC_LOG_LEVEL)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    ships = subparsers.add_parser("ships-sync", help="Fetch and reconcile every ship")
    ships.add_argument(
        "--force",
        action="store_true",
        help="Write every ship even when nothing changed",
    )
    ships.add_argument(
        "--auto",
        action="store_true",
        dest="auto_sync",
        help="Record the run as a scheduled sync in the audit log",
    )

    subparsers.add_parser("cache-refresh", help="Refresh the FleetYards catalog snapshot")
    subparsers.add_parser("rumor-sync", help="Mine feeds for unannounced ships")
    subparsers.add_parser("cleanup", help="Run the retention steps")
    subparsers.add_parser("cleanup-old-news", help="Prune capped and aged news")
    subparsers.add_parser("flight-ready-news", help="Announce newly flight-ready ships")

    override = subparsers.add_parser(
        "ship-data-override",
        help="Pin a ship to one provider (or back to automatic merging)",
    )
    override.add_argument("entity_key", help="Ship slug")
    override.add_argument(
        "--source",
        required=True,
        choices=[source.value for source in PreferredSource],
        help="Preferred provider",
    )
    override.add_argument("--reason", type=str, help="Free-text reason for the override")
    override.add_argument(
        "--clear-cache",
        action="store_true",
        help="Invalidate the cached provider catalog",
    )
    override.add_argument("--set-by", type=str, help="Who requested the override")

    probe = subparsers.add_parser("slug-probe", help="Check a FleetYards model key")
    probe.add_argument("probe_key", help="FleetYards model slug")

    confirm = subparsers.add_parser(
        "rumor-confirm",
        help="Link a rumor to the ship it turned out to be",
    )
    confirm.add_argument("rumor_id", help="Rumor id (UUID)")
    confirm.add_argument("ship_slug", help="Slug of the canonical ship")

    serve = subparsers.add_parser("serve", help="Serve the job endpoints over HTTP")
    serve.add_argument("--host", default="127.0.0.1", help="Bind address (default: %(default)s)")
    serve.add_argument("--port", type=int, default=8000, help="Port (default: %(default)s)")

    db = subparsers.add_parser("db", help="Database management commands")
    db_sub = db.add_subparsers(dest="db_command", required=True)
    upgrade = db_sub.add_parser("upgrade", help="Apply migrations up to head")
    upgrade.add_argument(
        "--database-uri",
        type=str,
        help="Database to migrate (defaults to DATABASE_URI or the local SQLite file)",
    )

    return parser.parse_args(list(argv))


def _job_for(args: argparse.Namespace) -> Callable[[], dict[str, Any]] | None:
    jobs: dict[str, Callable[[], dict[str, Any]]] = {
        "ships-sync": lambda: sync_ships_job(force=args.force, auto_sync=args.auto_sync),
        "cache-refresh": refresh_provider_cache,
        "rumor-sync": sync_rumors_job,
        "cleanup": run_cleanup,
        "cleanup-old-news": cleanup_old_news,
        "flight-ready-news": announce_flight_ready_job,
        "ship-data-override": lambda: override_ship_source(
            entity_key=args.entity_key,
            preferred_source=args.source,
            reason=args.reason,
            clear_cache=args.clear_cache,
            set_by=args.set_by,
        ),
        "slug-probe": lambda: probe_slug(args.probe_key),
        "rumor-confirm": lambda: confirm_rumor_job(
            rumor_id=args.rumor_id,
            ship_slug=args.ship_slug,
        ),
    }
    return jobs.get(args.command)


def _serve(args: argparse.Namespace) -> None:
    import uvicorn  # noqa: PLC0415

    from fleetsync.ui.api import create_app  # noqa: PLC0415

    uvicorn.run(create_app(), host=args.host, port=args.port)


def _upgrade_database(args: argparse.Namespace) -> None:
    from fleetsync.adapters.sqlalchemy.migrations import upgrade_head  # noqa: PLC0415

    upgrade_head(database_uri=args.database_uri)
    log.info("Database schema is at head")


def main(argv: Sequence[str] | None = None) -> int:
    """Main application entry point; returns the process exit code."""

    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args = _parse_args(args_list)
    configure_logging(level=logging.DEBUG if parsed_args.verbose else None)

    try:
        if parsed_args.command == "serve":
            _serve(parsed_args)
            return 0
        if parsed_args.command == "db" and parsed_args.db_command == "upgrade":
            _upgrade_database(parsed_args)
            return 0

        job = _job_for(parsed_args)
        if job is None:
            raise ValidationError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301
        result = job()
    except ValidationError:
        log.exception("CLI validation error")
        return EXIT_INVALID
    except LockContentionError as exc:
        log.warning(f"{exc}; try again later")
        return EXIT_ALREADY_RUNNING
    except Exception:
        log.exception(f"Fatal error during {parsed_args.command}")
        return 1

    print(json.dumps(result, indent=2, default=str))  # noqa: T201
    return 0 if result.get("success", True) else 1


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    """Console-script entry point."""
    load_dotenv()
    signal(SIGINT, sigint_handler)
    sys.exit(main())


if __name__ == "__main__":
    run()
