from __future__ import annotations

import argparse
import json
import logging
import sys
from signal import SIGINT, signal
from typing import TYPE_CHECKING, Any

from dotenv import load_dotenv
from pydantic import ValidationError

from civicview.adapters.schema import (
    CompositeReportPayload,
    ErrorPayload,
    ReporterProfilePayload,
    SnapshotStatusPayload,
    SyncSummaryPayload,
)
from civicview.adapters.sqlalchemy import is_connectivity_error
from civicview.app import (
    create_runtime,
    get_reporter_profile,
    list_composite_views,
    materialization_status,
    read_materialized_views,
    sync_composite_views,
)
from civicview.config import configure_logging
from civicview.domain.errors import StoreUnavailableError, SyncError
from civicview.domain.model import ListingScope

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from civicview.app import Runtime

log = logging.getLogger(__name__)

EXIT_USAGE = 2
EXIT_NOT_FOUND = 7


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Build and materialize composite report views")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("sync", help="Rebuild the materialized collection")

    listing = subparsers.add_parser("list", help="List composite views straight from the source")
    listing.add_argument(
        "--scope",
        type=str,
        default=ListingScope.OWN.value,
        help="'own' for one reporter's reports, 'active' for all (default: %(default)s)",
    )
    listing.add_argument(
        "--reporter-id",
        type=int,
        help="Reporter whose reports are listed with --scope own",
    )

    subparsers.add_parser("views", help="Print the currently materialized composite views")
    subparsers.add_parser("status", help="Show the state of the materialized collection")

    profile = subparsers.add_parser("profile", help="Show a reporter's public profile")
    profile.add_argument("--reporter-id", type=int, required=True)

    return parser.parse_args(list(argv))


def _emit(payload: Any) -> None:
    sys.stdout.write(json.dumps(payload, indent=2))
    sys.stdout.write("\n")


def _run_command(args: argparse.Namespace, runtime: Runtime) -> int:
    if args.command == "sync":
        summary = sync_composite_views(runtime)
        _emit(SyncSummaryPayload.from_domain(summary).to_json_dict())
    elif args.command == "list":
        scope = ListingScope.parse(args.scope)
        if scope is ListingScope.OWN and args.reporter_id is None:
            raise ValueError("--reporter-id is required with --scope own")
        views = list_composite_views(runtime, scope=scope, reporter_id=args.reporter_id)
        _emit([CompositeReportPayload.from_domain(view).to_json_dict() for view in views])
    elif args.command == "views":
        views = read_materialized_views(runtime)
        _emit([CompositeReportPayload.from_domain(view).to_json_dict() for view in views])
    elif args.command == "status":
        _emit(SnapshotStatusPayload.from_domain(materialization_status(runtime)).to_json_dict())
    elif args.command == "profile":
        reporter = get_reporter_profile(runtime, args.reporter_id)
        if reporter is None:
            _emit(ErrorPayload(error="Reporter not found", code="not-found").to_json_dict())
            return EXIT_NOT_FOUND
        _emit(ReporterProfilePayload.from_domain(reporter).to_json_dict())
    else:
        raise ValueError(f"Unsupported command: {args.command}")
    return 0


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    load_dotenv()
    configure_logging()
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args = _parse_args(args_list)

    runtime: Runtime | None = None
    try:
        runtime = create_runtime()
        exit_code = _run_command(parsed_args, runtime)
    except ValidationError as exc:
        log.exception("Stored payload failed validation")
        _emit(ErrorPayload(error=str(exc), code="invalid-payload").to_json_dict())
        sys.exit(1)
    except ValueError as exc:
        log.exception("CLI validation error")
        _emit(ErrorPayload(error=str(exc), code="usage").to_json_dict())
        sys.exit(EXIT_USAGE)
    except SyncError as exc:
        _emit(ErrorPayload(error=str(exc), code=exc.code).to_json_dict())
        sys.exit(exc.exit_code)
    except Exception as exc:
        log.exception("Fatal error")
        if is_connectivity_error(exc):
            _emit(
                ErrorPayload(error=str(exc), code=StoreUnavailableError.code).to_json_dict()
            )
            sys.exit(StoreUnavailableError.exit_code)
        _emit(ErrorPayload(error=str(exc), code="error").to_json_dict())
        sys.exit(1)
    finally:
        if runtime is not None:
            runtime.close()

    if exit_code:
        sys.exit(exit_code)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


if __name__ == "__main__":
    signal(SIGINT, sigint_handler)
    main()
