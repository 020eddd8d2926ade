from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from boxsync.app import mirror_releases
from boxsync.config import (
    ConfigurationError,
    RetryPolicy,
    configure_logging,
    get_catalog_config,
    get_source_config,
    get_sync_config,
)
from boxsync.domain.reconciliation import PrunePolicy

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Mirror upstream Vagrant box releases into the box catalog"
    )
    parser.add_argument(
        "--token",
        type=str,
        help="Catalog access token (defaults to $BOXSYNC_CATALOG_TOKEN)",
    )
    parser.add_argument(
        "--username",
        type=str,
        help="Catalog user owning the mirrored boxes (defaults to $BOXSYNC_USERNAME)",
    )
    parser.add_argument(
        "--dry-run",
        "--test",
        action="store_true",
        help="Only log the changes that would be made",
    )
    parser.add_argument(
        "--codenames",
        type=Path,
        help="JSON file mapping release directory names to display names",
    )
    parser.add_argument(
        "--release",
        dest="releases",
        action="append",
        metavar="NAME",
        help="Only mirror this release directory (repeatable)",
    )
    parser.add_argument(
        "--prune-policy",
        choices=[policy.value for policy in PrunePolicy],
        default=PrunePolicy.REVOKE.value,
        help="What to do with released versions no longer listed upstream "
        "(default: %(default)s)",
    )
    parser.add_argument(
        "--retries",
        type=int,
        help="Retries for transient HTTP failures; 0 fails on the first error",
    )
    parser.add_argument(
        "--source-url",
        type=str,
        help="Root of the release listing (defaults to $BOXSYNC_SOURCE_URL or the Ubuntu images)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    return parser.parse_args(list(argv))


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    configure_logging()
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    try:
        parsed_args = _parse_args(args_list)
        if parsed_args.verbose:
            configure_logging(level=logging.DEBUG, force=True)
        if parsed_args.retries is not None and parsed_args.retries < 0:
            raise ValueError("Retries must be non-negative")  # noqa: TRY301
        retry = RetryPolicy(total=parsed_args.retries) if parsed_args.retries is not None else None
        sync = get_sync_config(
            username=parsed_args.username,
            dry_run=parsed_args.dry_run,
            prune_policy=PrunePolicy(parsed_args.prune_policy),
            releases=parsed_args.releases,
        )
        source = get_source_config(
            root_url=parsed_args.source_url,
            codenames_path=parsed_args.codenames,
            retry=retry,
        )
        catalog = get_catalog_config(
            token=parsed_args.token,
            retry=retry,
            require_token=not parsed_args.dry_run,
        )
    except (ValueError, ConfigurationError):
        log.exception("CLI validation error")
        sys.exit(2)

    try:
        mirror_releases(sync, catalog=catalog, source=source)
    except Exception:
        log.exception("Fatal error during sync")
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
