"""Shared logging helpers for boxsync."""

from __future__ import annotations

import logging


def configure_logging(*, level: int = logging.INFO, force: bool = False) -> None:
    """Initialise the root logger once with defaults suited to a cron-style CLI.

    Parameters mirror ``logging.basicConfig`` with a simplified contract: INFO level
    and a terse format. Pass ``force=True`` to reconfigure during tests or when the
    CLI switches to verbose output.
    """

    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%H:%M:%S",
        force=force,
    )
    # httpx logs every request at INFO, which drowns the mutation log.
    if level > logging.DEBUG:
        logging.getLogger("httpx").setLevel(logging.WARNING)
