"""Flip pending sessions that are due today to assigned.

Meant to run from a scheduler shortly after midnight in the team's timezone::

    python -m kasoku.scripts.promote_due_sessions --timezone Europe/Madrid
"""
from __future__ import annotations

import argparse
import logging

from kasoku.core.config import get_settings
from kasoku.database import SessionLocal
from kasoku.services.lifecycle import promote_due_sessions

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    settings = get_settings()
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--timezone", default=settings.default_timezone)
    args = parser.parse_args(argv)

    logging.basicConfig(level=settings.log_level.upper())
    db = SessionLocal()
    try:
        promoted = promote_due_sessions(db, timezone=args.timezone)
    finally:
        db.close()
    logger.info("Promotion finished for %s: %d sessions", args.timezone, promoted)
    return promoted


if __name__ == "__main__":
    main()
